"""Observer port for the view projector."""

from typing import Protocol


class ProjectorObserver(Protocol):
    """Observer port emitting structured events while projecting.

    Implementations may log to structlog, record for tests, or emit metrics.
    """

    def projection_batch_applied(
        self, projection: str, count: int, last_seq: int
    ) -> None: ...

    def projection_failed(self, projection: str, seq: int, reason: str) -> None: ...
