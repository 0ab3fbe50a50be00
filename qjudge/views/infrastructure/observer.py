"""StructlogProjectorObserver — production observer that delegates to structlog."""

import structlog


class StructlogProjectorObserver:
    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def projection_batch_applied(
        self, projection: str, count: int, last_seq: int
    ) -> None:
        self._log.debug(
            "projector.batch_applied",
            projection=projection,
            count=count,
            last_seq=last_seq,
        )

    def projection_failed(self, projection: str, seq: int, reason: str) -> None:
        self._log.error(
            "projector.projection_failed",
            projection=projection,
            seq=seq,
            reason=reason,
        )
