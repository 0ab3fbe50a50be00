"""Observer port for entity command handling."""

from typing import Protocol


class EntityObserver(Protocol):
    """Observer port for entity command events.

    Implementations may log to structlog, record for tests, or emit metrics.
    """

    def entity_events_appended(
        self,
        entity_type: str,
        entity_id: str,
        event_types: list[str],
        version: int,
    ) -> None: ...

    def entity_command_rejected(
        self, entity_type: str, entity_id: str, command: str, reason: str
    ) -> None: ...
