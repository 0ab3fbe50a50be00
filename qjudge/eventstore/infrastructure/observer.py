"""Structlog implementation of the EntityObserver port."""

import structlog


class StructlogEntityObserver:
    """Delegates entity command events to structlog.

    Satisfies the EntityObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def entity_events_appended(
        self,
        entity_type: str,
        entity_id: str,
        event_types: list[str],
        version: int,
    ) -> None:
        self._log.debug(
            "entity.events_appended",
            entity_type=entity_type,
            entity_id=entity_id,
            event_types=event_types,
            version=version,
        )

    def entity_command_rejected(
        self, entity_type: str, entity_id: str, command: str, reason: str
    ) -> None:
        self._log.warning(
            "entity.command_rejected",
            entity_type=entity_type,
            entity_id=entity_id,
            command=command,
            reason=reason,
        )
