"""EntityRepository — loads entities by replay and executes commands against them."""

from typing import Any

from qjudge.eventstore.domain.entity import Command, EventSourcedEntity
from qjudge.eventstore.domain.errors import EntityRejectedError
from qjudge.eventstore.domain.log import EventLog
from qjudge.eventstore.domain.observer import EntityObserver


class EntityRepository[S, E]:
    """Binds one entity type to an event log.

    State is never cached: every load and every command replays the entity's
    full log from the empty state. Commands run inside a log transaction so a
    single id has exactly one writer at a time.
    """

    def __init__(
        self,
        log: EventLog,
        entity: EventSourcedEntity[S, Any],
        observer: EntityObserver,
    ) -> None:
        self._log = log
        self._entity = entity
        self._observer = observer

    @property
    def entity_type(self) -> str:
        return self._entity.entity_type

    def load(self, entity_id: str) -> S:
        """Reconstruct the current state of entity_id from its log."""
        stored = self._log.read(self._entity.entity_type, entity_id)
        return self._entity.replay(
            entity_id, (self._entity.decode(s.payload) for s in stored)
        )

    def events(self, entity_id: str) -> list[E]:
        """Return the decoded log of entity_id in append order."""
        stored = self._log.read(self._entity.entity_type, entity_id)
        return [self._entity.decode(s.payload) for s in stored]

    def execute(self, entity_id: str, command: Command[S, E], **kwargs: Any) -> S:
        """Run command against the current state and append what it proposes.

        Raises:
            EntityRejectedError: if the command rejects; nothing is appended.
            ConcurrencyConflictError: if another writer appended concurrently.
        """
        entity_type = self._entity.entity_type
        with self._log.transaction():
            stored = self._log.read(entity_type, entity_id)
            state = self._entity.replay(
                entity_id, (self._entity.decode(s.payload) for s in stored)
            )
            try:
                events = command(entity_id=entity_id, state=state, **kwargs)
            except EntityRejectedError as exc:
                self._observer.entity_command_rejected(
                    entity_type=entity_type,
                    entity_id=entity_id,
                    command=getattr(command, "__name__", type(command).__name__),
                    reason=exc.reason,
                )
                raise

            if not events:
                return state

            self._log.append(
                entity_type,
                entity_id,
                expected_version=len(stored),
                events=[self._entity.encode(e) for e in events],
            )
            for event in events:
                state = self._entity.apply(state, event)

        self._observer.entity_events_appended(
            entity_type=entity_type,
            entity_id=entity_id,
            event_types=[self._entity.encode(e).event_type for e in events],
            version=len(stored) + len(events),
        )
        return state
