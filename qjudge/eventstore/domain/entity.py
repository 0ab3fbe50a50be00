"""EventSourcedEntity — base for deterministic, replayable entity state machines."""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any, ClassVar, Protocol

from pydantic import BaseModel, TypeAdapter

from qjudge.eventstore.domain.event import PendingEvent


class Command[S, E](Protocol):
    """A command handler: validates against the current state and proposes events.

    Raises EntityRejectedError instead of returning events when a precondition
    does not hold. Returning an empty list is a successful no-op.
    """

    def __call__(self, entity_id: str, state: S, **kwargs: Any) -> list[E]: ...


class EventSourcedEntity[S, E: BaseModel](ABC):
    """Generic over state type S and a closed union of pydantic event models E.

    Subclasses provide `entity_type`, an `event_adapter` for the event union,
    `empty_state` and a total `apply`. Command methods take the entity id and
    the current state and return the events to append; they never mutate.
    """

    entity_type: ClassVar[str]
    event_adapter: ClassVar[TypeAdapter[Any]]

    @abstractmethod
    def empty_state(self, entity_id: str) -> S: ...

    @abstractmethod
    def apply(self, state: S, event: E) -> S: ...

    def replay(self, entity_id: str, events: Iterable[E]) -> S:
        """Fold events over the empty state."""
        state = self.empty_state(entity_id)
        for event in events:
            state = self.apply(state, event)
        return state

    def encode(self, event: E) -> PendingEvent:
        payload: dict[str, Any] = self.event_adapter.dump_python(event, mode="json")
        return PendingEvent(event_type=payload["type"], payload=payload)

    def decode(self, payload: dict[str, Any]) -> E:
        event: E = self.event_adapter.validate_python(payload)
        return event
