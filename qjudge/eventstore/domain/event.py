"""StoredEvent and PendingEvent — the wire shape of the event log."""

from typing import Any

from pydantic import BaseModel, Field


class PendingEvent(BaseModel, frozen=True):
    """An encoded event about to be appended to an entity's log."""

    event_type: str = Field(min_length=1)
    payload: dict[str, Any]


class StoredEvent(BaseModel, frozen=True):
    """One committed entry of an entity's append-only log.

    `seq` is global across every entity and only ever increases, which is what
    projections use as their cursor. `version` counts from 1 within one entity.
    """

    seq: int = Field(ge=1)
    entity_type: str
    entity_id: str
    version: int = Field(ge=1)
    event_type: str
    payload: dict[str, Any]
    recorded_at: str
