"""EventLog Protocol — structural interface for event log storage."""

from contextlib import AbstractContextManager
from typing import Protocol

from qjudge.eventstore.domain.event import PendingEvent, StoredEvent


class EventLog(Protocol):
    """Append-only per-entity event logs with a global ordering.

    `transaction()` opens an exclusive write scope; reads and appends made
    inside it see a consistent log and commit together. Nested calls join the
    outer scope.
    """

    def transaction(self) -> AbstractContextManager[None]: ...

    def read(self, entity_type: str, entity_id: str) -> list[StoredEvent]: ...

    def append(
        self,
        entity_type: str,
        entity_id: str,
        expected_version: int,
        events: list[PendingEvent],
    ) -> list[StoredEvent]: ...

    def read_since(
        self, after_seq: int, entity_types: list[str], limit: int
    ) -> list[StoredEvent]: ...
