"""SqliteEventLog — append-only event log on SQLite with WAL and atomic appends."""

import json
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager

from qjudge.core.db import immediate_transaction, to_iso, utcnow
from qjudge.eventstore.domain.errors import ConcurrencyConflictError
from qjudge.eventstore.domain.event import PendingEvent, StoredEvent

SCHEMA = """
-- One row per event; every entity's log is the rows sharing (entity_type, entity_id)
CREATE TABLE IF NOT EXISTS events (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    entity_type TEXT NOT NULL,
    entity_id TEXT NOT NULL,
    version INTEGER NOT NULL,
    event_type TEXT NOT NULL,
    payload TEXT NOT NULL,  -- JSON
    recorded_at TEXT NOT NULL,
    UNIQUE (entity_type, entity_id, version)
);

CREATE INDEX IF NOT EXISTS idx_events_entity ON events(entity_type, entity_id, version);
CREATE INDEX IF NOT EXISTS idx_events_type_seq ON events(entity_type, seq);
"""


class SqliteEventLog:
    """Satisfies the EventLog protocol over a single SQLite connection.

    Writers are serialized by BEGIN IMMEDIATE; the version check inside the
    transaction plus the UNIQUE constraint reject any append that lost a race.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._conn.executescript(SCHEMA)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with immediate_transaction(self._conn):
            yield

    def read(self, entity_type: str, entity_id: str) -> list[StoredEvent]:
        rows = self._conn.execute(
            """
            SELECT * FROM events
            WHERE entity_type = ? AND entity_id = ?
            ORDER BY version
            """,
            (entity_type, entity_id),
        ).fetchall()
        return [_deserialize_event(row) for row in rows]

    def append(
        self,
        entity_type: str,
        entity_id: str,
        expected_version: int,
        events: list[PendingEvent],
    ) -> list[StoredEvent]:
        with immediate_transaction(self._conn):
            row = self._conn.execute(
                """
                SELECT COALESCE(MAX(version), 0) AS version FROM events
                WHERE entity_type = ? AND entity_id = ?
                """,
                (entity_type, entity_id),
            ).fetchone()
            actual_version = int(row["version"])
            if actual_version != expected_version:
                raise ConcurrencyConflictError(
                    entity_type=entity_type,
                    entity_id=entity_id,
                    expected_version=expected_version,
                    actual_version=actual_version,
                )

            recorded_at = to_iso(utcnow())
            stored: list[StoredEvent] = []
            for offset, event in enumerate(events, start=1):
                version = expected_version + offset
                try:
                    cursor = self._conn.execute(
                        """
                        INSERT INTO events
                            (entity_type, entity_id, version, event_type, payload, recorded_at)
                        VALUES (?, ?, ?, ?, ?, ?)
                        """,
                        (
                            entity_type,
                            entity_id,
                            version,
                            event.event_type,
                            json.dumps(event.payload),
                            recorded_at,
                        ),
                    )
                except sqlite3.IntegrityError as exc:
                    raise ConcurrencyConflictError(
                        entity_type=entity_type,
                        entity_id=entity_id,
                        expected_version=expected_version,
                        actual_version=version,
                    ) from exc
                stored.append(
                    StoredEvent(
                        seq=cursor.lastrowid,
                        entity_type=entity_type,
                        entity_id=entity_id,
                        version=version,
                        event_type=event.event_type,
                        payload=event.payload,
                        recorded_at=recorded_at,
                    )
                )
            return stored

    def read_since(
        self, after_seq: int, entity_types: list[str], limit: int
    ) -> list[StoredEvent]:
        if not entity_types:
            return []
        placeholders = ", ".join("?" for _ in entity_types)
        rows = self._conn.execute(
            f"""
            SELECT * FROM events
            WHERE seq > ? AND entity_type IN ({placeholders})
            ORDER BY seq
            LIMIT ?
            """,
            (after_seq, *entity_types, limit),
        ).fetchall()
        return [_deserialize_event(row) for row in rows]


def _deserialize_event(row: sqlite3.Row) -> StoredEvent:
    return StoredEvent(
        seq=row["seq"],
        entity_type=row["entity_type"],
        entity_id=row["entity_id"],
        version=row["version"],
        event_type=row["event_type"],
        payload=json.loads(row["payload"]),
        recorded_at=row["recorded_at"],
    )
