"""ViewProjector — catch-up projection of the event log into view tables."""

import asyncio
import sqlite3

from qjudge.core.db import immediate_transaction
from qjudge.eventstore.domain.event import StoredEvent
from qjudge.eventstore.domain.log import EventLog
from qjudge.views.domain.observer import ProjectorObserver
from qjudge.views.infrastructure.projections import Projection, default_projections
from qjudge.views.infrastructure.schema import SCHEMA, VIEW_TABLES


class ViewProjector:
    """Applies new events to the view tables, one cursor per projection.

    Each batch and its cursor advance commit in one transaction, so a crash
    mid-batch re-delivers the whole batch; projections are idempotent, which
    makes that harmless.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        log: EventLog,
        observer: ProjectorObserver,
        batch_size: int = 500,
        poll_interval: float = 0.5,
        projections: list[Projection] | None = None,
    ) -> None:
        self._conn = conn
        self._log = log
        self._observer = observer
        self._batch_size = batch_size
        self._poll_interval = poll_interval
        self._projections = (
            projections if projections is not None else default_projections()
        )
        self._conn.executescript(SCHEMA)

    def offset(self, projection: str) -> int:
        row = self._conn.execute(
            "SELECT last_seq FROM projection_offsets WHERE projection = ?",
            (projection,),
        ).fetchone()
        return int(row["last_seq"]) if row else 0

    def catch_up(self) -> int:
        """Project every pending event once. Returns how many were applied."""
        return sum(self._catch_up_projection(p) for p in self._projections)

    def rebuild(self) -> int:
        """Clear the view tables and project the whole log again."""
        with immediate_transaction(self._conn):
            for table in VIEW_TABLES:
                self._conn.execute(f"DELETE FROM {table}")
            self._conn.execute("DELETE FROM projection_offsets")
        return self.catch_up()

    async def run(self, stop: asyncio.Event, poll_interval: float | None = None) -> None:
        """Poll the log until stop is set."""
        interval = poll_interval if poll_interval is not None else self._poll_interval
        while not stop.is_set():
            self.catch_up()
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval)
            except TimeoutError:
                continue
        self.catch_up()

    def _catch_up_projection(self, projection: Projection) -> int:
        applied = 0
        while True:
            batch = self._log.read_since(
                after_seq=self.offset(projection.name),
                entity_types=[projection.entity_type],
                limit=self._batch_size,
            )
            if not batch:
                return applied
            self._apply_batch(projection=projection, batch=batch)
            applied += len(batch)

    def _apply_batch(self, projection: Projection, batch: list[StoredEvent]) -> None:
        with immediate_transaction(self._conn):
            for event in batch:
                try:
                    projection.project(self._conn, event)
                except Exception as exc:
                    self._observer.projection_failed(
                        projection=projection.name, seq=event.seq, reason=str(exc)
                    )
                    raise
            last_seq = batch[-1].seq
            self._conn.execute(
                """
                INSERT INTO projection_offsets (projection, last_seq) VALUES (?, ?)
                ON CONFLICT(projection) DO UPDATE SET last_seq = excluded.last_seq
                """,
                (projection.name, last_seq),
            )
        self._observer.projection_batch_applied(
            projection=projection.name, count=len(batch), last_seq=last_seq
        )
