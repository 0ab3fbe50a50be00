"""SqliteCheckpointStore — one durable row per run workflow."""

import sqlite3

from qjudge.core.db import immediate_transaction, to_iso, utcnow
from qjudge.orchestration.domain.plan import OrchestratorState, RunPlan

SCHEMA = """
CREATE TABLE IF NOT EXISTS workflows (
    run_id TEXT PRIMARY KEY,
    queue_id TEXT NOT NULL,
    state TEXT NOT NULL,
    data TEXT NOT NULL,  -- RunPlan JSON
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_workflows_state ON workflows(state);
"""


class SqliteCheckpointStore:
    """Satisfies the CheckpointStore protocol. Each save replaces the run's row."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._conn.executescript(SCHEMA)

    def save(self, plan: RunPlan) -> None:
        with immediate_transaction(self._conn):
            self._conn.execute(
                """
                INSERT INTO workflows (run_id, queue_id, state, data, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(run_id) DO UPDATE SET
                    state = excluded.state,
                    data = excluded.data,
                    updated_at = excluded.updated_at
                """,
                (
                    plan.run_id,
                    plan.queue_id,
                    plan.state.value,
                    plan.model_dump_json(),
                    to_iso(utcnow()),
                ),
            )

    def load(self, run_id: str) -> RunPlan | None:
        row = self._conn.execute(
            "SELECT data FROM workflows WHERE run_id = ?", (run_id,)
        ).fetchone()
        return RunPlan.model_validate_json(row["data"]) if row else None

    def list_unfinished(self) -> list[RunPlan]:
        rows = self._conn.execute(
            "SELECT data FROM workflows WHERE state != ? ORDER BY updated_at, run_id",
            (OrchestratorState.DONE.value,),
        ).fetchall()
        return [RunPlan.model_validate_json(row["data"]) for row in rows]
