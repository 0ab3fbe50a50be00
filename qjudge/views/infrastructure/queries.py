"""ViewQueries — read-only access to the materialized view tables.

Results reflect whatever the projector has applied so far; they may lag
the event log.
"""

import sqlite3
from typing import Any

from qjudge.run.domain.run import RunStatus
from qjudge.views.domain.rows import (
    EvaluationFilters,
    EvaluationRow,
    GroupBy,
    JudgeRow,
    QuestionRow,
    QueueRow,
    RunRow,
    SubmissionRow,
    VerdictCounts,
)
from qjudge.views.infrastructure.schema import SCHEMA

_GROUP_COLUMNS = {GroupBy.JUDGE: "judge_id", GroupBy.QUESTION: "question_id"}


class ViewQueries:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._conn.executescript(SCHEMA)

    # Queues

    def list_queues(self) -> list[QueueRow]:
        rows = self._conn.execute("SELECT * FROM queues ORDER BY queue_id").fetchall()
        return [QueueRow.model_validate(dict(row)) for row in rows]

    def get_queue(self, queue_id: str) -> QueueRow | None:
        row = self._conn.execute(
            "SELECT * FROM queues WHERE queue_id = ?", (queue_id,)
        ).fetchone()
        return QueueRow.model_validate(dict(row)) if row else None

    # Questions

    def questions_by_queue(self, queue_id: str) -> list[QuestionRow]:
        rows = self._conn.execute(
            "SELECT * FROM questions WHERE queue_id = ? ORDER BY question_id",
            (queue_id,),
        ).fetchall()
        return [QuestionRow.model_validate(dict(row)) for row in rows]

    def get_question(self, queue_id: str, question_id: str) -> QuestionRow | None:
        row = self._conn.execute(
            "SELECT * FROM questions WHERE queue_id = ? AND question_id = ?",
            (queue_id, question_id),
        ).fetchone()
        return QuestionRow.model_validate(dict(row)) if row else None

    # Submissions

    def submissions_by_queue(self, queue_id: str) -> list[SubmissionRow]:
        rows = self._conn.execute(
            "SELECT * FROM submissions WHERE queue_id = ? ORDER BY submission_id",
            (queue_id,),
        ).fetchall()
        return [SubmissionRow.model_validate(dict(row)) for row in rows]

    def get_submission(self, submission_id: str) -> SubmissionRow | None:
        row = self._conn.execute(
            "SELECT * FROM submissions WHERE submission_id = ?", (submission_id,)
        ).fetchone()
        return SubmissionRow.model_validate(dict(row)) if row else None

    # Judges

    def all_judges(self) -> list[JudgeRow]:
        rows = self._conn.execute("SELECT * FROM judges ORDER BY judge_id").fetchall()
        return [JudgeRow.model_validate(dict(row)) for row in rows]

    def active_judges(self) -> list[JudgeRow]:
        rows = self._conn.execute(
            "SELECT * FROM judges WHERE active = 1 ORDER BY judge_id"
        ).fetchall()
        return [JudgeRow.model_validate(dict(row)) for row in rows]

    def get_judge(self, judge_id: str) -> JudgeRow | None:
        row = self._conn.execute(
            "SELECT * FROM judges WHERE judge_id = ?", (judge_id,)
        ).fetchone()
        return JudgeRow.model_validate(dict(row)) if row else None

    # Runs

    def get_run(self, run_id: str) -> RunRow | None:
        row = self._conn.execute(
            "SELECT * FROM runs WHERE run_id = ?", (run_id,)
        ).fetchone()
        return RunRow.model_validate(dict(row)) if row else None

    def runs_by_queue(self, queue_id: str) -> list[RunRow]:
        rows = self._conn.execute(
            "SELECT * FROM runs WHERE queue_id = ? ORDER BY started_at DESC, run_id",
            (queue_id,),
        ).fetchall()
        return [RunRow.model_validate(dict(row)) for row in rows]

    def runs_by_status(self, status: RunStatus) -> list[RunRow]:
        rows = self._conn.execute(
            "SELECT * FROM runs WHERE status = ? ORDER BY started_at DESC, run_id",
            (status.value,),
        ).fetchall()
        return [RunRow.model_validate(dict(row)) for row in rows]

    def all_runs(self) -> list[RunRow]:
        rows = self._conn.execute(
            "SELECT * FROM runs ORDER BY started_at DESC, run_id"
        ).fetchall()
        return [RunRow.model_validate(dict(row)) for row in rows]

    # Evaluations

    def get_evaluation(self, evaluation_id: str) -> EvaluationRow | None:
        row = self._conn.execute(
            "SELECT * FROM evaluations WHERE evaluation_id = ?", (evaluation_id,)
        ).fetchone()
        return EvaluationRow.model_validate(dict(row)) if row else None

    def evaluations(
        self, filters: EvaluationFilters | None = None
    ) -> list[EvaluationRow]:
        """All evaluations matching every set filter field."""
        where, params = _evaluation_where(filters or EvaluationFilters())
        rows = self._conn.execute(
            f"SELECT * FROM evaluations {where} ORDER BY evaluated_at, evaluation_id",
            params,
        ).fetchall()
        return [EvaluationRow.model_validate(dict(row)) for row in rows]

    def verdict_counts(
        self, queue_id: str, group_by: GroupBy = GroupBy.JUDGE
    ) -> list[VerdictCounts]:
        """Pass/fail/inconclusive totals in a queue, per judge or per question."""
        column = _GROUP_COLUMNS[group_by]
        rows = self._conn.execute(
            f"""
            SELECT
                {column} AS key,
                SUM(verdict = 'PASS') AS passed,
                SUM(verdict = 'FAIL') AS failed,
                SUM(verdict = 'INCONCLUSIVE') AS inconclusive
            FROM evaluations
            WHERE queue_id = ?
            GROUP BY {column}
            ORDER BY {column}
            """,
            (queue_id,),
        ).fetchall()
        return [VerdictCounts.model_validate(dict(row)) for row in rows]


def _evaluation_where(filters: EvaluationFilters) -> tuple[str, list[Any]]:
    clauses: list[str] = []
    params: list[Any] = []
    for column, value in (
        ("queue_id", filters.queue_id),
        ("judge_id", filters.judge_id),
        ("question_id", filters.question_id),
        ("verdict", filters.verdict.value if filters.verdict else None),
        ("run_id", filters.run_id),
    ):
        if value is not None:
            clauses.append(f"{column} = ?")
            params.append(value)
    if not clauses:
        return "", params
    return "WHERE " + " AND ".join(clauses), params
