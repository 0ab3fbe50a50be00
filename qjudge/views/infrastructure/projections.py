"""Projections — one per source entity type, each an idempotent upsert/delete.

A projection decodes a stored event with its entity's adapter and writes the
rows it implies. Redelivering an already-applied event leaves the tables
unchanged.
"""

import sqlite3
from typing import ClassVar, Protocol

from qjudge.core.db import to_iso
from qjudge.eventstore.domain.event import StoredEvent
from qjudge.evaluation.domain.evaluation import EvaluationEntity, EvaluationRecorded
from qjudge.judge.domain.judge import (
    Judge,
    JudgeCreated,
    JudgeDeleted,
    JudgeEntity,
    JudgeUpdated,
)
from qjudge.run.domain.run import RunEntity, RunProgressUpdated, RunStarted
from qjudge.submission.domain.submission import SubmissionEntity, SubmissionImported


class Projection(Protocol):
    name: ClassVar[str]
    entity_type: ClassVar[str]

    def project(self, conn: sqlite3.Connection, event: StoredEvent) -> None: ...


class SubmissionProjection:
    """Feeds queues, questions and submissions from submission imports."""

    name: ClassVar[str] = "submissions"
    entity_type: ClassVar[str] = SubmissionEntity.entity_type

    def __init__(self) -> None:
        self._entity = SubmissionEntity()

    def project(self, conn: sqlite3.Connection, event: StoredEvent) -> None:
        match self._entity.decode(event.payload):
            case SubmissionImported(submission=submission):
                conn.execute(
                    "INSERT INTO queues (queue_id) VALUES (?) ON CONFLICT DO NOTHING",
                    (submission.queue_id,),
                )
                conn.execute(
                    """
                    INSERT INTO submissions (submission_id, queue_id) VALUES (?, ?)
                    ON CONFLICT(submission_id) DO UPDATE SET queue_id = excluded.queue_id
                    """,
                    (submission.submission_id, submission.queue_id),
                )
                # Latest import wins the question text.
                for question_id, answer in submission.questions.items():
                    conn.execute(
                        """
                        INSERT INTO questions (queue_id, question_id, question_text)
                        VALUES (?, ?, ?)
                        ON CONFLICT(queue_id, question_id)
                        DO UPDATE SET question_text = excluded.question_text
                        """,
                        (submission.queue_id, question_id, answer.question_text),
                    )


class JudgeProjection:
    name: ClassVar[str] = "judges"
    entity_type: ClassVar[str] = JudgeEntity.entity_type

    def __init__(self) -> None:
        self._entity = JudgeEntity()

    def project(self, conn: sqlite3.Connection, event: StoredEvent) -> None:
        match self._entity.decode(event.payload):
            case JudgeCreated(judge=judge) | JudgeUpdated(judge=judge):
                _upsert_judge(conn=conn, judge=judge)
            case JudgeDeleted(judge_id=judge_id):
                conn.execute("DELETE FROM judges WHERE judge_id = ?", (judge_id,))


def _upsert_judge(conn: sqlite3.Connection, judge: Judge) -> None:
    conn.execute(
        """
        INSERT INTO judges (judge_id, name, system_prompt, target_model, active)
        VALUES (?, ?, ?, ?, ?)
        ON CONFLICT(judge_id) DO UPDATE SET
            name = excluded.name,
            system_prompt = excluded.system_prompt,
            target_model = excluded.target_model,
            active = excluded.active
        """,
        (
            judge.judge_id,
            judge.name,
            judge.system_prompt,
            judge.target_model,
            int(judge.active),
        ),
    )


class RunProjection:
    """Progress events carry absolute counters, so replays overwrite identically."""

    name: ClassVar[str] = "runs"
    entity_type: ClassVar[str] = RunEntity.entity_type

    def __init__(self) -> None:
        self._entity = RunEntity()

    def project(self, conn: sqlite3.Connection, event: StoredEvent) -> None:
        match self._entity.decode(event.payload):
            case RunStarted(run=run):
                conn.execute(
                    """
                    INSERT INTO runs (
                        run_id, queue_id, status, planned_count, completed_count,
                        failed_count, started_at, completed_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(run_id) DO UPDATE SET
                        queue_id = excluded.queue_id,
                        status = excluded.status,
                        planned_count = excluded.planned_count,
                        completed_count = excluded.completed_count,
                        failed_count = excluded.failed_count,
                        started_at = excluded.started_at,
                        completed_at = excluded.completed_at
                    """,
                    (
                        run.run_id,
                        run.queue_id,
                        run.status.value,
                        run.planned_count,
                        run.completed_count,
                        run.failed_count,
                        to_iso(run.started_at),
                        to_iso(run.completed_at),
                    ),
                )
            case RunProgressUpdated() as progress:
                conn.execute(
                    """
                    UPDATE runs SET
                        completed_count = ?,
                        failed_count = ?,
                        status = ?,
                        completed_at = ?
                    WHERE run_id = ?
                    """,
                    (
                        progress.completed_count,
                        progress.failed_count,
                        progress.status.value,
                        to_iso(progress.completed_at),
                        event.entity_id,
                    ),
                )


class EvaluationProjection:
    name: ClassVar[str] = "evaluations"
    entity_type: ClassVar[str] = EvaluationEntity.entity_type

    def __init__(self) -> None:
        self._entity = EvaluationEntity()

    def project(self, conn: sqlite3.Connection, event: StoredEvent) -> None:
        match self._entity.decode(event.payload):
            case EvaluationRecorded(evaluation=evaluation):
                conn.execute(
                    """
                    INSERT INTO evaluations (
                        evaluation_id, run_id, submission_id, queue_id,
                        question_id, judge_id, verdict, reasoning, evaluated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(evaluation_id) DO NOTHING
                    """,
                    (
                        evaluation.evaluation_id,
                        evaluation.run_id,
                        evaluation.submission_id,
                        evaluation.queue_id,
                        evaluation.question_id,
                        evaluation.judge_id,
                        evaluation.verdict.value,
                        evaluation.reasoning,
                        to_iso(evaluation.evaluated_at),
                    ),
                )


def default_projections() -> list[Projection]:
    return [
        SubmissionProjection(),
        JudgeProjection(),
        RunProjection(),
        EvaluationProjection(),
    ]
