"""Row models for the materialized views, plus the evaluation filter."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel

from qjudge.judge.domain.verdict import Verdict
from qjudge.run.domain.run import RunStatus


class QueueRow(BaseModel, frozen=True):
    queue_id: str


class QuestionRow(BaseModel, frozen=True):
    queue_id: str
    question_id: str
    question_text: str


class SubmissionRow(BaseModel, frozen=True):
    submission_id: str
    queue_id: str


class JudgeRow(BaseModel, frozen=True):
    judge_id: str
    name: str
    system_prompt: str
    target_model: str
    active: bool


class RunRow(BaseModel, frozen=True):
    run_id: str
    queue_id: str
    status: RunStatus
    planned_count: int
    completed_count: int
    failed_count: int
    started_at: datetime
    completed_at: datetime | None = None


class EvaluationRow(BaseModel, frozen=True):
    evaluation_id: str
    run_id: str
    submission_id: str
    queue_id: str
    question_id: str
    judge_id: str
    verdict: Verdict
    reasoning: str
    evaluated_at: datetime


class EvaluationFilters(BaseModel, frozen=True):
    """Combined equality filter; a None field matches everything."""

    queue_id: str | None = None
    judge_id: str | None = None
    question_id: str | None = None
    verdict: Verdict | None = None
    run_id: str | None = None


class GroupBy(StrEnum):
    JUDGE = "judge"
    QUESTION = "question"


class VerdictCounts(BaseModel, frozen=True):
    """Verdict totals for one judge or one question within a queue."""

    key: str
    passed: int = 0
    failed: int = 0
    inconclusive: int = 0

    @property
    def total(self) -> int:
        return self.passed + self.failed + self.inconclusive

    @property
    def pass_rate(self) -> float:
        return self.passed / self.total if self.total else 0.0
