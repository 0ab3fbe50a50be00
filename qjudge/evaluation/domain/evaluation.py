"""Evaluation entity — one judge's verdict on one answer. Write-once."""

from datetime import datetime
from typing import ClassVar, Literal

from pydantic import BaseModel, Field, TypeAdapter

from qjudge.eventstore.domain.entity import EventSourcedEntity
from qjudge.eventstore.domain.errors import EntityAlreadyExistsError
from qjudge.judge.domain.verdict import Verdict


class Evaluation(BaseModel, frozen=True):
    evaluation_id: str = Field(min_length=1)
    run_id: str
    submission_id: str
    queue_id: str
    question_id: str
    judge_id: str
    verdict: Verdict
    reasoning: str = ""
    evaluated_at: datetime


class EvaluationRecorded(BaseModel, frozen=True):
    type: Literal["evaluation-recorded"] = "evaluation-recorded"
    evaluation: Evaluation


type EvaluationEvent = EvaluationRecorded


class EvaluationEntity(EventSourcedEntity[Evaluation | None, EvaluationEvent]):
    entity_type: ClassVar[str] = "evaluation"
    event_adapter: ClassVar[TypeAdapter[EvaluationEvent]] = TypeAdapter(
        EvaluationEvent
    )

    def empty_state(self, entity_id: str) -> Evaluation | None:
        return None

    def apply(
        self, state: Evaluation | None, event: EvaluationEvent
    ) -> Evaluation | None:
        match event:
            case EvaluationRecorded(evaluation=evaluation):
                return evaluation

    def record(
        self,
        entity_id: str,
        state: Evaluation | None,
        run_id: str,
        submission_id: str,
        queue_id: str,
        question_id: str,
        judge_id: str,
        verdict: Verdict,
        reasoning: str,
        at: datetime,
    ) -> list[EvaluationEvent]:
        if state is not None:
            raise EntityAlreadyExistsError(self.entity_type, entity_id)
        evaluation = Evaluation(
            evaluation_id=entity_id,
            run_id=run_id,
            submission_id=submission_id,
            queue_id=queue_id,
            question_id=question_id,
            judge_id=judge_id,
            verdict=verdict,
            reasoning=reasoning,
            evaluated_at=at,
        )
        return [EvaluationRecorded(evaluation=evaluation)]
