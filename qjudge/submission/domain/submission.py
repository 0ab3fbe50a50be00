"""Submission entity — one uploaded set of answers for a queue. Immutable once imported."""

from datetime import datetime
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, Field, TypeAdapter

from qjudge.assignment.domain.assignment import check_queue_id
from qjudge.eventstore.domain.entity import EventSourcedEntity
from qjudge.eventstore.domain.errors import EntityAlreadyExistsError

type QuestionId = str


class QuestionAnswer(BaseModel, frozen=True):
    question_text: str = ""
    answer_choice: str | None = None
    answer_reasoning: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class Submission(BaseModel, frozen=True):
    submission_id: str = Field(min_length=1)
    queue_id: str = Field(min_length=1)
    questions: dict[QuestionId, QuestionAnswer] = Field(default_factory=dict)


class SubmissionImported(BaseModel, frozen=True):
    type: Literal["submission-imported"] = "submission-imported"
    submission: Submission
    at: datetime


type SubmissionEvent = SubmissionImported


class SubmissionEntity(EventSourcedEntity[Submission | None, SubmissionEvent]):
    entity_type: ClassVar[str] = "submission"
    event_adapter: ClassVar[TypeAdapter[SubmissionEvent]] = TypeAdapter(
        SubmissionEvent
    )

    def empty_state(self, entity_id: str) -> Submission | None:
        return None

    def apply(
        self, state: Submission | None, event: SubmissionEvent
    ) -> Submission | None:
        match event:
            case SubmissionImported(submission=submission):
                return submission

    def import_submission(
        self,
        entity_id: str,
        state: Submission | None,
        queue_id: str,
        questions: dict[QuestionId, QuestionAnswer],
        at: datetime,
    ) -> list[SubmissionEvent]:
        if state is not None:
            raise EntityAlreadyExistsError(self.entity_type, entity_id)
        submission = Submission(
            submission_id=entity_id,
            queue_id=check_queue_id(queue_id),
            questions=questions,
        )
        return [SubmissionImported(submission=submission, at=at)]
