"""JudgeAssignment entity — which judges evaluate a question within a queue.

Keyed by the composite id "{queue_id}|{question_id}". The judge ids form a set;
adding a present judge or removing an absent one proposes no event.
"""

from datetime import datetime
from typing import Annotated, ClassVar, Literal

from pydantic import BaseModel, Field, TypeAdapter

from qjudge.core.errors import QJudgeError
from qjudge.eventstore.domain.entity import EventSourcedEntity

KEY_SEPARATOR = "|"


class InvalidAssignmentKeyError(QJudgeError):
    """Raised when a composite assignment key cannot be built or split."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(
            f"Failed to parse assignment key {key!r}: expected 'queue_id|question_id'"
        )


class InvalidQueueIdError(QJudgeError):
    """Raised when a queue id could not be part of an assignment key."""

    def __init__(self, queue_id: str) -> None:
        self.queue_id = queue_id
        super().__init__(
            f"Failed to accept queue id {queue_id!r}: "
            f"it must be non-empty and must not contain {KEY_SEPARATOR!r}"
        )


def check_queue_id(queue_id: str) -> str:
    if not queue_id or KEY_SEPARATOR in queue_id:
        raise InvalidQueueIdError(queue_id)
    return queue_id


def assignment_key(queue_id: str, question_id: str) -> str:
    """Build the composite entity id for (queue_id, question_id)."""
    key = f"{queue_id}{KEY_SEPARATOR}{question_id}"
    if not queue_id or not question_id or KEY_SEPARATOR in queue_id:
        raise InvalidAssignmentKeyError(key)
    return key


def split_assignment_key(key: str) -> tuple[str, str]:
    queue_id, sep, question_id = key.partition(KEY_SEPARATOR)
    if not sep or not queue_id or not question_id:
        raise InvalidAssignmentKeyError(key)
    return queue_id, question_id


class JudgeAssignment(BaseModel, frozen=True):
    queue_id: str
    question_id: str
    judge_ids: tuple[str, ...] = ()

    def with_judge_ids(self, judge_ids: set[str]) -> "JudgeAssignment":
        return self.model_copy(update={"judge_ids": tuple(sorted(judge_ids))})


class AssignmentsSet(BaseModel, frozen=True):
    type: Literal["assignments-set"] = "assignments-set"
    judge_ids: tuple[str, ...]
    at: datetime


class JudgeAdded(BaseModel, frozen=True):
    type: Literal["judge-added"] = "judge-added"
    judge_id: str
    at: datetime


class JudgeRemoved(BaseModel, frozen=True):
    type: Literal["judge-removed"] = "judge-removed"
    judge_id: str
    at: datetime


class AssignmentsDeleted(BaseModel, frozen=True):
    type: Literal["assignments-deleted"] = "assignments-deleted"
    at: datetime


type AssignmentEvent = Annotated[
    AssignmentsSet | JudgeAdded | JudgeRemoved | AssignmentsDeleted,
    Field(discriminator="type"),
]


class JudgeAssignmentEntity(EventSourcedEntity[JudgeAssignment, AssignmentEvent]):
    entity_type: ClassVar[str] = "judge-assignment"
    event_adapter: ClassVar[TypeAdapter[AssignmentEvent]] = TypeAdapter(
        AssignmentEvent
    )

    def empty_state(self, entity_id: str) -> JudgeAssignment:
        queue_id, question_id = split_assignment_key(entity_id)
        return JudgeAssignment(queue_id=queue_id, question_id=question_id)

    def apply(self, state: JudgeAssignment, event: AssignmentEvent) -> JudgeAssignment:
        match event:
            case AssignmentsSet(judge_ids=judge_ids):
                return state.with_judge_ids(set(judge_ids))
            case JudgeAdded(judge_id=judge_id):
                return state.with_judge_ids({*state.judge_ids, judge_id})
            case JudgeRemoved(judge_id=judge_id):
                return state.with_judge_ids(set(state.judge_ids) - {judge_id})
            case AssignmentsDeleted():
                return state.with_judge_ids(set())

    def set_assignments(
        self,
        entity_id: str,
        state: JudgeAssignment,
        judge_ids: set[str],
        at: datetime,
    ) -> list[AssignmentEvent]:
        return [AssignmentsSet(judge_ids=tuple(sorted(judge_ids)), at=at)]

    def add_judge(
        self, entity_id: str, state: JudgeAssignment, judge_id: str, at: datetime
    ) -> list[AssignmentEvent]:
        if judge_id in state.judge_ids:
            return []
        return [JudgeAdded(judge_id=judge_id, at=at)]

    def remove_judge(
        self, entity_id: str, state: JudgeAssignment, judge_id: str, at: datetime
    ) -> list[AssignmentEvent]:
        if judge_id not in state.judge_ids:
            return []
        return [JudgeRemoved(judge_id=judge_id, at=at)]

    def delete_assignments(
        self, entity_id: str, state: JudgeAssignment, at: datetime
    ) -> list[AssignmentEvent]:
        return [AssignmentsDeleted(at=at)]
