"""Judge entity — an LLM judge definition with a rubric and a target model."""

from datetime import datetime
from typing import Annotated, ClassVar, Literal

from pydantic import BaseModel, Field, TypeAdapter

from qjudge.eventstore.domain.entity import EventSourcedEntity
from qjudge.eventstore.domain.errors import EntityAlreadyExistsError, EntityNotFoundError

DEFAULT_TARGET_MODEL = "gpt-4o-mini"


class Judge(BaseModel, frozen=True):
    judge_id: str = Field(min_length=1)
    name: str
    system_prompt: str
    target_model: str = DEFAULT_TARGET_MODEL
    active: bool = True


class JudgeCreated(BaseModel, frozen=True):
    type: Literal["judge-created"] = "judge-created"
    judge: Judge
    at: datetime


class JudgeUpdated(BaseModel, frozen=True):
    """Carries the full snapshot after an edit or an active toggle."""

    type: Literal["judge-updated"] = "judge-updated"
    judge: Judge
    at: datetime


class JudgeDeleted(BaseModel, frozen=True):
    type: Literal["judge-deleted"] = "judge-deleted"
    judge_id: str
    at: datetime


type JudgeEvent = Annotated[
    JudgeCreated | JudgeUpdated | JudgeDeleted, Field(discriminator="type")
]


class JudgeEntity(EventSourcedEntity[Judge | None, JudgeEvent]):
    """Judges are created, edited, toggled and deleted independently of runs."""

    entity_type: ClassVar[str] = "judge"
    event_adapter: ClassVar[TypeAdapter[JudgeEvent]] = TypeAdapter(JudgeEvent)

    def empty_state(self, entity_id: str) -> Judge | None:
        return None

    def apply(self, state: Judge | None, event: JudgeEvent) -> Judge | None:
        match event:
            case JudgeCreated(judge=judge) | JudgeUpdated(judge=judge):
                return judge
            case JudgeDeleted():
                return None

    def create(
        self,
        entity_id: str,
        state: Judge | None,
        name: str,
        system_prompt: str,
        target_model: str,
        active: bool,
        at: datetime,
    ) -> list[JudgeEvent]:
        if state is not None:
            raise EntityAlreadyExistsError(self.entity_type, entity_id)
        judge = Judge(
            judge_id=entity_id,
            name=name,
            system_prompt=system_prompt,
            target_model=target_model,
            active=active,
        )
        return [JudgeCreated(judge=judge, at=at)]

    def update(
        self,
        entity_id: str,
        state: Judge | None,
        name: str,
        system_prompt: str,
        target_model: str,
        at: datetime,
    ) -> list[JudgeEvent]:
        if state is None:
            raise EntityNotFoundError(self.entity_type, entity_id)
        judge = state.model_copy(
            update={
                "name": name,
                "system_prompt": system_prompt,
                "target_model": target_model,
            }
        )
        return [JudgeUpdated(judge=judge, at=at)]

    def set_active(
        self, entity_id: str, state: Judge | None, active: bool, at: datetime
    ) -> list[JudgeEvent]:
        if state is None:
            raise EntityNotFoundError(self.entity_type, entity_id)
        return [JudgeUpdated(judge=state.model_copy(update={"active": active}), at=at)]

    def delete(
        self, entity_id: str, state: Judge | None, at: datetime
    ) -> list[JudgeEvent]:
        if state is None:
            raise EntityNotFoundError(self.entity_type, entity_id)
        return [JudgeDeleted(judge_id=entity_id, at=at)]
