"""Run entity — progress counters and status of one evaluation run."""

from collections.abc import Iterable
from datetime import datetime
from enum import StrEnum
from typing import Annotated, ClassVar, Literal

from pydantic import BaseModel, Field, TypeAdapter

from qjudge.eventstore.domain.entity import EventSourcedEntity
from qjudge.eventstore.domain.errors import (
    EntityAlreadyExistsError,
    EntityNotFoundError,
    EntityRejectedError,
)


class RunStatus(StrEnum):
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class RunAlreadyFinishedError(EntityRejectedError):
    """Raised when a progress mark would push the totals past the planned count."""

    def __init__(self, entity_id: str) -> None:
        super().__init__(
            entity_type=RunEntity.entity_type,
            entity_id=entity_id,
            reason="all planned tasks are already counted",
        )


class TaskAlreadyCountedError(EntityRejectedError):
    """Raised when the same task is marked twice, e.g. on a replayed step."""

    def __init__(self, entity_id: str, task_key: str) -> None:
        self.task_key = task_key
        super().__init__(
            entity_type=RunEntity.entity_type,
            entity_id=entity_id,
            reason=f"task {task_key!r} is already counted",
        )


class Run(BaseModel, frozen=True):
    run_id: str = Field(min_length=1)
    queue_id: str
    status: RunStatus = RunStatus.RUNNING
    planned_count: int = Field(ge=0)
    completed_count: int = Field(default=0, ge=0)
    failed_count: int = Field(default=0, ge=0)
    started_at: datetime
    completed_at: datetime | None = None
    counted_tasks: frozenset[str] = frozenset()

    @property
    def total_processed(self) -> int:
        return self.completed_count + self.failed_count

    @property
    def is_finished(self) -> bool:
        return self.status in (RunStatus.COMPLETED, RunStatus.FAILED)

    @property
    def progress_percent(self) -> float:
        if self.planned_count == 0:
            return 100.0 if self.is_finished else 0.0
        return 100.0 * self.total_processed / self.planned_count


class RunStarted(BaseModel, frozen=True):
    type: Literal["run-started"] = "run-started"
    run: Run


class RunProgressUpdated(BaseModel, frozen=True):
    type: Literal["run-progress-updated"] = "run-progress-updated"
    task_key: str | None = None
    completed_count: int
    failed_count: int
    status: RunStatus
    completed_at: datetime | None


type RunEvent = Annotated[RunStarted | RunProgressUpdated, Field(discriminator="type")]


def determine_status(planned: int, completed: int, failed: int) -> RunStatus:
    """RUNNING until every planned task is counted; FAILED only if none succeeded."""
    if completed + failed < planned:
        return RunStatus.RUNNING
    if completed == 0 and failed > 0:
        return RunStatus.FAILED
    return RunStatus.COMPLETED


class RunEntity(EventSourcedEntity[Run | None, RunEvent]):
    entity_type: ClassVar[str] = "run"
    event_adapter: ClassVar[TypeAdapter[RunEvent]] = TypeAdapter(RunEvent)

    def empty_state(self, entity_id: str) -> Run | None:
        return None

    def apply(self, state: Run | None, event: RunEvent) -> Run | None:
        state = self._fold_counters(state=state, event=event)
        if state is None or not isinstance(event, RunProgressUpdated):
            return state
        if event.task_key is None:
            return state
        return state.model_copy(
            update={"counted_tasks": state.counted_tasks | {event.task_key}}
        )

    def replay(self, entity_id: str, events: Iterable[RunEvent]) -> Run | None:
        """Fold the log, collecting counted task keys into one set as it goes."""
        state = self.empty_state(entity_id)
        counted: set[str] = set()
        for event in events:
            state = self._fold_counters(state=state, event=event)
            match event:
                case RunStarted(run=run):
                    counted = set(run.counted_tasks)
                case RunProgressUpdated(task_key=str() as task_key):
                    counted.add(task_key)
        if state is None:
            return None
        return state.model_copy(update={"counted_tasks": frozenset(counted)})

    def _fold_counters(self, state: Run | None, event: RunEvent) -> Run | None:
        match event:
            case RunStarted(run=run):
                return run
            case RunProgressUpdated():
                if state is None:
                    return None
                return state.model_copy(
                    update={
                        "completed_count": event.completed_count,
                        "failed_count": event.failed_count,
                        "status": event.status,
                        "completed_at": event.completed_at,
                    }
                )

    def start(
        self,
        entity_id: str,
        state: Run | None,
        queue_id: str,
        planned_count: int,
        at: datetime,
    ) -> list[RunEvent]:
        """Start the run. A run with nothing planned is finished immediately."""
        if state is not None:
            raise EntityAlreadyExistsError(self.entity_type, entity_id)
        status = determine_status(planned=planned_count, completed=0, failed=0)
        run = Run(
            run_id=entity_id,
            queue_id=queue_id,
            status=status,
            planned_count=planned_count,
            started_at=at,
            completed_at=at if status != RunStatus.RUNNING else None,
        )
        return [RunStarted(run=run)]

    def mark_completed(
        self,
        entity_id: str,
        state: Run | None,
        at: datetime,
        task_key: str | None = None,
    ) -> list[RunEvent]:
        run = self._require_markable(entity_id=entity_id, state=state, task_key=task_key)
        return [
            self._progress(
                run=run,
                completed=run.completed_count + 1,
                failed=run.failed_count,
                task_key=task_key,
                at=at,
            )
        ]

    def mark_failed(
        self,
        entity_id: str,
        state: Run | None,
        at: datetime,
        task_key: str | None = None,
    ) -> list[RunEvent]:
        run = self._require_markable(entity_id=entity_id, state=state, task_key=task_key)
        return [
            self._progress(
                run=run,
                completed=run.completed_count,
                failed=run.failed_count + 1,
                task_key=task_key,
                at=at,
            )
        ]

    def _require_markable(
        self, entity_id: str, state: Run | None, task_key: str | None
    ) -> Run:
        if state is None:
            raise EntityNotFoundError(self.entity_type, entity_id)
        if task_key is not None and task_key in state.counted_tasks:
            raise TaskAlreadyCountedError(entity_id=entity_id, task_key=task_key)
        if state.total_processed >= state.planned_count:
            raise RunAlreadyFinishedError(entity_id=entity_id)
        return state

    def _progress(
        self,
        run: Run,
        completed: int,
        failed: int,
        task_key: str | None,
        at: datetime,
    ) -> RunProgressUpdated:
        status = determine_status(
            planned=run.planned_count, completed=completed, failed=failed
        )
        # completed_at is stamped once, on the terminal transition.
        completed_at = run.completed_at
        if status != RunStatus.RUNNING and run.status == RunStatus.RUNNING:
            completed_at = at
        return RunProgressUpdated(
            task_key=task_key,
            completed_count=completed,
            failed_count=failed,
            status=status,
            completed_at=completed_at,
        )
