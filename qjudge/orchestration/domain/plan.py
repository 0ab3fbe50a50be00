"""RunPlan — the orchestrator's private, checkpointed state for one run."""

from collections.abc import Iterable, Mapping
from enum import StrEnum

from pydantic import BaseModel, Field

from qjudge.assignment.domain.assignment import KEY_SEPARATOR


class OrchestratorState(StrEnum):
    IDLE = "IDLE"
    PLANNING = "PLANNING"
    PROCESSING = "PROCESSING"
    DONE = "DONE"


class EvaluationTask(BaseModel, frozen=True):
    """One (submission, question, judge) unit of work."""

    submission_id: str
    question_id: str
    judge_id: str

    @property
    def key(self) -> str:
        return KEY_SEPARATOR.join((self.submission_id, self.question_id, self.judge_id))


class RunPlan(BaseModel, frozen=True):
    """Checkpoint of one run's orchestration.

    planned_count stays None until planning has fixed the task list; from then
    on pending_tasks only shrinks.
    """

    run_id: str = Field(min_length=1)
    queue_id: str
    state: OrchestratorState = OrchestratorState.IDLE
    pending_tasks: tuple[EvaluationTask, ...] = ()
    planned_count: int | None = None
    completed_count: int = 0
    failed_count: int = 0

    @property
    def is_done(self) -> bool:
        return self.state == OrchestratorState.DONE

    def with_tasks(self, tasks: list[EvaluationTask]) -> "RunPlan":
        return self.model_copy(
            update={"pending_tasks": tuple(tasks), "planned_count": len(tasks)}
        )

    def after_task(self, succeeded: bool) -> "RunPlan":
        """Drop the head task and count its outcome."""
        remaining = self.pending_tasks[1:]
        return self.model_copy(
            update={
                "pending_tasks": remaining,
                "completed_count": self.completed_count + int(succeeded),
                "failed_count": self.failed_count + int(not succeeded),
                "state": (
                    OrchestratorState.PROCESSING
                    if remaining
                    else OrchestratorState.DONE
                ),
            }
        )


def plan_tasks(
    question_ids: Iterable[str],
    submission_ids: list[str],
    assigned_judges: Mapping[str, Iterable[str]],
    active_judge_ids: set[str],
) -> list[EvaluationTask]:
    """Enumerate tasks: questions outermost, then submissions, then assigned judges.

    Judges missing from active_judge_ids are skipped.
    """
    tasks: list[EvaluationTask] = []
    for question_id in question_ids:
        judge_ids = [
            judge_id
            for judge_id in assigned_judges.get(question_id, ())
            if judge_id in active_judge_ids
        ]
        for submission_id in submission_ids:
            for judge_id in judge_ids:
                tasks.append(
                    EvaluationTask(
                        submission_id=submission_id,
                        question_id=question_id,
                        judge_id=judge_id,
                    )
                )
    return tasks
