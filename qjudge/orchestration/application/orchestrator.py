"""RunOrchestrator — durable, resumable state machine driving one evaluation run.

IDLE → PLANNING → PROCESSING → DONE. Every step runs against the last saved
checkpoint and ends by saving a new one, so a process torn down between steps
resumes at the next step. A step repeated because its checkpoint never landed
is observably equivalent to running it once: the task list is fixed before the
Run exists, Evaluation ids are derived from the task, and Run counters reject
a task counted twice.
"""

import asyncio
import uuid
from collections.abc import Callable
from datetime import datetime
from typing import Any

from qjudge.assignment.domain.assignment import (
    JudgeAssignment,
    assignment_key,
    check_queue_id,
)
from qjudge.core.db import utcnow
from qjudge.evaluation.domain.evaluation import Evaluation, EvaluationEntity
from qjudge.eventstore.application.repository import EntityRepository
from qjudge.eventstore.domain.errors import EntityAlreadyExistsError
from qjudge.judge.application.task_evaluator import TaskEvaluator
from qjudge.orchestration.domain.checkpoint import CheckpointStore
from qjudge.orchestration.domain.errors import (
    WorkflowAlreadyDoneError,
    WorkflowAlreadyStartedError,
    WorkflowNotFoundError,
)
from qjudge.orchestration.domain.observer import OrchestratorObserver
from qjudge.orchestration.domain.plan import (
    EvaluationTask,
    OrchestratorState,
    RunPlan,
    plan_tasks,
)
from qjudge.orchestration.domain.views import PlanningViews
from qjudge.run.domain.run import (
    Run,
    RunAlreadyFinishedError,
    RunEntity,
    TaskAlreadyCountedError,
)

DEFAULT_TIMEOUT_SECONDS = 1800.0

_EVALUATION_NAMESPACE = uuid.UUID("0f4c6a52-8d5e-4b1c-9a57-2f7e0d3c9b11")


def evaluation_id_for(run_id: str, task: EvaluationTask) -> str:
    """Stable Evaluation id for a task within a run, distinct from the task key."""
    return str(uuid.uuid5(_EVALUATION_NAMESPACE, f"{run_id}/{task.key}"))


def _new_run_id() -> str:
    return str(uuid.uuid4())


class RunOrchestrator:
    """Plans and processes runs, one checkpointed step at a time.

    Steps of one run are strictly sequential (a lock per run id); different
    runs are independent and may be driven concurrently.
    """

    def __init__(
        self,
        checkpoints: CheckpointStore,
        views: PlanningViews,
        assignments: EntityRepository[JudgeAssignment, Any],
        runs: EntityRepository[Run | None, Any],
        evaluations: EntityRepository[Evaluation | None, Any],
        task_evaluator: TaskEvaluator,
        observer: OrchestratorObserver,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = _new_run_id,
    ) -> None:
        self._checkpoints = checkpoints
        self._views = views
        self._assignments = assignments
        self._runs = runs
        self._evaluations = evaluations
        self._task_evaluator = task_evaluator
        self._observer = observer
        self._timeout_seconds = timeout_seconds
        self._clock = clock
        self._id_factory = id_factory
        self._run_entity = RunEntity()
        self._evaluation_entity = EvaluationEntity()
        self._locks: dict[str, asyncio.Lock] = {}

    def start_run(self, queue_id: str, run_id: str | None = None) -> RunPlan:
        """Allocate a run and checkpoint it in PLANNING. Nothing is evaluated yet.

        Raises:
            InvalidQueueIdError: if queue_id cannot key judge assignments.
            WorkflowAlreadyStartedError: if run_id already has an unfinished workflow.
            WorkflowAlreadyDoneError: if run_id already finished.
        """
        check_queue_id(queue_id)
        run_id = run_id or self._id_factory()
        existing = self._checkpoints.load(run_id)
        if existing is not None:
            if existing.is_done:
                raise WorkflowAlreadyDoneError(run_id=run_id)
            raise WorkflowAlreadyStartedError(run_id=run_id)

        plan = RunPlan(
            run_id=run_id, queue_id=queue_id, state=OrchestratorState.PLANNING
        )
        self._checkpoints.save(plan)
        self._observer.run_started(run_id=run_id, queue_id=queue_id)
        return plan

    def get_plan(self, run_id: str) -> RunPlan:
        plan = self._checkpoints.load(run_id)
        if plan is None:
            raise WorkflowNotFoundError(run_id=run_id)
        return plan

    async def drive(self, run_id: str, max_steps: int | None = None) -> RunPlan:
        """Run steps from the last checkpoint until DONE or max_steps steps ran.

        Raises:
            WorkflowNotFoundError: if no workflow exists for run_id.
            WorkflowAlreadyDoneError: if the workflow is already DONE.
        """
        async with self._lock_for(run_id):
            try:
                plan = await self._drive_steps(run_id=run_id, max_steps=max_steps)
            except (WorkflowNotFoundError, WorkflowAlreadyDoneError):
                self._locks.pop(run_id, None)
                raise
            # A finished run takes no further steps.
            if plan.is_done:
                self._locks.pop(run_id, None)
            return plan

    async def _drive_steps(self, run_id: str, max_steps: int | None) -> RunPlan:
        plan = self.get_plan(run_id)
        if plan.is_done:
            raise WorkflowAlreadyDoneError(run_id=run_id)

        steps = 0
        while not plan.is_done:
            if max_steps is not None and steps >= max_steps:
                self._observer.run_suspended(
                    run_id=run_id,
                    state=plan.state.value,
                    pending=len(plan.pending_tasks),
                )
                return plan
            plan = await self._step(plan)
            self._checkpoints.save(plan)
            steps += 1

        self._observer.run_done(
            run_id=run_id,
            completed_count=plan.completed_count,
            failed_count=plan.failed_count,
        )
        return plan

    async def run(self, queue_id: str, run_id: str | None = None) -> RunPlan:
        """Start a run and drive it to DONE."""
        plan = self.start_run(queue_id=queue_id, run_id=run_id)
        return await self.drive(run_id=plan.run_id)

    async def resume_pending(self) -> list[RunPlan]:
        """Drive every unfinished workflow to DONE, runs concurrently.

        A run whose step raises is reported to the observer and returned at its
        last checkpoint; the other runs carry on.
        """
        pending = self._checkpoints.list_unfinished()
        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(self._drive_isolated(run_id=p.run_id)) for p in pending]
        return [task.result() for task in tasks]

    async def _drive_isolated(self, run_id: str) -> RunPlan:
        try:
            return await self.drive(run_id=run_id)
        except Exception as exc:  # noqa: BLE001
            self._observer.run_errored(
                run_id=run_id, reason=str(exc) or type(exc).__name__
            )
            return self.get_plan(run_id)

    def _lock_for(self, run_id: str) -> asyncio.Lock:
        return self._locks.setdefault(run_id, asyncio.Lock())

    async def _step(self, plan: RunPlan) -> RunPlan:
        match plan.state:
            case OrchestratorState.PLANNING:
                return self._plan(plan)
            case OrchestratorState.PROCESSING:
                return await self._process(plan)
            case _:
                return plan

    def _plan(self, plan: RunPlan) -> RunPlan:
        if plan.planned_count is None:
            plan = plan.with_tasks(self._collect_tasks(queue_id=plan.queue_id))
            # The list is durable before the Run can exist.
            self._checkpoints.save(plan)

        planned_count = plan.planned_count or 0
        try:
            self._runs.execute(
                plan.run_id,
                self._run_entity.start,
                queue_id=plan.queue_id,
                planned_count=planned_count,
                at=self._clock(),
            )
        except EntityAlreadyExistsError as exc:
            self._observer.step_replayed(
                run_id=plan.run_id, step="start-run", reason=exc.reason
            )

        self._observer.run_planned(run_id=plan.run_id, planned_count=planned_count)
        next_state = (
            OrchestratorState.PROCESSING if plan.pending_tasks else OrchestratorState.DONE
        )
        return plan.model_copy(update={"state": next_state})

    def _collect_tasks(self, queue_id: str) -> list[EvaluationTask]:
        questions = self._views.questions_by_queue(queue_id)
        if not questions:
            return []
        submissions = self._views.submissions_by_queue(queue_id)
        if not submissions:
            return []

        # One snapshot for the whole plan.
        active_judge_ids = {judge.judge_id for judge in self._views.active_judges()}
        assigned_judges = {
            question.question_id: self._assignments.load(
                assignment_key(queue_id=queue_id, question_id=question.question_id)
            ).judge_ids
            for question in questions
        }
        return plan_tasks(
            question_ids=[question.question_id for question in questions],
            submission_ids=[submission.submission_id for submission in submissions],
            assigned_judges=assigned_judges,
            active_judge_ids=active_judge_ids,
        )

    async def _process(self, plan: RunPlan) -> RunPlan:
        task = plan.pending_tasks[0]
        self._observer.task_started(run_id=plan.run_id, task_key=task.key)

        run = self._runs.load(plan.run_id)
        if run is not None and task.key in run.counted_tasks:
            self._observer.step_replayed(
                run_id=plan.run_id, step="process-task", reason="task already counted"
            )
            return plan.after_task(succeeded=self._was_recorded(plan, task))

        succeeded = await self._evaluate_and_record(plan=plan, task=task)
        command = (
            self._run_entity.mark_completed
            if succeeded
            else self._run_entity.mark_failed
        )
        try:
            self._runs.execute(plan.run_id, command, at=self._clock(), task_key=task.key)
        except (TaskAlreadyCountedError, RunAlreadyFinishedError) as exc:
            self._observer.step_replayed(
                run_id=plan.run_id, step="mark-task", reason=exc.reason
            )
        return plan.after_task(succeeded=succeeded)

    def _was_recorded(self, plan: RunPlan, task: EvaluationTask) -> bool:
        evaluation_id = evaluation_id_for(run_id=plan.run_id, task=task)
        return self._evaluations.load(evaluation_id) is not None

    async def _evaluate_and_record(self, plan: RunPlan, task: EvaluationTask) -> bool:
        """Evaluate the task and record its Evaluation. Returns False on any failure."""
        if self._was_recorded(plan, task):
            self._observer.step_replayed(
                run_id=plan.run_id,
                step="record-evaluation",
                reason="evaluation already recorded",
            )
            return True

        try:
            async with asyncio.timeout(self._timeout_seconds):
                response = await self._task_evaluator.evaluate(
                    run_id=plan.run_id,
                    queue_id=plan.queue_id,
                    submission_id=task.submission_id,
                    question_id=task.question_id,
                    judge_id=task.judge_id,
                )
        except Exception as exc:  # noqa: BLE001
            self._observer.task_failed(
                run_id=plan.run_id,
                task_key=task.key,
                reason=str(exc) or type(exc).__name__,
            )
            return False

        try:
            self._evaluations.execute(
                evaluation_id_for(run_id=plan.run_id, task=task),
                self._evaluation_entity.record,
                run_id=plan.run_id,
                submission_id=task.submission_id,
                queue_id=plan.queue_id,
                question_id=task.question_id,
                judge_id=task.judge_id,
                verdict=response.verdict,
                reasoning=response.reasoning,
                at=self._clock(),
            )
        except EntityAlreadyExistsError as exc:
            self._observer.step_replayed(
                run_id=plan.run_id, step="record-evaluation", reason=exc.reason
            )

        self._observer.task_completed(
            run_id=plan.run_id, task_key=task.key, verdict=response.verdict.value
        )
        return True
