"""AdminService — the administrative surface over entities, runs and views.

Every method maps directly onto an entity command, an orchestrator operation
or a view query. View reads reflect what the projector has applied; call
refresh_views() first when a write must be visible.
"""

import asyncio
import uuid
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

from qjudge.assignment.domain.assignment import (
    JudgeAssignment,
    JudgeAssignmentEntity,
    assignment_key,
)
from qjudge.core.db import utcnow
from qjudge.eventstore.application.repository import EntityRepository
from qjudge.eventstore.domain.errors import EntityNotFoundError
from qjudge.judge.domain.judge import Judge, JudgeEntity
from qjudge.orchestration.application.orchestrator import RunOrchestrator
from qjudge.orchestration.domain.plan import RunPlan
from qjudge.run.domain.run import Run
from qjudge.submission.domain.submission import Submission, SubmissionEntity
from qjudge.submission.infrastructure.json_loader import JsonSubmissionLoader
from qjudge.views.infrastructure.projector import ViewProjector
from qjudge.views.infrastructure.queries import ViewQueries


def _new_judge_id() -> str:
    return str(uuid.uuid4())


class AdminService:
    def __init__(
        self,
        judges: EntityRepository[Judge | None, Any],
        submissions: EntityRepository[Submission | None, Any],
        assignments: EntityRepository[JudgeAssignment, Any],
        runs: EntityRepository[Run | None, Any],
        submission_loader: JsonSubmissionLoader,
        orchestrator: RunOrchestrator,
        projector: ViewProjector,
        views: ViewQueries,
        default_model: str,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = _new_judge_id,
    ) -> None:
        self._judges = judges
        self._submissions = submissions
        self._assignments = assignments
        self._runs = runs
        self._submission_loader = submission_loader
        self._orchestrator = orchestrator
        self._projector = projector
        self._views = views
        self._default_model = default_model
        self._clock = clock
        self._id_factory = id_factory
        self._judge_entity = JudgeEntity()
        self._submission_entity = SubmissionEntity()
        self._assignment_entity = JudgeAssignmentEntity()

    @property
    def views(self) -> ViewQueries:
        return self._views

    def refresh_views(self) -> int:
        """Project every pending event. Returns how many were applied."""
        return self._projector.catch_up()

    def rebuild_views(self) -> int:
        return self._projector.rebuild()

    async def watch_views(self, stop: asyncio.Event) -> None:
        """Keep projecting new events until stop is set."""
        await self._projector.run(stop=stop)

    # Judges

    def create_judge(
        self,
        name: str,
        system_prompt: str,
        target_model: str | None = None,
        active: bool = True,
        judge_id: str | None = None,
    ) -> Judge:
        judge_id = judge_id or self._id_factory()
        judge = self._judges.execute(
            judge_id,
            self._judge_entity.create,
            name=name,
            system_prompt=system_prompt,
            target_model=target_model or self._default_model,
            active=active,
            at=self._clock(),
        )
        assert judge is not None  # a created judge never folds to None
        return judge

    def update_judge(
        self,
        judge_id: str,
        name: str | None = None,
        system_prompt: str | None = None,
        target_model: str | None = None,
    ) -> Judge:
        """Change the given fields; the others keep their current value."""
        current = self.get_judge(judge_id)
        judge = self._judges.execute(
            judge_id,
            self._judge_entity.update,
            name=name if name is not None else current.name,
            system_prompt=(
                system_prompt if system_prompt is not None else current.system_prompt
            ),
            target_model=(
                target_model if target_model is not None else current.target_model
            ),
            at=self._clock(),
        )
        assert judge is not None
        return judge

    def activate_judge(self, judge_id: str) -> Judge:
        return self._set_active(judge_id=judge_id, active=True)

    def deactivate_judge(self, judge_id: str) -> Judge:
        return self._set_active(judge_id=judge_id, active=False)

    def _set_active(self, judge_id: str, active: bool) -> Judge:
        judge = self._judges.execute(
            judge_id, self._judge_entity.set_active, active=active, at=self._clock()
        )
        assert judge is not None
        return judge

    def delete_judge(self, judge_id: str) -> None:
        self._judges.execute(judge_id, self._judge_entity.delete, at=self._clock())

    def get_judge(self, judge_id: str) -> Judge:
        """Load a judge from its log.

        Raises:
            EntityNotFoundError: if the judge does not exist.
        """
        judge = self._judges.load(judge_id)
        if judge is None:
            raise EntityNotFoundError(self._judges.entity_type, judge_id)
        return judge

    # Assignments

    def set_assignments(
        self, queue_id: str, question_id: str, judge_ids: set[str]
    ) -> JudgeAssignment:
        return self._assignments.execute(
            assignment_key(queue_id=queue_id, question_id=question_id),
            self._assignment_entity.set_assignments,
            judge_ids=judge_ids,
            at=self._clock(),
        )

    def add_judge_to_question(
        self, queue_id: str, question_id: str, judge_id: str
    ) -> JudgeAssignment:
        return self._assignments.execute(
            assignment_key(queue_id=queue_id, question_id=question_id),
            self._assignment_entity.add_judge,
            judge_id=judge_id,
            at=self._clock(),
        )

    def remove_judge_from_question(
        self, queue_id: str, question_id: str, judge_id: str
    ) -> JudgeAssignment:
        return self._assignments.execute(
            assignment_key(queue_id=queue_id, question_id=question_id),
            self._assignment_entity.remove_judge,
            judge_id=judge_id,
            at=self._clock(),
        )

    def clear_assignments(self, queue_id: str, question_id: str) -> JudgeAssignment:
        return self._assignments.execute(
            assignment_key(queue_id=queue_id, question_id=question_id),
            self._assignment_entity.delete_assignments,
            at=self._clock(),
        )

    def get_assignment(self, queue_id: str, question_id: str) -> JudgeAssignment:
        return self._assignments.load(
            assignment_key(queue_id=queue_id, question_id=question_id)
        )

    # Submissions

    def import_submission(self, submission: Submission) -> Submission:
        imported = self._submissions.execute(
            submission.submission_id,
            self._submission_entity.import_submission,
            queue_id=submission.queue_id,
            questions=submission.questions,
            at=self._clock(),
        )
        assert imported is not None
        return imported

    def import_submissions(self, path: Path) -> list[Submission]:
        """Import every submission in a JSON file, stopping at the first rejection."""
        return [
            self.import_submission(submission)
            for submission in self._submission_loader.load(path=path)
        ]

    def get_submission(self, submission_id: str) -> Submission:
        submission = self._submissions.load(submission_id)
        if submission is None:
            raise EntityNotFoundError(self._submissions.entity_type, submission_id)
        return submission

    # Runs

    async def run_queue(self, queue_id: str, run_id: str | None = None) -> RunPlan:
        """Start a run over the queue's current views and drive it to the end."""
        self.refresh_views()
        plan = await self._orchestrator.run(queue_id=queue_id, run_id=run_id)
        self.refresh_views()
        return plan

    def start_run(self, queue_id: str, run_id: str | None = None) -> RunPlan:
        """Checkpoint a new run without driving it; resume_runs picks it up."""
        return self._orchestrator.start_run(queue_id=queue_id, run_id=run_id)

    async def resume_run(self, run_id: str) -> RunPlan:
        self.refresh_views()
        plan = await self._orchestrator.drive(run_id=run_id)
        self.refresh_views()
        return plan

    async def resume_runs(self) -> list[RunPlan]:
        """Drive every unfinished run to the end."""
        self.refresh_views()
        plans = await self._orchestrator.resume_pending()
        self.refresh_views()
        return plans

    def get_run(self, run_id: str) -> Run:
        run = self._runs.load(run_id)
        if run is None:
            raise EntityNotFoundError(self._runs.entity_type, run_id)
        return run

    def get_run_plan(self, run_id: str) -> RunPlan:
        return self._orchestrator.get_plan(run_id)
