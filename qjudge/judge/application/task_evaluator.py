"""TaskEvaluator — judges a single (submission, question, judge) task.

Resolves the judge and the answer from their entities, shapes the prompts and
calls the evaluator. It does not decide which tasks to run and persists nothing.
"""

from typing import Any

from qjudge.eventstore.application.repository import EntityRepository
from qjudge.judge.domain.evaluator import JudgeEvaluator
from qjudge.judge.domain.judge import Judge
from qjudge.judge.domain.request import (
    EvaluationRequest,
    IncludedFields,
    build_system_prompt,
    build_user_prompt,
)
from qjudge.judge.domain.verdict import EvaluationResponse
from qjudge.judge.infrastructure.errors import TaskResolutionError
from qjudge.submission.domain.submission import Submission


class TaskEvaluator:
    def __init__(
        self,
        judges: EntityRepository[Judge | None, Any],
        submissions: EntityRepository[Submission | None, Any],
        evaluator: JudgeEvaluator,
        included_fields: IncludedFields | None = None,
    ) -> None:
        self._judges = judges
        self._submissions = submissions
        self._evaluator = evaluator
        self._included_fields = included_fields or IncludedFields.defaults()

    def build_request(
        self,
        run_id: str,
        queue_id: str,
        submission_id: str,
        question_id: str,
        judge_id: str,
    ) -> EvaluationRequest:
        """Resolve everything the judge needs for one task.

        Raises:
            TaskResolutionError: if the judge, the submission, or the question
                inside the submission does not exist.
        """
        judge = self._judges.load(judge_id)
        if judge is None:
            raise TaskResolutionError(f"judge {judge_id!r} not found")

        submission = self._submissions.load(submission_id)
        if submission is None:
            raise TaskResolutionError(f"submission {submission_id!r} not found")

        answer = submission.questions.get(question_id)
        if answer is None:
            raise TaskResolutionError(
                f"question {question_id!r} not found in submission {submission_id!r}"
            )

        return EvaluationRequest(
            run_id=run_id,
            submission_id=submission_id,
            queue_id=queue_id,
            question_id=question_id,
            judge_id=judge_id,
            question_text=answer.question_text,
            answer_choice=answer.answer_choice,
            answer_reasoning=answer.answer_reasoning,
            metadata=answer.metadata,
            judge_name=judge.name,
            judge_system_prompt=judge.system_prompt,
            target_model=judge.target_model,
            included_fields=self._included_fields,
        )

    async def evaluate(
        self,
        run_id: str,
        queue_id: str,
        submission_id: str,
        question_id: str,
        judge_id: str,
    ) -> EvaluationResponse:
        request = self.build_request(
            run_id=run_id,
            queue_id=queue_id,
            submission_id=submission_id,
            question_id=question_id,
            judge_id=judge_id,
        )
        return await self._evaluator.evaluate(
            system_prompt=build_system_prompt(request),
            user_prompt=build_user_prompt(request),
            model=request.target_model,
        )
