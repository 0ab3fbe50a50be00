"""Tests for TaskEvaluator."""

from datetime import UTC, datetime

import pytest

from qjudge.judge.application.task_evaluator import TaskEvaluator
from qjudge.judge.domain.judge import JudgeEntity
from qjudge.judge.domain.verdict import EvaluationResponse, Verdict
from qjudge.judge.infrastructure.errors import TaskResolutionError
from qjudge.submission.domain.submission import QuestionAnswer, SubmissionEntity
from tests.eventstore.repositories import Repositories, make_repositories
from tests.judge.fake_evaluator import FakeJudgeEvaluator

AT = datetime(2026, 1, 1, tzinfo=UTC)


def _seeded() -> Repositories:
    repos = make_repositories()
    repos.judges.execute(
        "j1",
        JudgeEntity().create,
        name="Strict",
        system_prompt="Only exact answers pass.",
        target_model="claude-3-haiku",
        active=True,
        at=AT,
    )
    repos.submissions.execute(
        "s1",
        SubmissionEntity().import_submission,
        queue_id="q1",
        questions={
            "t1": QuestionAnswer(
                question_text="2 + 2?", answer_choice="4", answer_reasoning="Arithmetic."
            )
        },
        at=AT,
    )
    return repos


def _make_evaluator(
    repos: Repositories, evaluator: FakeJudgeEvaluator | None = None
) -> tuple[TaskEvaluator, FakeJudgeEvaluator]:
    fake = evaluator if evaluator is not None else FakeJudgeEvaluator()
    return (
        TaskEvaluator(judges=repos.judges, submissions=repos.submissions, evaluator=fake),
        fake,
    )


class TestBuildRequest:
    def test_resolves_judge_and_answer(self) -> None:
        task_evaluator, _ = _make_evaluator(_seeded())

        request = task_evaluator.build_request(
            run_id="r1", queue_id="q1", submission_id="s1", question_id="t1", judge_id="j1"
        )

        assert request.judge_name == "Strict"
        assert request.target_model == "claude-3-haiku"
        assert request.question_text == "2 + 2?"
        assert request.answer_choice == "4"

    @pytest.mark.parametrize(
        ("submission_id", "question_id", "judge_id", "missing"),
        [
            ("s1", "t1", "nope", "judge 'nope'"),
            ("nope", "t1", "j1", "submission 'nope'"),
            ("s1", "nope", "j1", "question 'nope'"),
        ],
    )
    def test_missing_references_raise(
        self, submission_id: str, question_id: str, judge_id: str, missing: str
    ) -> None:
        task_evaluator, _ = _make_evaluator(_seeded())

        with pytest.raises(TaskResolutionError, match=missing):
            task_evaluator.build_request(
                run_id="r1",
                queue_id="q1",
                submission_id=submission_id,
                question_id=question_id,
                judge_id=judge_id,
            )

    def test_deleted_judge_cannot_be_resolved(self) -> None:
        repos = _seeded()
        repos.judges.execute("j1", JudgeEntity().delete, at=AT)
        task_evaluator, _ = _make_evaluator(repos)

        with pytest.raises(TaskResolutionError):
            task_evaluator.build_request(
                run_id="r1", queue_id="q1", submission_id="s1", question_id="t1", judge_id="j1"
            )


class TestEvaluate:
    async def test_calls_evaluator_with_judge_model(self) -> None:
        task_evaluator, fake = _make_evaluator(
            _seeded(),
            FakeJudgeEvaluator(
                default=EvaluationResponse(verdict=Verdict.FAIL, reasoning="Off by one.")
            ),
        )

        response = await task_evaluator.evaluate(
            run_id="r1", queue_id="q1", submission_id="s1", question_id="t1", judge_id="j1"
        )

        assert response.verdict == Verdict.FAIL
        [call] = fake.calls
        assert call.model == "claude-3-haiku"
        assert "Only exact answers pass." in call.system_prompt
        assert "2 + 2?" in call.user_prompt

    async def test_unresolvable_task_never_calls_evaluator(self) -> None:
        task_evaluator, fake = _make_evaluator(_seeded())

        with pytest.raises(TaskResolutionError):
            await task_evaluator.evaluate(
                run_id="r1", queue_id="q1", submission_id="s1", question_id="t1", judge_id="x"
            )

        assert fake.calls == []
