"""Tests for the Evaluation entity — write-once."""

from datetime import UTC, datetime

import pytest

from qjudge.evaluation.domain.evaluation import Evaluation, EvaluationEntity
from qjudge.eventstore.domain.errors import EntityAlreadyExistsError
from qjudge.judge.domain.verdict import Verdict
from tests.eventstore.repositories import Repositories, make_repositories

AT = datetime(2026, 1, 1, tzinfo=UTC)
ENTITY = EvaluationEntity()


def _record(
    repos: Repositories, verdict: Verdict = Verdict.PASS, reasoning: str = "ok"
) -> Evaluation | None:
    return repos.evaluations.execute(
        "e1",
        ENTITY.record,
        run_id="r1",
        submission_id="s1",
        queue_id="q1",
        question_id="t1",
        judge_id="j1",
        verdict=verdict,
        reasoning=reasoning,
        at=AT,
    )


class TestRecord:
    def test_record_sets_every_field(self) -> None:
        evaluation = _record(make_repositories())

        assert evaluation is not None
        assert evaluation.evaluation_id == "e1"
        assert evaluation.verdict == Verdict.PASS
        assert evaluation.evaluated_at == AT

    def test_second_record_rejects_and_keeps_first(self) -> None:
        repos = make_repositories()
        _record(repos)

        with pytest.raises(EntityAlreadyExistsError):
            _record(repos, verdict=Verdict.FAIL, reasoning="changed my mind")

        evaluation = repos.evaluations.load("e1")
        assert evaluation is not None
        assert evaluation.verdict == Verdict.PASS
        assert len(repos.evaluations.events("e1")) == 1

    def test_replay_reproduces_live_state(self) -> None:
        repos = make_repositories()
        live = _record(repos)

        assert ENTITY.replay("e1", repos.evaluations.events("e1")) == live
