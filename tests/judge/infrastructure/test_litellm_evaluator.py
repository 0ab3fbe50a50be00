"""Tests for LiteLLMEvaluator and reply parsing."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from qjudge.config.domain.evaluator import EvaluatorConfig
from qjudge.judge.domain.verdict import EvaluationResponse, InvalidVerdictError, Verdict
from qjudge.judge.infrastructure.errors import JudgeInvocationError
from qjudge.judge.infrastructure.litellm import LiteLLMEvaluator, parse_evaluation_reply
from tests.judge.fake_observer import FakeJudgeObserver

ACOMPLETION = "qjudge.judge.infrastructure.litellm.litellm.acompletion"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_evaluator(
    temperature: float = 0.0, timeout_seconds: float = 1800.0
) -> tuple[LiteLLMEvaluator, FakeJudgeObserver]:
    observer = FakeJudgeObserver()
    evaluator = LiteLLMEvaluator(
        config=EvaluatorConfig(temperature=temperature, timeout_seconds=timeout_seconds),
        observer=observer,
    )
    return evaluator, observer


def _make_acompletion_response(content: str | None) -> MagicMock:
    """Build a mock litellm response object with the given message content."""
    message = MagicMock()
    message.content = content
    choice = MagicMock()
    choice.message = message
    response = MagicMock()
    response.choices = [choice]
    return response


def _reply(verdict: str = "pass", reasoning: str | None = "Matches the rubric.") -> str:
    return json.dumps({"verdict": verdict, "reasoning": reasoning})


async def _evaluate(evaluator: LiteLLMEvaluator, mock: AsyncMock) -> EvaluationResponse:
    with patch(ACOMPLETION, new=mock):
        return await evaluator.evaluate(
            system_prompt="Rubric", user_prompt="Answer", model="gpt-4o-mini"
        )


# ---------------------------------------------------------------------------
# Construction: temperature warning
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_zero_temperature_emits_no_warning(self) -> None:
        _, observer = _make_evaluator(temperature=0.0)

        assert observer.temperature_warnings == []

    def test_positive_temperature_emits_warning(self) -> None:
        _, observer = _make_evaluator(temperature=0.7)

        assert observer.temperature_warnings[0].temperature == pytest.approx(0.7)


# ---------------------------------------------------------------------------
# evaluate(): success path
# ---------------------------------------------------------------------------


class TestEvaluateSuccess:
    async def test_returns_parsed_verdict(self) -> None:
        evaluator, _ = _make_evaluator()
        mock = AsyncMock(return_value=_make_acompletion_response(_reply("FAIL", "No.")))

        result = await _evaluate(evaluator, mock)

        assert result.verdict == Verdict.FAIL
        assert result.reasoning == "No."

    async def test_passes_model_settings_and_messages(self) -> None:
        evaluator, _ = _make_evaluator(temperature=0.2, timeout_seconds=30.0)
        mock = AsyncMock(return_value=_make_acompletion_response(_reply()))

        await _evaluate(evaluator, mock)

        kwargs = mock.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["temperature"] == pytest.approx(0.2)
        assert kwargs["timeout"] == pytest.approx(30.0)
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"] == [
            {"role": "system", "content": "Rubric"},
            {"role": "user", "content": "Answer"},
        ]

    async def test_emits_started_and_completed(self) -> None:
        evaluator, observer = _make_evaluator()
        mock = AsyncMock(return_value=_make_acompletion_response(_reply()))

        await _evaluate(evaluator, mock)

        assert [e.model for e in observer.started] == ["gpt-4o-mini"]
        assert observer.completed[0].verdict == "PASS"
        assert observer.completed[0].duration_ms >= 0
        assert observer.failed == []


# ---------------------------------------------------------------------------
# evaluate(): failure paths
# ---------------------------------------------------------------------------


class TestEvaluateFailure:
    async def test_litellm_exception_is_wrapped(self) -> None:
        evaluator, observer = _make_evaluator()
        mock = AsyncMock(side_effect=ConnectionError("connection reset"))

        with pytest.raises(JudgeInvocationError) as exc_info:
            await _evaluate(evaluator, mock)

        assert str(exc_info.value).startswith("Failed to ")
        assert "connection reset" in str(exc_info.value)
        assert observer.failed[0].reason == "connection reset"

    async def test_unparseable_reply_emits_failed(self) -> None:
        evaluator, observer = _make_evaluator()
        mock = AsyncMock(return_value=_make_acompletion_response("not json"))

        with pytest.raises(JudgeInvocationError):
            await _evaluate(evaluator, mock)

        assert len(observer.failed) == 1
        assert observer.completed == []

    async def test_unknown_verdict_raises(self) -> None:
        evaluator, observer = _make_evaluator()
        mock = AsyncMock(return_value=_make_acompletion_response(_reply("maybe")))

        with pytest.raises(InvalidVerdictError):
            await _evaluate(evaluator, mock)

        assert len(observer.failed) == 1

    async def test_no_choices_raises(self) -> None:
        evaluator, _ = _make_evaluator()
        response = MagicMock()
        response.choices = []

        with pytest.raises(JudgeInvocationError, match="no choices"):
            await _evaluate(evaluator, AsyncMock(return_value=response))


# ---------------------------------------------------------------------------
# parse_evaluation_reply()
# ---------------------------------------------------------------------------


class TestParseEvaluationReply:
    def test_plain_json(self) -> None:
        result = parse_evaluation_reply(_reply("inconclusive", "Ambiguous question."))

        assert result.verdict == Verdict.INCONCLUSIVE
        assert result.reasoning == "Ambiguous question."

    def test_fenced_json_block(self) -> None:
        content = f"Here is my verdict:\n```json\n{_reply('pass')}\n```\nThanks."

        assert parse_evaluation_reply(content).verdict == Verdict.PASS

    def test_null_reasoning_becomes_empty(self) -> None:
        assert parse_evaluation_reply(_reply("pass", None)).reasoning == ""

    @pytest.mark.parametrize(
        "content",
        [
            None,
            "",
            "no json here",
            "```json\n{broken\n```",
            json.dumps(["pass"]),
            json.dumps({"reasoning": "no verdict"}),
            json.dumps({"verdict": None}),
        ],
        ids=["none", "empty", "prose", "broken-fence", "array", "missing", "null"],
    )
    def test_malformed_replies_raise(self, content: str | None) -> None:
        with pytest.raises(JudgeInvocationError):
            parse_evaluation_reply(content)
