"""LiteLLMEvaluator — evaluator implementation using LiteLLM for structured verdicts."""

import json
import re
import time
from typing import Any

import litellm
from pydantic import ValidationError

from qjudge.config.domain.evaluator import EvaluatorConfig
from qjudge.judge.domain.observer import JudgeObserver
from qjudge.judge.domain.verdict import EvaluationResponse, InvalidVerdictError
from qjudge.judge.infrastructure.errors import JudgeInvocationError

_FENCED_JSON = re.compile(r"```(?:json)?[^\n]*\n(.*?)```", re.DOTALL)


class LiteLLMEvaluator:
    """Evaluator that delegates to an LLM via LiteLLM.

    The model comes from each call (it is a per-judge setting); temperature and
    the request timeout come from config and apply to every call.
    """

    def __init__(self, config: EvaluatorConfig, observer: JudgeObserver) -> None:
        litellm.suppress_debug_info = True
        self._config = config
        self._observer = observer

        if config.temperature > 0.0:
            self._observer.judge_high_temperature_warned(temperature=config.temperature)

    async def evaluate(
        self, system_prompt: str, user_prompt: str, model: str
    ) -> EvaluationResponse:
        """Invoke the LLM and return its parsed verdict.

        Raises:
            JudgeInvocationError: if the call fails or the reply is not valid JSON.
            InvalidVerdictError: if the reply carries an unknown verdict token.
        """
        self._observer.judge_evaluation_started(model=model)

        start = time.monotonic()
        try:
            response = await litellm.acompletion(
                model=model,
                temperature=self._config.temperature,
                timeout=self._config.timeout_seconds,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
            )
        except Exception as exc:
            reason = str(exc) or type(exc).__name__
            self._observer.judge_evaluation_failed(model=model, reason=reason)
            raise JudgeInvocationError(reason=reason) from exc

        duration_ms = int((time.monotonic() - start) * 1000)

        try:
            content = response.choices[0].message.content
            result = parse_evaluation_reply(content)
        except (JudgeInvocationError, InvalidVerdictError) as exc:
            self._observer.judge_evaluation_failed(model=model, reason=str(exc))
            raise
        except (AttributeError, IndexError) as exc:
            reason = f"LLM returned no choices: {exc}"
            self._observer.judge_evaluation_failed(model=model, reason=reason)
            raise JudgeInvocationError(reason=reason) from exc

        self._observer.judge_evaluation_completed(
            model=model,
            verdict=result.verdict.value,
            duration_ms=duration_ms,
        )
        return result


def parse_evaluation_reply(content: str | None) -> EvaluationResponse:
    """Parse {"verdict": ..., "reasoning": ...}, accepting a fenced ```json block.

    Raises:
        JudgeInvocationError: if no JSON object with a verdict can be found.
        InvalidVerdictError: if the verdict token is unknown.
    """
    if not content:
        raise JudgeInvocationError(reason="LLM returned an empty reply")

    data = _load_json_object(content)
    if "verdict" not in data or data["verdict"] is None:
        raise JudgeInvocationError(reason="Missing 'verdict' field in LLM response")

    try:
        return EvaluationResponse.model_validate(
            {"verdict": data["verdict"], "reasoning": data.get("reasoning")}
        )
    except ValidationError as exc:
        raise JudgeInvocationError(reason=f"Invalid LLM response: {exc}") from exc


def _load_json_object(content: str) -> dict[str, Any]:
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        match = _FENCED_JSON.search(content)
        if match is None:
            raise JudgeInvocationError(
                reason=f"Invalid JSON response from LLM: {exc}"
            ) from exc
        try:
            data = json.loads(match.group(1).strip())
        except json.JSONDecodeError as inner:
            raise JudgeInvocationError(
                reason=f"Invalid JSON response from LLM: {inner}"
            ) from inner

    if not isinstance(data, dict):
        raise JudgeInvocationError(reason="LLM response is not a JSON object")
    return data
