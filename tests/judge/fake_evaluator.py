"""FakeJudgeEvaluator — scripted JudgeEvaluator for use in tests."""

import asyncio
from dataclasses import dataclass

from qjudge.judge.domain.verdict import EvaluationResponse, Verdict


@dataclass(frozen=True)
class EvaluateCall:
    system_prompt: str
    user_prompt: str
    model: str


class FakeJudgeEvaluator:
    """Returns scripted outcomes in call order, then the default response.

    An outcome that is an exception (or BaseException) is raised instead of
    returned. ``delay_seconds`` makes every call sleep first, for timeouts.
    """

    def __init__(
        self,
        outcomes: list[EvaluationResponse | BaseException] | None = None,
        default: EvaluationResponse | None = None,
        delay_seconds: float = 0.0,
    ) -> None:
        self._outcomes = list(outcomes or [])
        self._default = default or EvaluationResponse(
            verdict=Verdict.PASS, reasoning="Looks right."
        )
        self._delay_seconds = delay_seconds
        self.calls: list[EvaluateCall] = []

    async def evaluate(
        self, system_prompt: str, user_prompt: str, model: str
    ) -> EvaluationResponse:
        self.calls.append(
            EvaluateCall(system_prompt=system_prompt, user_prompt=user_prompt, model=model)
        )
        if self._delay_seconds:
            await asyncio.sleep(self._delay_seconds)
        outcome = self._outcomes.pop(0) if self._outcomes else self._default
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome
