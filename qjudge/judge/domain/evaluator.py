"""JudgeEvaluator Protocol — structural interface for the scoring call."""

from typing import Protocol

from qjudge.judge.domain.verdict import EvaluationResponse


class JudgeEvaluator(Protocol):
    """Structural interface satisfied by any evaluator implementation.

    Raises a QJudgeError (or lets any other exception escape) on failure; the
    orchestrator treats every failure the same way.
    """

    async def evaluate(
        self, system_prompt: str, user_prompt: str, model: str
    ) -> EvaluationResponse: ...
