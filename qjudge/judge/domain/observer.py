"""JudgeObserver port — domain events emitted during judge evaluations."""

from typing import Protocol


class JudgeObserver(Protocol):
    """Observer port for judge domain events.

    Implementations may log to structlog, record for tests, or emit metrics.
    """

    def judge_evaluation_started(self, model: str) -> None: ...

    def judge_evaluation_completed(
        self, model: str, verdict: str, duration_ms: int
    ) -> None: ...

    def judge_evaluation_failed(self, model: str, reason: str) -> None: ...

    def judge_high_temperature_warned(self, temperature: float) -> None: ...
