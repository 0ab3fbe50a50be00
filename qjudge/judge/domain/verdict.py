"""Verdict and EvaluationResponse — the outcome of one judge evaluation."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, field_validator

from qjudge.core.errors import QJudgeError


class Verdict(StrEnum):
    PASS = "PASS"
    FAIL = "FAIL"
    INCONCLUSIVE = "INCONCLUSIVE"


class InvalidVerdictError(QJudgeError):
    """Raised when a verdict token is not one of pass, fail, inconclusive."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(
            f"Failed to parse verdict {value!r}: must be one of pass, fail, inconclusive"
        )


def parse_verdict(value: object) -> Verdict:
    """Parse a verdict token case-insensitively, ignoring surrounding whitespace.

    Raises:
        InvalidVerdictError: for None, non-strings and any other token.
    """
    if not isinstance(value, str):
        raise InvalidVerdictError(value)
    try:
        return Verdict(value.strip().upper())
    except ValueError as exc:
        raise InvalidVerdictError(value) from exc


class EvaluationResponse(BaseModel):
    """Structured reply from the evaluator: verdict plus free-text reasoning.

    Missing or null reasoning becomes the empty string.
    """

    model_config = ConfigDict(frozen=True)

    verdict: Verdict
    reasoning: str = ""

    @field_validator("verdict", mode="before")
    @classmethod
    def _parse_verdict(cls, value: object) -> Verdict:
        if isinstance(value, Verdict):
            return value
        return parse_verdict(value)

    @field_validator("reasoning", mode="before")
    @classmethod
    def _default_reasoning(cls, value: object) -> object:
        return "" if value is None else value
