"""Evaluator configuration model."""

from pydantic import BaseModel, Field

from qjudge.judge.domain.judge import DEFAULT_TARGET_MODEL


class EvaluatorConfig(BaseModel, frozen=True):
    default_model: str = Field(default=DEFAULT_TARGET_MODEL, min_length=1)
    temperature: float = Field(default=0.0, ge=0.0)
    # Slow model responses are tolerated; a timeout counts as a failed task.
    timeout_seconds: float = Field(default=1800.0, gt=0.0)
