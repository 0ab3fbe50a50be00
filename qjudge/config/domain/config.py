"""Top-level AppConfig aggregate — the root configuration object."""

from pydantic import BaseModel, Field

from qjudge.config.domain.database import DatabaseConfig
from qjudge.config.domain.evaluator import EvaluatorConfig
from qjudge.config.domain.projector import ProjectorConfig


class AppConfig(BaseModel, frozen=True):
    """Root configuration aggregate. Every section has defaults."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    evaluator: EvaluatorConfig = Field(default_factory=EvaluatorConfig)
    projector: ProjectorConfig = Field(default_factory=ProjectorConfig)
