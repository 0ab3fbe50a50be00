"""View projector configuration model."""

from pydantic import BaseModel, Field


class ProjectorConfig(BaseModel, frozen=True):
    poll_interval_seconds: float = Field(default=0.5, gt=0.0)
    batch_size: int = Field(default=500, ge=1)
