"""CheckpointStore Protocol — durable storage for RunPlan checkpoints."""

from typing import Protocol

from qjudge.orchestration.domain.plan import RunPlan


class CheckpointStore(Protocol):
    def save(self, plan: RunPlan) -> None: ...

    def load(self, run_id: str) -> RunPlan | None: ...

    def list_unfinished(self) -> list[RunPlan]: ...
