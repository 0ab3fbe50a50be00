"""Observer port for the run orchestrator — defines events in domain language."""

from typing import Protocol


class OrchestratorObserver(Protocol):
    """Observer port emitting structured events during run orchestration.

    Implementations may log to structlog, record for tests, or emit metrics.
    """

    def run_started(self, run_id: str, queue_id: str) -> None: ...

    def run_planned(self, run_id: str, planned_count: int) -> None: ...

    def task_started(self, run_id: str, task_key: str) -> None: ...

    def task_completed(self, run_id: str, task_key: str, verdict: str) -> None: ...

    def task_failed(self, run_id: str, task_key: str, reason: str) -> None: ...

    def step_replayed(self, run_id: str, step: str, reason: str) -> None: ...

    def run_suspended(self, run_id: str, state: str, pending: int) -> None: ...

    def run_done(self, run_id: str, completed_count: int, failed_count: int) -> None: ...

    def run_errored(self, run_id: str, reason: str) -> None: ...
