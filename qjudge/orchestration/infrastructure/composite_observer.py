"""CompositeOrchestratorObserver — fans out all events to a list of observers."""

from qjudge.orchestration.domain.observer import OrchestratorObserver


class CompositeOrchestratorObserver:
    """Delegates every observer event to each observer in order.

    Does NOT inherit from OrchestratorObserver (structural typing via Protocol).
    """

    def __init__(self, observers: list[OrchestratorObserver]) -> None:
        self._observers = observers

    def run_started(self, run_id: str, queue_id: str) -> None:
        for obs in self._observers:
            obs.run_started(run_id=run_id, queue_id=queue_id)

    def run_planned(self, run_id: str, planned_count: int) -> None:
        for obs in self._observers:
            obs.run_planned(run_id=run_id, planned_count=planned_count)

    def task_started(self, run_id: str, task_key: str) -> None:
        for obs in self._observers:
            obs.task_started(run_id=run_id, task_key=task_key)

    def task_completed(self, run_id: str, task_key: str, verdict: str) -> None:
        for obs in self._observers:
            obs.task_completed(run_id=run_id, task_key=task_key, verdict=verdict)

    def task_failed(self, run_id: str, task_key: str, reason: str) -> None:
        for obs in self._observers:
            obs.task_failed(run_id=run_id, task_key=task_key, reason=reason)

    def step_replayed(self, run_id: str, step: str, reason: str) -> None:
        for obs in self._observers:
            obs.step_replayed(run_id=run_id, step=step, reason=reason)

    def run_suspended(self, run_id: str, state: str, pending: int) -> None:
        for obs in self._observers:
            obs.run_suspended(run_id=run_id, state=state, pending=pending)

    def run_done(self, run_id: str, completed_count: int, failed_count: int) -> None:
        for obs in self._observers:
            obs.run_done(
                run_id=run_id,
                completed_count=completed_count,
                failed_count=failed_count,
            )

    def run_errored(self, run_id: str, reason: str) -> None:
        for obs in self._observers:
            obs.run_errored(run_id=run_id, reason=reason)
