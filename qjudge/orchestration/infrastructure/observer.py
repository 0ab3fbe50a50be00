"""StructlogOrchestratorObserver — production observer that delegates to structlog."""

import structlog


class StructlogOrchestratorObserver:
    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def run_started(self, run_id: str, queue_id: str) -> None:
        self._log.info("orchestrator.run_started", run_id=run_id, queue_id=queue_id)

    def run_planned(self, run_id: str, planned_count: int) -> None:
        self._log.info(
            "orchestrator.run_planned", run_id=run_id, planned_count=planned_count
        )

    def task_started(self, run_id: str, task_key: str) -> None:
        self._log.debug("orchestrator.task_started", run_id=run_id, task_key=task_key)

    def task_completed(self, run_id: str, task_key: str, verdict: str) -> None:
        self._log.info(
            "orchestrator.task_completed",
            run_id=run_id,
            task_key=task_key,
            verdict=verdict,
        )

    def task_failed(self, run_id: str, task_key: str, reason: str) -> None:
        self._log.warning(
            "orchestrator.task_failed",
            run_id=run_id,
            task_key=task_key,
            reason=reason,
        )

    def step_replayed(self, run_id: str, step: str, reason: str) -> None:
        self._log.info(
            "orchestrator.step_replayed", run_id=run_id, step=step, reason=reason
        )

    def run_suspended(self, run_id: str, state: str, pending: int) -> None:
        self._log.info(
            "orchestrator.run_suspended", run_id=run_id, state=state, pending=pending
        )

    def run_done(self, run_id: str, completed_count: int, failed_count: int) -> None:
        self._log.info(
            "orchestrator.run_done",
            run_id=run_id,
            completed_count=completed_count,
            failed_count=failed_count,
        )

    def run_errored(self, run_id: str, reason: str) -> None:
        self._log.error("orchestrator.run_errored", run_id=run_id, reason=reason)
