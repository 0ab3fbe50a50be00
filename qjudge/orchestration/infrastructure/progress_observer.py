"""ProgressOrchestratorObserver — renders one Rich progress bar per run to stderr."""

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)


def _make_progress(console: Console) -> Progress:
    return Progress(
        TextColumn("{task.description}"),
        BarColumn(bar_width=40),
        MofNCompleteColumn(),
        TextColumn("[red]{task.fields[failed]} failed"),
        TimeElapsedColumn(),
        console=console,
        transient=False,
    )


class ProgressOrchestratorObserver:
    """Shows done/planned per run; failed tasks count as done and are tallied.

    A run resumed past planning gets its bar on the first task, without a total.

    Pass ``disabled=True`` to suppress all terminal output (useful in tests).

    Does NOT inherit from OrchestratorObserver (structural typing via Protocol).
    """

    def __init__(self, disabled: bool = False) -> None:
        self._disabled = disabled
        self._progress: Progress | None = None
        self._task_ids: dict[str, TaskID] = {}
        self._failed: dict[str, int] = {}
        self._open_runs: set[str] = set()

    def _ensure_task(self, run_id: str, total: int | None) -> None:
        self._failed.setdefault(run_id, 0)
        self._open_runs.add(run_id)
        if self._disabled:
            return
        if self._progress is None:
            self._progress = _make_progress(console=Console(stderr=True))
            self._progress.start()
        if run_id in self._task_ids:
            if total is not None:
                self._progress.update(self._task_ids[run_id], total=float(total))
            return
        self._task_ids[run_id] = self._progress.add_task(
            description=f"run {run_id[:8]}",
            total=float(total) if total is not None else None,
            failed=0,
        )

    def _advance(self, run_id: str) -> None:
        if self._progress is None or run_id not in self._task_ids:
            return
        self._progress.update(
            self._task_ids[run_id], advance=1, failed=self._failed.get(run_id, 0)
        )

    def run_started(self, run_id: str, queue_id: str) -> None:
        pass

    def run_planned(self, run_id: str, planned_count: int) -> None:
        self._ensure_task(run_id=run_id, total=planned_count)

    def task_started(self, run_id: str, task_key: str) -> None:
        if run_id not in self._open_runs:
            self._ensure_task(run_id=run_id, total=None)

    def task_completed(self, run_id: str, task_key: str, verdict: str) -> None:
        self._advance(run_id=run_id)

    def task_failed(self, run_id: str, task_key: str, reason: str) -> None:
        self._failed[run_id] = self._failed.get(run_id, 0) + 1
        self._advance(run_id=run_id)

    def step_replayed(self, run_id: str, step: str, reason: str) -> None:
        # A task counted before the crash still moves the bar.
        if step == "process-task":
            self._advance(run_id=run_id)

    def run_suspended(self, run_id: str, state: str, pending: int) -> None:
        self._close(run_id=run_id)

    def run_done(self, run_id: str, completed_count: int, failed_count: int) -> None:
        self._close(run_id=run_id)

    def run_errored(self, run_id: str, reason: str) -> None:
        self._close(run_id=run_id)

    def _close(self, run_id: str) -> None:
        self._open_runs.discard(run_id)
        if self._progress is not None and not self._open_runs:
            self._progress.stop()
            self._progress = None
            self._task_ids = {}
