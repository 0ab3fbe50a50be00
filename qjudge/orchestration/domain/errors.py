"""Errors raised by the run orchestrator."""

from qjudge.core.errors import QJudgeError


class WorkflowNotFoundError(QJudgeError):
    def __init__(self, run_id: str) -> None:
        self.run_id = run_id
        super().__init__(f"Failed to find run workflow {run_id!r}")


class WorkflowAlreadyStartedError(QJudgeError):
    """Raised when start_run is called with the id of a run already in flight."""

    def __init__(self, run_id: str) -> None:
        self.run_id = run_id
        super().__init__(f"Failed to start run {run_id!r}: already started")


class WorkflowAlreadyDoneError(QJudgeError):
    """Raised for any command against a run whose workflow reached DONE."""

    def __init__(self, run_id: str) -> None:
        self.run_id = run_id
        super().__init__(f"Failed to drive run {run_id!r}: already done")
