"""Error types raised by judge infrastructure and task resolution."""

from qjudge.core.errors import QJudgeError


class JudgeInvocationError(QJudgeError):
    """Raised when the evaluator cannot be invoked or returns an unparseable response."""

    def __init__(self, reason: str, retriable: bool = False) -> None:
        super().__init__(f"Failed to evaluate answer: {reason}", retriable=retriable)


class TaskResolutionError(QJudgeError):
    """Raised when a task references a judge, submission or question that is missing."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to resolve evaluation task: {reason}")
