"""Error types raised by submission infrastructure."""

from qjudge.core.errors import QJudgeError


class SubmissionLoadError(QJudgeError):
    """Raised when a submission file cannot be read or is malformed."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to load submissions: {reason}")
