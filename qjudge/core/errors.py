"""Root of the qjudge error hierarchy."""


class QJudgeError(Exception):
    """Every qjudge error. `retriable` marks failures worth repeating as-is."""

    def __init__(self, message: str, retriable: bool = False) -> None:
        super().__init__(message)
        self.retriable = retriable
