"""Observer port for the submission domain — defines events in domain language."""

from typing import Protocol


class SubmissionObserver(Protocol):
    def submission_loading_started(self, path: str) -> None: ...

    def submission_loading_completed(self, path: str, total_submissions: int) -> None: ...

    def submission_loading_failed(self, path: str, reason: str) -> None: ...
