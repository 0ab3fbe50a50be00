"""Structlog implementation of the SubmissionObserver port."""

import structlog


class StructlogSubmissionObserver:
    """Delegates submission domain events to structlog.

    Satisfies the SubmissionObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def submission_loading_started(self, path: str) -> None:
        self._log.info("submission.loading_started", path=path)

    def submission_loading_completed(self, path: str, total_submissions: int) -> None:
        self._log.info(
            "submission.loading_completed",
            path=path,
            total_submissions=total_submissions,
        )

    def submission_loading_failed(self, path: str, reason: str) -> None:
        self._log.error("submission.loading_failed", path=path, reason=reason)
