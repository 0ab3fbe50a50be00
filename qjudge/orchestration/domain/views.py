"""PlanningViews Protocol — the read models planning enumerates tasks from."""

from typing import Protocol

from qjudge.views.domain.rows import JudgeRow, QuestionRow, SubmissionRow


class PlanningViews(Protocol):
    def questions_by_queue(self, queue_id: str) -> list[QuestionRow]: ...

    def submissions_by_queue(self, queue_id: str) -> list[SubmissionRow]: ...

    def active_judges(self) -> list[JudgeRow]: ...
