"""JSON submission loader — reads uploaded answer files into Submission values.

A file holds either one submission object or a list of them:

    {
      "submissionId": "s1",
      "queueId": "q1",
      "questions": {
        "t1": {
          "questionTemplateId": "t1",
          "questionText": "Is the sky blue?",
          "answerChoice": "yes",
          "answerReasoning": "Rayleigh scattering",
          "metadata": {}
        }
      }
    }

A question is identified by its questionTemplateId; the key it sits under in
"questions" is the id only when questionTemplateId is absent.
"""

import json
import uuid
from collections.abc import Callable
from pathlib import Path
from typing import Any, NoReturn

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from qjudge.submission.domain.observer import SubmissionObserver
from qjudge.submission.domain.submission import QuestionAnswer, Submission
from qjudge.submission.infrastructure.errors import SubmissionLoadError


class _QuestionRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question_template_id: str | None = Field(default=None, alias="questionTemplateId")
    question_text: str | None = Field(default=None, alias="questionText")
    answer_choice: str | None = Field(default=None, alias="answerChoice")
    answer_reasoning: str | None = Field(default=None, alias="answerReasoning")
    metadata: dict[str, Any] | None = None


class _SubmissionRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    submission_id: str | None = Field(default=None, alias="submissionId")
    queue_id: str = Field(alias="queueId", min_length=1)
    questions: dict[str, _QuestionRecord] | None = None


def _new_submission_id() -> str:
    return str(uuid.uuid4())


class JsonSubmissionLoader:
    """Loads a submission file and returns Submission value objects."""

    def __init__(
        self,
        observer: SubmissionObserver,
        id_factory: Callable[[], str] = _new_submission_id,
    ) -> None:
        self._observer = observer
        self._id_factory = id_factory

    def load(self, path: Path) -> list[Submission]:
        """
        Load every submission in the file at path.

        A record without a submissionId is given a fresh one. Collects ALL
        record errors before raising a single SubmissionLoadError.

        Raises:
            SubmissionLoadError: if the file is missing, is not valid JSON, or
                any record is malformed.
        """
        path_str = str(path)
        self._observer.submission_loading_started(path=path_str)

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            self._fail(path=path_str, reason=f"file not found: {path_str}")
        except json.JSONDecodeError as exc:
            self._fail(path=path_str, reason=f"invalid JSON: {exc}")

        records = data if isinstance(data, list) else [data]
        submissions: list[Submission] = []
        errors: list[str] = []
        for index, record in enumerate(records):
            result = self._parse_record(record=record, index=index)
            if isinstance(result, str):
                errors.append(result)
            else:
                submissions.append(result)

        if errors:
            self._fail(path=path_str, reason="; ".join(errors))

        self._observer.submission_loading_completed(
            path=path_str, total_submissions=len(submissions)
        )
        return submissions

    def _parse_record(self, record: object, index: int) -> Submission | str:
        """Returns a Submission on success, or an error string describing the problem."""
        if not isinstance(record, dict):
            return f"record {index}: expected an object"
        try:
            parsed = _SubmissionRecord.model_validate(record)
        except ValidationError as exc:
            fields = ", ".join(
                ".".join(str(part) for part in error["loc"]) for error in exc.errors()
            )
            return f"record {index}: invalid field(s) {fields}"

        questions: dict[str, QuestionAnswer] = {}
        for key, question in (parsed.questions or {}).items():
            question_id = question.question_template_id or key
            if question_id in questions:
                return f"record {index}: question {question_id!r} appears more than once"
            questions[question_id] = QuestionAnswer(
                question_text=question.question_text or "",
                answer_choice=question.answer_choice,
                answer_reasoning=question.answer_reasoning,
                metadata=question.metadata or {},
            )
        return Submission(
            submission_id=parsed.submission_id or self._id_factory(),
            queue_id=parsed.queue_id,
            questions=questions,
        )

    def _fail(self, path: str, reason: str) -> NoReturn:
        self._observer.submission_loading_failed(path=path, reason=reason)
        raise SubmissionLoadError(reason=reason)
