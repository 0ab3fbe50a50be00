"""EvaluationRequest — everything needed to judge one (submission, question, judge) task."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class IncludedFields(BaseModel, frozen=True):
    """Controls which parts of the answer are shown to the judge."""

    include_question_text: bool = True
    include_answer_choice: bool = True
    include_answer_reasoning: bool = True
    include_metadata: bool = False

    @classmethod
    def defaults(cls) -> "IncludedFields":
        return cls()

    @classmethod
    def all(cls) -> "IncludedFields":
        return cls(include_metadata=True)


class EvaluationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    run_id: str
    submission_id: str
    queue_id: str
    question_id: str
    judge_id: str
    question_text: str
    answer_choice: str | None = None
    answer_reasoning: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    judge_name: str
    judge_system_prompt: str
    target_model: str
    included_fields: IncludedFields = Field(default_factory=IncludedFields.defaults)


def build_system_prompt(request: EvaluationRequest) -> str:
    """Wrap the judge's rubric with the JSON reply contract."""
    return (
        "You are an AI judge evaluating answers to questions.\n\n"
        f"Judge Name: {request.judge_name}\n\n"
        "Evaluation Rubric:\n"
        f"{request.judge_system_prompt}\n\n"
        "Your task is to evaluate the answer and provide a verdict.\n\n"
        "RESPONSE FORMAT:\n"
        "You MUST respond with valid JSON in the following format:\n"
        "{\n"
        '  "verdict": "pass" | "fail" | "inconclusive",\n'
        '  "reasoning": "Your explanation of the verdict (2-3 sentences)"\n'
        "}\n\n"
        "Verdict Guidelines:\n"
        '- "pass": The answer meets all criteria in the rubric\n'
        '- "fail": The answer does not meet the criteria\n'
        '- "inconclusive": You cannot determine a clear verdict'
        " (e.g., ambiguous question, missing context)\n\n"
        "Be objective, fair, and consistent with the rubric."
    )


def build_user_prompt(request: EvaluationRequest) -> str:
    """Render the answer under judgement, honouring included_fields."""
    fields = request.included_fields
    parts = ["Evaluate the following answer:\n\n"]

    if fields.include_question_text:
        parts.append(f"QUESTION:\n{request.question_text}\n\n")
    if fields.include_answer_choice and request.answer_choice is not None:
        parts.append(f"ANSWER CHOICE:\n{request.answer_choice}\n\n")
    if fields.include_answer_reasoning and request.answer_reasoning is not None:
        parts.append(f"ANSWER REASONING:\n{request.answer_reasoning}\n\n")
    if fields.include_metadata and request.metadata:
        lines = "".join(f"- {key}: {value}\n" for key, value in request.metadata.items())
        parts.append(f"METADATA:\n{lines}\n")

    parts.append("Provide your evaluation as JSON with 'verdict' and 'reasoning' fields.")
    return "".join(parts)
