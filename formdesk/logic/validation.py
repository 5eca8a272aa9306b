"""Validation for form definitions and submitted answers.

Form-level rules raise the form error family; answer-level rules raise the
response error family. Both managers call into here so that create and
update validate identically.
"""

from __future__ import annotations

import base64
import binascii
import uuid
from typing import Any, List, Optional

from formdesk.logic.errors import FormValidationError, QuestionValidationError, ResponseValidationError
from formdesk.models.form import FormDefinition, Option, OptionDefinition, Question, QuestionDefinition
from formdesk.models.question_type import QuestionType
from formdesk.models.response_types import SubmittedFile


def is_blank(value: Any) -> bool:
    """None, whitespace-only strings and empty collections count as unanswered."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def parse_question_type(raw: Any) -> QuestionType:
    try:
        return QuestionType.parse(raw)
    except ValueError:
        raise QuestionValidationError(f"Unknown question type: {raw}") from None


def _build_options(defs: Optional[List[OptionDefinition]]) -> List[Option]:
    return [
        Option(option_id=d.id or str(uuid.uuid4()), label=d.label)
        for d in (defs or [])
    ]


def build_question(definition: QuestionDefinition, position: int) -> Question:
    qtype = parse_question_type(definition.type)
    options: Optional[List[Option]] = None
    if qtype.is_select:
        if not definition.options:
            raise QuestionValidationError(f"Options are required for {qtype.value} questions")
        options = _build_options(definition.options)
    return Question(
        question_id=definition.id or str(uuid.uuid4()),
        label=definition.label,
        description=definition.description,
        type=qtype,
        required=definition.required,
        options=options,
        date_format=definition.date_format if qtype is QuestionType.DATE else None,
        order=definition.order if definition.order > 0 else position,
    )


def validate_form_definition(definition: FormDefinition) -> List[Question]:
    """Validate a create/update payload and return the normalised question list.

    Raises FormValidationError for a blank title and QuestionValidationError
    for an unknown type tag or a select question without options.
    """
    if is_blank(definition.title):
        raise FormValidationError("Form title is required")
    return [build_question(q, i) for i, q in enumerate(definition.questions, start=1)]


def validate_file_data(question_label: str, file_data: SubmittedFile) -> None:
    if file_data.file_size_bytes < 0:
        raise ResponseValidationError(f"Invalid file size for question: {question_label}")
    try:
        base64.b64decode(file_data.base64_content, validate=True)
    except (binascii.Error, ValueError):
        raise ResponseValidationError(f"Invalid file content for question: {question_label}") from None


__all__ = [
    "is_blank",
    "parse_question_type",
    "build_question",
    "validate_form_definition",
    "validate_file_data",
]
