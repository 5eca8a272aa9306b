"""Tagged encoding of answer values for the relational store.

Answers are persisted as a single nullable text column. The question type
recorded alongside each answer decides both directions:

- select types -> JSON array of the submitted values (a scalar is wrapped
                 into one element, element types are preserved)
- file         -> NULL (content lives in the files table)
- everything else -> canonical string form
"""

from __future__ import annotations

import json
from typing import Any, Optional

from formdesk.models.question_type import QuestionType


def canonicalize_scalar(value: Any) -> Optional[str]:
    """Return a stable string representation for a scalar answer.

    - Booleans -> "true" / "false"
    - Numbers  -> integer form when integral, else decimal string
    - Text     -> as-is string
    - None     -> None
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return str(value)
    if isinstance(value, (list, tuple)):
        return json.dumps([canonicalize_scalar(v) for v in value])
    return str(value)


def encode_answer_value(question_type: QuestionType, value: Any) -> Optional[str]:
    if question_type is QuestionType.FILE:
        return None
    if question_type.is_select:
        if value is None:
            return json.dumps([])
        items = list(value) if isinstance(value, (list, tuple)) else [value]
        return json.dumps([v for v in items if v is not None])
    return canonicalize_scalar(value)


def _decode_number(raw: str) -> Any:
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError:
        return raw


def decode_answer_value(question_type: QuestionType, raw: Optional[str]) -> Any:
    """Re-hydrate a stored answer value by its type tag.

    Unparsable numbers and non-array select payloads fall back to the raw
    text rather than failing the read.
    """
    if raw is None:
        return [] if question_type.is_select else None
    if question_type.is_select:
        try:
            decoded = json.loads(raw)
        except ValueError:
            return [raw]
        if isinstance(decoded, list):
            return decoded
        return [decoded]
    if question_type is QuestionType.NUMBER:
        return _decode_number(raw)
    return raw


__all__ = ["canonicalize_scalar", "encode_answer_value", "decode_answer_value"]
