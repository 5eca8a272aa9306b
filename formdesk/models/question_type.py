"""QuestionType tag shared by form schemas and stored answers."""

from __future__ import annotations

from enum import Enum


class QuestionType(str, Enum):
    SHORT_TEXT = "shortText"
    LONG_TEXT = "longText"
    NUMBER = "number"
    DATE = "date"
    SINGLE_SELECT = "singleSelect"
    MULTI_SELECT = "multiSelect"
    FILE = "file"

    @classmethod
    def parse(cls, raw: object) -> "QuestionType":
        """Resolve a wire tag, ignoring case and `-`/`_` separators.

        Raises ValueError for unknown tags.
        """
        if isinstance(raw, cls):
            return raw
        key = str(raw or "").replace("-", "").replace("_", "").replace(" ", "").lower()
        try:
            return _BY_KEY[key]
        except KeyError:
            raise ValueError(f"unknown question type: {raw!r}") from None

    @property
    def is_select(self) -> bool:
        return self in SELECT_TYPES


_BY_KEY = {m.value.lower(): m for m in QuestionType}

SELECT_TYPES = frozenset({QuestionType.SINGLE_SELECT, QuestionType.MULTI_SELECT})


__all__ = ["QuestionType", "SELECT_TYPES"]
