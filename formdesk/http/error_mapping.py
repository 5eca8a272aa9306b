"""Central error mapping for domain errors.

Single source of truth for mapping stable error codes to HTTP statuses and
problem titles. Handlers must import from here instead of hardcoding
numbers.
"""

from __future__ import annotations

ERROR_STATUS_MAP = {
    "FORM_VALIDATION_ERROR": {"status": 400, "title": "Invalid Form"},
    "QUESTION_VALIDATION_ERROR": {"status": 400, "title": "Invalid Question"},
    "RESPONSE_VALIDATION_ERROR": {"status": 400, "title": "Invalid Response"},
    "REQUIRED_QUESTION": {"status": 400, "title": "Required Question Missing"},
    "AUTH_FAILED": {"status": 401, "title": "Unauthorized"},
    "FORM_UNAUTHORIZED": {"status": 403, "title": "Forbidden"},
    "RESPONSE_UNAUTHORIZED": {"status": 403, "title": "Forbidden"},
    "FORM_NOT_FOUND": {"status": 404, "title": "Form Not Found"},
    "RESPONSE_NOT_FOUND": {"status": 404, "title": "Response Not Found"},
    "FILE_NOT_FOUND": {"status": 404, "title": "File Not Found"},
    "FORM_LOCKED": {"status": 409, "title": "Form Locked"},
    "DUPLICATE_RESPONSE": {"status": 409, "title": "Duplicate Response"},
    "UNPUBLISHED_FORM": {"status": 409, "title": "Form Not Published"},
    "FORM_DATA_ACCESS_ERROR": {"status": 500, "title": "Internal Server Error"},
    "RESPONSE_DATA_ACCESS_ERROR": {"status": 500, "title": "Internal Server Error"},
}

DEFAULT_ERROR = {"status": 500, "title": "Internal Server Error"}

# Details for these codes are replaced with a generic message
CONCEALED_CODES = frozenset({"FORM_DATA_ACCESS_ERROR", "RESPONSE_DATA_ACCESS_ERROR"})


def status_for(code: str) -> int:
    return int(ERROR_STATUS_MAP.get(code, DEFAULT_ERROR)["status"])


def title_for(code: str) -> str:
    return str(ERROR_STATUS_MAP.get(code, DEFAULT_ERROR)["title"])


__all__ = ["ERROR_STATUS_MAP", "CONCEALED_CODES", "status_for", "title_for"]
