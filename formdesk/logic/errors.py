"""Domain exception taxonomy.

Every error carries a stable machine-readable ``code``; the HTTP layer maps
codes to statuses in ``formdesk/http/error_mapping.py``.
"""

from __future__ import annotations


class DomainError(Exception):
    code = "DOMAIN_ERROR"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def __str__(self) -> str:
        return self.message


class AuthenticationError(DomainError):
    code = "AUTH_FAILED"


# -- form family -----------------------------------------------------------

class FormError(DomainError):
    code = "FORM_ERROR"


class FormValidationError(FormError):
    code = "FORM_VALIDATION_ERROR"


class QuestionValidationError(FormError):
    code = "QUESTION_VALIDATION_ERROR"


class FormNotFoundError(FormError):
    code = "FORM_NOT_FOUND"

    def __init__(self, form_id: str, message: str | None = None) -> None:
        super().__init__(message or f"Form with ID '{form_id}' was not found")
        self.form_id = form_id


class FormLockedError(FormError):
    code = "FORM_LOCKED"

    def __init__(self, form_id: str) -> None:
        super().__init__("Cannot update published form with responses")
        self.form_id = form_id


class FormUnauthorizedError(FormError):
    code = "FORM_UNAUTHORIZED"


class FormDataAccessError(FormError):
    code = "FORM_DATA_ACCESS_ERROR"


# -- response family -------------------------------------------------------

class ResponseError(DomainError):
    code = "RESPONSE_ERROR"


class ResponseValidationError(ResponseError):
    code = "RESPONSE_VALIDATION_ERROR"


class UnpublishedFormError(ResponseError):
    code = "UNPUBLISHED_FORM"

    def __init__(self, form_id: str) -> None:
        super().__init__("Cannot submit response to unpublished form")
        self.form_id = form_id


class DuplicateResponseError(ResponseError):
    code = "DUPLICATE_RESPONSE"

    def __init__(self, form_id: str, user_id: str) -> None:
        super().__init__("You have already responded to this form")
        self.form_id = form_id
        self.user_id = user_id


class RequiredQuestionError(ResponseError):
    code = "REQUIRED_QUESTION"

    def __init__(self, question_label: str) -> None:
        super().__init__(f"Required question not answered: {question_label}")
        self.question_label = question_label


class ResponseNotFoundError(ResponseError):
    code = "RESPONSE_NOT_FOUND"

    def __init__(self, response_id: str) -> None:
        super().__init__(f"Response with ID '{response_id}' was not found")
        self.response_id = response_id


class StoredFileNotFoundError(ResponseError):
    code = "FILE_NOT_FOUND"

    def __init__(self, file_id: str) -> None:
        super().__init__(f"File with ID '{file_id}' was not found")
        self.file_id = file_id


class ResponseUnauthorizedError(ResponseError):
    code = "RESPONSE_UNAUTHORIZED"


class ResponseDataAccessError(ResponseError):
    code = "RESPONSE_DATA_ACCESS_ERROR"


__all__ = [
    "DomainError",
    "AuthenticationError",
    "FormError",
    "FormValidationError",
    "QuestionValidationError",
    "FormNotFoundError",
    "FormLockedError",
    "FormUnauthorizedError",
    "FormDataAccessError",
    "ResponseError",
    "ResponseValidationError",
    "UnpublishedFormError",
    "DuplicateResponseError",
    "RequiredQuestionError",
    "ResponseNotFoundError",
    "StoredFileNotFoundError",
    "ResponseUnauthorizedError",
    "ResponseDataAccessError",
]
