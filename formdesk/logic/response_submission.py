"""Response submission and retrieval.

Reads forms from the document repository (never writes them) and persists
responses, answers and files relationally. The write sequence within one
submission is strictly ordered: the response row first, then each answer in
submission order, each followed by its file when one was attached. Every
insert commits on its own, so a late failure can leave a response with fewer
answers; there is no compensating rollback.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Sequence

from formdesk.logic import events
from formdesk.logic.answer_codec import decode_answer_value, encode_answer_value
from formdesk.logic.authorization import can_view_form_responses, can_view_response
from formdesk.logic.errors import (
    DomainError,
    DuplicateResponseError,
    FormNotFoundError,
    RequiredQuestionError,
    ResponseDataAccessError,
    ResponseNotFoundError,
    ResponseUnauthorizedError,
    StoredFileNotFoundError,
    UnpublishedFormError,
)
from formdesk.logic.keyed_lock import FORM_LOCKS, KeyedLock
from formdesk.logic.pagination import clamp_page, total_pages
from formdesk.logic.repository_forms import FormRepository
from formdesk.logic.repository_responses import SqlResponseRepository
from formdesk.logic.repository_users import SqlUserDirectory
from formdesk.logic.timestamps import utc_now
from formdesk.logic.validation import is_blank, validate_file_data
from formdesk.models.form import Form
from formdesk.models.question_type import QuestionType
from formdesk.models.response_types import (
    AnswerDetail,
    ClientMeta,
    FileRecord,
    ResponseDetail,
    ResponseList,
    ResponseRecord,
    ResponseSummary,
    SubmissionResult,
    SubmittedAnswer,
)

logger = logging.getLogger(__name__)

UNKNOWN_USER = "Unknown"
UNKNOWN_FORM = "Unknown Form"
UNKNOWN_QUESTION = "Unknown Question"
SUBMITTED_MESSAGE = "Response submitted successfully"


class ResponseSubmissionEngine:
    def __init__(
        self,
        forms: FormRepository,
        responses: SqlResponseRepository,
        users: Optional[SqlUserDirectory] = None,
        locks: Optional[KeyedLock] = None,
    ) -> None:
        self._forms = forms
        self._responses = responses
        self._users = users
        self._locks = locks or FORM_LOCKS

    @contextmanager
    def _data_access(self, operation: str, ref: Optional[str] = None) -> Iterator[None]:
        try:
            yield
        except DomainError:
            raise
        except Exception as exc:
            logger.error("response_%s_failed ref=%s", operation, ref, exc_info=True)
            raise ResponseDataAccessError(f"An error occurred while trying to {operation}") from exc

    def _username(self, user_id: str, cache: Optional[Dict[str, str]] = None) -> str:
        if cache is not None and user_id in cache:
            return cache[user_id]
        name = UNKNOWN_USER
        if self._users is not None:
            user = self._users.get_user(user_id)
            if user is not None and user.username:
                name = user.username
        if cache is not None:
            cache[user_id] = name
        return name

    # -- submission --------------------------------------------------------

    def _check_required(self, form: Form, answers: Sequence[SubmittedAnswer]) -> None:
        by_question = {a.question_id: a for a in answers}
        for question in form.ordered_questions():
            if not question.required or question.type is QuestionType.FILE:
                continue
            answer = by_question.get(question.question_id)
            if answer is None or is_blank(answer.value):
                raise RequiredQuestionError(question.label)

    def _check_files(self, form: Form, answers: Sequence[SubmittedAnswer]) -> None:
        for answer in answers:
            if answer.file_data is None:
                continue
            question = form.question_by_id(answer.question_id)
            validate_file_data(question.label if question else answer.question_id, answer.file_data)

    def submit(
        self,
        form_id: str,
        answers: Sequence[SubmittedAnswer],
        submitter_id: str,
        client_meta: Optional[ClientMeta] = None,
    ) -> SubmissionResult:
        """Validate and persist one response.

        Raises FormNotFoundError, UnpublishedFormError, DuplicateResponseError,
        RequiredQuestionError or ResponseValidationError before anything is
        written; storage failures surface as ResponseDataAccessError.
        """
        meta = client_meta or ClientMeta()
        with self._data_access("submit the response", form_id):
            # Checks and the response row insert run under the form lock update() takes
            with self._locks.hold(form_id):
                form = self._forms.get(form_id)
                if form is None:
                    raise FormNotFoundError(form_id)
                if not form.is_published:
                    raise UnpublishedFormError(form_id)
                if self._responses.user_has_responded(form_id, submitter_id):
                    raise DuplicateResponseError(form_id, submitter_id)
                self._check_required(form, answers)
                self._check_files(form, answers)

                submitted_at = utc_now()
                response_id = self._responses.create_response(
                    form_id,
                    submitter_id,
                    submitted_at,
                    client_ip=meta.client_ip,
                    user_agent=meta.user_agent,
                )
            stored = 0
            for answer in answers:
                question = form.question_by_id(answer.question_id)
                if question is None:
                    logger.warning(
                        "answer_skipped_unknown_question response_id=%s question_id=%s",
                        response_id,
                        answer.question_id,
                    )
                    continue
                answer_id = self._responses.create_answer(
                    response_id,
                    question.question_id,
                    question.type,
                    encode_answer_value(question.type, answer.value),
                    stored,
                    utc_now(),
                )
                stored += 1
                if answer.file_data is not None:
                    self._responses.create_file(
                        answer_id,
                        answer.file_data.file_name,
                        answer.file_data.mime_type,
                        answer.file_data.file_size_bytes,
                        answer.file_data.base64_content,
                        utc_now(),
                    )
        logger.info("response_submitted response_id=%s form_id=%s answers=%s", response_id, form_id, stored)
        events.publish(
            events.RESPONSE_SUBMITTED,
            {"response_id": response_id, "form_id": form_id, "submitted_by": submitter_id},
        )
        return SubmissionResult(
            success=True,
            response_id=response_id,
            submitted_at=submitted_at,
            message=SUBMITTED_MESSAGE,
        )

    # -- retrieval ---------------------------------------------------------

    def _summaries(self, records: List[ResponseRecord], titles: Dict[str, Optional[str]]) -> List[ResponseSummary]:
        names: Dict[str, str] = {}
        return [
            ResponseSummary(
                response_id=r.response_id,
                form_id=r.form_id,
                form_title=titles.get(r.form_id),
                submitted_by=r.submitted_by,
                submitter_username=self._username(r.submitted_by, names),
                submitted_at=r.submitted_at,
                answer_count=r.answer_count,
            )
            for r in records
        ]

    def list_for_form(
        self,
        form_id: str,
        page: Optional[int],
        page_size: Optional[int],
        caller_id: str,
    ) -> ResponseList:
        page, page_size = clamp_page(page, page_size)
        with self._data_access("list responses", form_id):
            form = self._forms.get(form_id)
            if form is None:
                raise FormNotFoundError(form_id)
            if not can_view_form_responses(caller_id, form):
                raise ResponseUnauthorizedError("You can only view responses for your own forms")
            records = self._responses.list_by_form(form_id, page, page_size)
            total = self._responses.count_by_form(form_id)
            summaries = self._summaries(records, {form_id: form.title})
        return ResponseList(
            responses=summaries,
            current_page=page,
            page_size=page_size,
            total_count=total,
            total_pages=total_pages(total, page_size),
        )

    def _form_or_none(self, form_id: str) -> Optional[Form]:
        return self._forms.get(form_id)

    def get_by_id(self, response_id: str, caller_id: str, caller_role: Optional[str]) -> ResponseDetail:
        with self._data_access("get the response", response_id):
            record = self._responses.get_response(response_id)
            if record is None:
                raise ResponseNotFoundError(response_id)
            form = self._form_or_none(record.form_id)
            if not can_view_response(caller_id, caller_role, record, form):
                raise ResponseUnauthorizedError(
                    "You can only view your own responses or responses to your forms"
                )
            answers: List[AnswerDetail] = []
            for a in record.answers:
                question = form.question_by_id(a.question_id) if form else None
                answers.append(
                    AnswerDetail(
                        answer_id=a.answer_id,
                        question_id=a.question_id,
                        question_label=question.label if question else UNKNOWN_QUESTION,
                        question_type=a.answer_type,
                        value=decode_answer_value(a.answer_type, a.answer_value),
                        files=a.files,
                    )
                )
            return ResponseDetail(
                response_id=record.response_id,
                form_id=record.form_id,
                form_title=form.title if form else UNKNOWN_FORM,
                submitted_by=record.submitted_by,
                submitter_username=self._username(record.submitted_by),
                submitted_at=record.submitted_at,
                client_ip=record.client_ip,
                user_agent=record.user_agent,
                answers=answers,
            )

    def get_file(self, file_id: str, caller_id: str, caller_role: Optional[str]) -> FileRecord:
        """Return a stored file after checking the caller may view its response."""
        with self._data_access("get the file", file_id):
            stored = self._responses.get_file(file_id)
            if stored is None:
                raise StoredFileNotFoundError(file_id)
            record = self._responses.get_response(stored.response_id)
            if record is None:
                raise StoredFileNotFoundError(file_id)
            form = self._form_or_none(record.form_id)
            if not can_view_response(caller_id, caller_role, record, form):
                raise ResponseUnauthorizedError("You can only download files from responses you can view")
            return stored

    def list_for_user(self, user_id: str, page: Optional[int], page_size: Optional[int]) -> ResponseList:
        page, page_size = clamp_page(page, page_size)
        with self._data_access("list your responses", user_id):
            records = self._responses.list_by_user(user_id, page, page_size)
            total = self._responses.count_by_user(user_id)
            titles: Dict[str, Optional[str]] = {}
            for form_id in {r.form_id for r in records}:
                titles[form_id] = self._title_best_effort(form_id)
            summaries = self._summaries(records, titles)
        return ResponseList(
            responses=summaries,
            current_page=page,
            page_size=page_size,
            total_count=total,
            total_pages=total_pages(total, page_size),
        )

    def _title_best_effort(self, form_id: str) -> Optional[str]:
        try:
            form = self._forms.get(form_id)
        except Exception as e:
            logger.warning("form_title_lookup_failed form_id=%s error=%s", form_id, e)
            return None
        return form.title if form else None


__all__ = ["ResponseSubmissionEngine"]
