"""Form lifecycle: create, read, list, update, delete, publish, visibility.

State machine::

    Draft --publish--> Published
    Published (0 responses) --update--> Published
    Published (>=1 response) == Locked, update rejected
    Draft | Published --delete--> Deleted (terminal, soft)

Locked is derived from the response count at the time of the update; it is
never stored on the form.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from formdesk.logic import events
from formdesk.logic.authorization import is_privileged
from formdesk.logic.errors import DomainError, FormDataAccessError, FormLockedError, FormNotFoundError
from formdesk.logic.keyed_lock import FORM_LOCKS, KeyedLock
from formdesk.logic.pagination import clamp_page, total_pages
from formdesk.logic.repository_forms import FormRepository
from formdesk.logic.repository_responses import SqlResponseRepository
from formdesk.logic.repository_users import SqlUserDirectory
from formdesk.logic.timestamps import utc_now
from formdesk.logic.validation import validate_form_definition
from formdesk.models.form import Form, FormDefinition, FormList, FormListItem

logger = logging.getLogger(__name__)


class FormLifecycleManager:
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
    def _data_access(self, operation: str, form_id: Optional[str] = None) -> Iterator[None]:
        try:
            yield
        except DomainError:
            raise
        except Exception as exc:
            logger.error("form_%s_failed form_id=%s", operation, form_id, exc_info=True)
            raise FormDataAccessError(f"An error occurred while trying to {operation} the form") from exc

    def _require(self, form_id: str) -> Form:
        form = self._forms.get(form_id)
        if form is None:
            raise FormNotFoundError(form_id)
        return form

    def create(self, definition: FormDefinition, creator_id: str) -> Form:
        questions = validate_form_definition(definition)
        with self._data_access("create"):
            now = utc_now()
            draft = Form(
                form_id="",
                title=definition.title.strip(),
                description=definition.description,
                header_title=definition.header_title,
                header_description=definition.header_description,
                is_published=False,
                is_deleted=False,
                visibility=definition.visibility,
                created_by=creator_id,
                questions=questions,
                created_at=now,
                updated_at=now,
            )
            created = self._forms.create(draft)
        logger.info("form_created form_id=%s created_by=%s questions=%s", created.form_id, creator_id, len(questions))
        events.publish(events.FORM_CREATED, {"form_id": created.form_id, "created_by": creator_id})
        return created

    def get(self, form_id: str) -> Form:
        with self._data_access("get", form_id):
            return self._require(form_id)

    def list(
        self,
        page: Optional[int],
        page_size: Optional[int],
        search_text: Optional[str],
        role: Optional[str],
        caller_id: Optional[str] = None,
    ) -> FormList:
        """Page through live forms, newest first.

        Non-privileged callers only see published, visible forms and get a
        per-item `responded` flag.
        """
        page, page_size = clamp_page(page, page_size)
        privileged = is_privileged(role)
        with self._data_access("list"):
            forms = self._forms.list(page, page_size, search_text, published_only=not privileged)
            total = self._forms.count(search_text, published_only=not privileged)
            names: Dict[str, Optional[str]] = {}
            items: List[FormListItem] = []
            for form in forms:
                responded = False
                if not privileged and caller_id:
                    responded = self._responses.user_has_responded(form.form_id, caller_id)
                items.append(
                    FormListItem(
                        form_id=form.form_id,
                        title=form.title,
                        description=form.description,
                        question_count=len(form.questions),
                        is_published=form.is_published,
                        visibility=form.visibility,
                        created_at=form.created_at,
                        created_by=form.created_by,
                        creator_name=self._username(form.created_by, names),
                        published_by=form.published_by,
                        publisher_name=self._username(form.published_by, names),
                        responded=responded,
                    )
                )
        return FormList(
            forms=items,
            current_page=page,
            page_size=page_size,
            total_count=total,
            total_pages=total_pages(total, page_size),
        )

    def _username(self, user_id: Optional[str], cache: Dict[str, Optional[str]]) -> Optional[str]:
        if not user_id or self._users is None:
            return None
        if user_id not in cache:
            user = self._users.get_user(user_id)
            cache[user_id] = user.username if user else None
        return cache[user_id]

    def update(self, form_id: str, definition: FormDefinition, caller_id: str) -> Form:
        with self._locks.hold(form_id), self._data_access("update", form_id):
            current = self._require(form_id)
            if current.is_published and self._responses.count_by_form(form_id) > 0:
                logger.info("form_update_rejected_locked form_id=%s", form_id)
                raise FormLockedError(form_id)
            questions = validate_form_definition(definition)
            updated = current.model_copy(
                update={
                    "title": definition.title.strip(),
                    "description": definition.description,
                    "header_title": definition.header_title,
                    "header_description": definition.header_description,
                    "visibility": definition.visibility,
                    "questions": questions,
                    "updated_at": utc_now(),
                }
            )
            if not self._forms.update(updated):
                raise FormNotFoundError(form_id)
            result = self._require(form_id)
        logger.info("form_updated form_id=%s by=%s", form_id, caller_id)
        events.publish(events.FORM_UPDATED, {"form_id": form_id, "updated_by": caller_id})
        return result

    def delete(self, form_id: str, caller_id: str) -> bool:
        with self._data_access("delete", form_id):
            self._require(form_id)
            deleted = self._forms.soft_delete(form_id)
        if deleted:
            logger.info("form_deleted form_id=%s by=%s", form_id, caller_id)
            events.publish(events.FORM_DELETED, {"form_id": form_id, "deleted_by": caller_id})
        return deleted

    def publish(self, form_id: str, publisher_id: str) -> bool:
        """Publish a draft; returns False when the form was already published."""
        with self._data_access("publish", form_id):
            self._require(form_id)
            published = self._forms.publish(form_id, publisher_id)
        if published:
            logger.info("form_published form_id=%s by=%s", form_id, publisher_id)
            events.publish(events.FORM_PUBLISHED, {"form_id": form_id, "published_by": publisher_id})
        return published

    def toggle_visibility(self, form_id: str, visible: bool) -> bool:
        with self._data_access("change visibility of", form_id):
            self._require(form_id)
            changed = self._forms.set_visibility(form_id, visible)
        if changed:
            events.publish(events.FORM_VISIBILITY_CHANGED, {"form_id": form_id, "visible": visible})
        return changed


__all__ = ["FormLifecycleManager"]
