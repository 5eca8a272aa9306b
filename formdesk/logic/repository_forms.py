"""Form document repositories.

`MongoFormRepository` stores forms in a MongoDB collection using the
camelCase document layout shared with other consumers of that collection.
`InMemoryFormRepository` keeps the same contract in a dict and backs tests
and local runs without a document store.

Every read path excludes soft-deleted forms. Pagination arguments are
clamped here, so callers may pass raw query values.
"""

from __future__ import annotations

import logging
import re
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import DESCENDING
from pymongo.collection import Collection

from formdesk.logic.pagination import clamp_page, offset_for
from formdesk.logic.timestamps import utc_now
from formdesk.models.form import Form, Option, Question
from formdesk.models.question_type import QuestionType

logger = logging.getLogger(__name__)


class FormRepository(Protocol):
    def create(self, form: Form) -> Form: ...

    def get(self, form_id: str) -> Optional[Form]: ...

    def list(
        self,
        page: int,
        page_size: int,
        search_text: Optional[str] = None,
        published_only: bool = False,
    ) -> List[Form]: ...

    def count(self, search_text: Optional[str] = None, published_only: bool = False) -> int: ...

    def update(self, form: Form) -> bool: ...

    def soft_delete(self, form_id: str) -> bool: ...

    def publish(self, form_id: str, publisher_id: str) -> bool: ...

    def unpublish(self, form_id: str) -> bool: ...

    def set_visibility(self, form_id: str, visible: bool) -> bool: ...

    def hard_delete(self, form_id: str) -> bool: ...


def _as_utc(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return utc_now()


def _object_id(form_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(str(form_id))
    except (InvalidId, TypeError):
        return None


# -- document mapping ------------------------------------------------------

def question_to_document(q: Question) -> Dict[str, Any]:
    doc: Dict[str, Any] = {
        "questionId": q.question_id,
        "label": q.label,
        "description": q.description,
        "type": q.type.value,
        "required": q.required,
        "dateFormat": q.date_format,
        "order": q.order,
    }
    if q.options is not None:
        doc["options"] = [{"optionId": o.option_id, "label": o.label} for o in q.options]
    return doc


def question_from_document(doc: Dict[str, Any]) -> Question:
    raw_options = doc.get("options")
    options = None
    if raw_options is not None:
        options = [Option(option_id=str(o.get("optionId")), label=o.get("label") or "") for o in raw_options]
    return Question(
        question_id=str(doc.get("questionId")),
        label=doc.get("label") or "",
        description=doc.get("description"),
        type=QuestionType.parse(doc.get("type")),
        required=bool(doc.get("required", False)),
        options=options,
        date_format=doc.get("dateFormat"),
        order=int(doc.get("order") or 0),
    )


def form_to_document(form: Form) -> Dict[str, Any]:
    """Map a Form to its stored layout, without `_id`."""
    return {
        "title": form.title,
        "description": form.description,
        "headerTitle": form.header_title,
        "headerDescription": form.header_description,
        "isPublished": form.is_published,
        "isDeleted": form.is_deleted,
        "visibility": form.visibility,
        "createdBy": form.created_by,
        "publishedBy": form.published_by,
        "questions": [question_to_document(q) for q in form.questions],
        "createdAt": form.created_at,
        "updatedAt": form.updated_at,
    }


def form_from_document(doc: Dict[str, Any]) -> Form:
    questions = [question_from_document(q) for q in doc.get("questions") or []]
    return Form(
        form_id=str(doc["_id"]),
        title=doc.get("title") or "",
        description=doc.get("description"),
        header_title=doc.get("headerTitle"),
        header_description=doc.get("headerDescription"),
        is_published=bool(doc.get("isPublished", False)),
        is_deleted=bool(doc.get("isDeleted", False)),
        visibility=bool(doc.get("visibility", True)),
        created_by=str(doc.get("createdBy") or ""),
        published_by=doc.get("publishedBy"),
        questions=sorted(questions, key=lambda q: q.order),
        created_at=_as_utc(doc.get("createdAt")),
        updated_at=_as_utc(doc.get("updatedAt")),
    )


def _list_filter(search_text: Optional[str], published_only: bool) -> Dict[str, Any]:
    flt: Dict[str, Any] = {"isDeleted": False}
    if published_only:
        flt["isPublished"] = True
        flt["visibility"] = True
    if search_text and search_text.strip():
        flt["title"] = {"$regex": re.escape(search_text.strip()), "$options": "i"}
    return flt


class MongoFormRepository:
    def __init__(self, collection: Collection) -> None:
        self._collection = collection

    def create(self, form: Form) -> Form:
        doc = form_to_document(form)
        result = self._collection.insert_one(doc)
        form_id = str(result.inserted_id)
        logger.info("mongo_form_inserted form_id=%s", form_id)
        return form.model_copy(update={"form_id": form_id})

    def get(self, form_id: str) -> Optional[Form]:
        oid = _object_id(form_id)
        if oid is None:
            return None
        doc = self._collection.find_one({"_id": oid, "isDeleted": False})
        return form_from_document(doc) if doc else None

    def list(
        self,
        page: int,
        page_size: int,
        search_text: Optional[str] = None,
        published_only: bool = False,
    ) -> List[Form]:
        page, page_size = clamp_page(page, page_size)
        cursor = (
            self._collection.find(_list_filter(search_text, published_only))
            .sort("createdAt", DESCENDING)
            .skip(offset_for(page, page_size))
            .limit(page_size)
        )
        return [form_from_document(d) for d in cursor]

    def count(self, search_text: Optional[str] = None, published_only: bool = False) -> int:
        return int(self._collection.count_documents(_list_filter(search_text, published_only)))

    def update(self, form: Form) -> bool:
        oid = _object_id(form.form_id)
        if oid is None:
            return False
        fields = form_to_document(form)
        # Identity and lifecycle flags are owned by their dedicated operations
        for key in ("createdBy", "createdAt", "isDeleted", "isPublished", "publishedBy"):
            fields.pop(key, None)
        result = self._collection.update_one({"_id": oid, "isDeleted": False}, {"$set": fields})
        return result.matched_count > 0

    def soft_delete(self, form_id: str) -> bool:
        oid = _object_id(form_id)
        if oid is None:
            return False
        result = self._collection.update_one(
            {"_id": oid, "isDeleted": False},
            {"$set": {"isDeleted": True, "updatedAt": utc_now()}},
        )
        return result.modified_count > 0

    def publish(self, form_id: str, publisher_id: str) -> bool:
        oid = _object_id(form_id)
        if oid is None:
            return False
        result = self._collection.update_one(
            {"_id": oid, "isDeleted": False, "isPublished": False},
            {"$set": {"isPublished": True, "publishedBy": publisher_id, "updatedAt": utc_now()}},
        )
        return result.modified_count > 0

    def unpublish(self, form_id: str) -> bool:
        oid = _object_id(form_id)
        if oid is None:
            return False
        result = self._collection.update_one(
            {"_id": oid, "isDeleted": False, "isPublished": True},
            {"$set": {"isPublished": False, "updatedAt": utc_now()}},
        )
        return result.modified_count > 0

    def set_visibility(self, form_id: str, visible: bool) -> bool:
        oid = _object_id(form_id)
        if oid is None:
            return False
        result = self._collection.update_one(
            {"_id": oid, "isDeleted": False, "visibility": {"$ne": visible}},
            {"$set": {"visibility": visible, "updatedAt": utc_now()}},
        )
        return result.modified_count > 0

    def hard_delete(self, form_id: str) -> bool:
        oid = _object_id(form_id)
        if oid is None:
            return False
        result = self._collection.delete_one({"_id": oid})
        if result.deleted_count:
            logger.warning("mongo_form_hard_deleted form_id=%s", form_id)
        return result.deleted_count > 0


class InMemoryFormRepository:
    """Dict-backed repository with the same semantics as the Mongo one."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._forms: Dict[str, Form] = {}

    def _live(self, form_id: str) -> Optional[Form]:
        form = self._forms.get(str(form_id))
        if form is None or form.is_deleted:
            return None
        return form

    def _matching(self, search_text: Optional[str], published_only: bool) -> List[Form]:
        needle = (search_text or "").strip().lower()
        out = []
        for form in self._forms.values():
            if form.is_deleted:
                continue
            if published_only and not (form.is_published and form.visibility):
                continue
            if needle and needle not in form.title.lower():
                continue
            out.append(form)
        return out

    def create(self, form: Form) -> Form:
        stored = form.model_copy(update={"form_id": str(ObjectId())}, deep=True)
        with self._lock:
            self._forms[stored.form_id] = stored
        return stored.model_copy(deep=True)

    def get(self, form_id: str) -> Optional[Form]:
        with self._lock:
            form = self._live(form_id)
            return form.model_copy(deep=True) if form else None

    def list(
        self,
        page: int,
        page_size: int,
        search_text: Optional[str] = None,
        published_only: bool = False,
    ) -> List[Form]:
        page, page_size = clamp_page(page, page_size)
        with self._lock:
            rows = sorted(self._matching(search_text, published_only), key=lambda f: f.created_at, reverse=True)
            start = offset_for(page, page_size)
            return [f.model_copy(deep=True) for f in rows[start:start + page_size]]

    def count(self, search_text: Optional[str] = None, published_only: bool = False) -> int:
        with self._lock:
            return len(self._matching(search_text, published_only))

    def update(self, form: Form) -> bool:
        with self._lock:
            current = self._live(form.form_id)
            if current is None:
                return False
            self._forms[form.form_id] = form.model_copy(
                update={
                    "created_by": current.created_by,
                    "created_at": current.created_at,
                    "is_deleted": current.is_deleted,
                    "is_published": current.is_published,
                    "published_by": current.published_by,
                },
                deep=True,
            )
            return True

    def _flip(self, form_id: str, **changes: Any) -> bool:
        with self._lock:
            current = self._live(form_id)
            if current is None:
                return False
            if all(getattr(current, k) == v for k, v in changes.items() if k != "published_by"):
                return False
            changes["updated_at"] = utc_now()
            self._forms[current.form_id] = current.model_copy(update=changes)
            return True

    def soft_delete(self, form_id: str) -> bool:
        return self._flip(form_id, is_deleted=True)

    def publish(self, form_id: str, publisher_id: str) -> bool:
        return self._flip(form_id, is_published=True, published_by=publisher_id)

    def unpublish(self, form_id: str) -> bool:
        return self._flip(form_id, is_published=False)

    def set_visibility(self, form_id: str, visible: bool) -> bool:
        return self._flip(form_id, visibility=visible)

    def hard_delete(self, form_id: str) -> bool:
        with self._lock:
            return self._forms.pop(str(form_id), None) is not None


__all__ = [
    "FormRepository",
    "MongoFormRepository",
    "InMemoryFormRepository",
    "form_to_document",
    "form_from_document",
]
