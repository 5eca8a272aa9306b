"""Response, answer and file data access.

Encapsulates all SQL for the relational side of a submission. Each write
runs in its own short transaction; the submission engine sequences them.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from formdesk.db.base import get_engine
from formdesk.logic.errors import DuplicateResponseError
from formdesk.logic.pagination import clamp_page, offset_for
from formdesk.logic.timestamps import format_timestamp, parse_timestamp
from formdesk.models.question_type import QuestionType
from formdesk.models.response_types import AnswerRecord, FileMetadata, FileRecord, ResponseRecord

logger = logging.getLogger(__name__)

_SUMMARY_COLUMNS = """
    r.response_id, r.form_id, r.submitted_by, r.submitted_at, r.client_ip, r.user_agent,
    (SELECT COUNT(*) FROM answers a WHERE a.response_id = r.response_id) AS answer_count
"""

_SELECT_SUMMARY = "SELECT " + _SUMMARY_COLUMNS + " FROM responses r "
_PAGE_CLAUSE = " ORDER BY r.submitted_at DESC, r.response_id ASC LIMIT :limit OFFSET :offset"

_LIST_BY_FORM = _SELECT_SUMMARY + "WHERE r.form_id = :fid" + _PAGE_CLAUSE
_LIST_BY_USER = _SELECT_SUMMARY + "WHERE r.submitted_by = :uid" + _PAGE_CLAUSE
_GET_ONE = _SELECT_SUMMARY + "WHERE r.response_id = :rid"


def _response_from_row(row) -> ResponseRecord:  # type: ignore[no-untyped-def]
    m = row._mapping
    return ResponseRecord(
        response_id=str(m["response_id"]),
        form_id=str(m["form_id"]),
        submitted_by=str(m["submitted_by"]),
        submitted_at=parse_timestamp(m["submitted_at"]),
        client_ip=m["client_ip"],
        user_agent=m["user_agent"],
        answer_count=int(m["answer_count"] or 0),
    )


class SqlResponseRepository:
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine or get_engine()

    # -- writes ------------------------------------------------------------

    def create_response(
        self,
        form_id: str,
        submitted_by: str,
        submitted_at: datetime,
        client_ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> str:
        """Insert a response row and return its id.

        A unique-index violation on (submitted_by, form_id) surfaces as
        DuplicateResponseError.
        """
        response_id = str(uuid.uuid4())
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    sql_text(
                        """
                        INSERT INTO responses (response_id, form_id, submitted_by, submitted_at, client_ip, user_agent)
                        VALUES (:rid, :fid, :uid, :at, :ip, :ua)
                        """
                    ),
                    {
                        "rid": response_id,
                        "fid": form_id,
                        "uid": submitted_by,
                        "at": format_timestamp(submitted_at),
                        "ip": client_ip,
                        "ua": user_agent,
                    },
                )
        except IntegrityError as exc:
            logger.warning("response_insert_conflict form_id=%s user_id=%s", form_id, submitted_by)
            raise DuplicateResponseError(form_id, submitted_by) from exc
        return response_id

    def create_answer(
        self,
        response_id: str,
        question_id: str,
        answer_type: QuestionType,
        answer_value: Optional[str],
        position: int,
        created_at: datetime,
    ) -> str:
        answer_id = str(uuid.uuid4())
        with self.engine.begin() as conn:
            conn.execute(
                sql_text(
                    """
                    INSERT INTO answers (answer_id, response_id, question_id, answer_type, answer_value, position, created_at)
                    VALUES (:aid, :rid, :qid, :atype, :aval, :pos, :at)
                    """
                ),
                {
                    "aid": answer_id,
                    "rid": response_id,
                    "qid": question_id,
                    "atype": answer_type.value,
                    "aval": answer_value,
                    "pos": position,
                    "at": format_timestamp(created_at),
                },
            )
        return answer_id

    def create_file(
        self,
        answer_id: str,
        file_name: str,
        mime_type: str,
        file_size_bytes: int,
        content: str,
        created_at: datetime,
    ) -> str:
        file_id = str(uuid.uuid4())
        with self.engine.begin() as conn:
            conn.execute(
                sql_text(
                    """
                    INSERT INTO files (file_id, answer_id, file_name, mime_type, file_size_bytes, file_content, created_at)
                    VALUES (:fid, :aid, :name, :mime, :size, :content, :at)
                    """
                ),
                {
                    "fid": file_id,
                    "aid": answer_id,
                    "name": file_name,
                    "mime": mime_type,
                    "size": int(file_size_bytes),
                    "content": content,
                    "at": format_timestamp(created_at),
                },
            )
        return file_id

    # -- reads -------------------------------------------------------------

    def user_has_responded(self, form_id: str, user_id: str) -> bool:
        with self.engine.connect() as conn:
            row = conn.execute(
                sql_text("SELECT 1 FROM responses WHERE form_id = :fid AND submitted_by = :uid LIMIT 1"),
                {"fid": form_id, "uid": user_id},
            ).fetchone()
        return row is not None

    def count_by_form(self, form_id: str) -> int:
        with self.engine.connect() as conn:
            value = conn.execute(
                sql_text("SELECT COUNT(*) FROM responses WHERE form_id = :fid"),
                {"fid": form_id},
            ).scalar_one()
        return int(value or 0)

    def count_by_user(self, user_id: str) -> int:
        with self.engine.connect() as conn:
            value = conn.execute(
                sql_text("SELECT COUNT(*) FROM responses WHERE submitted_by = :uid"),
                {"uid": user_id},
            ).scalar_one()
        return int(value or 0)

    def _list_page(self, statement: str, params: Dict[str, object], page: int, page_size: int) -> List[ResponseRecord]:
        page, page_size = clamp_page(page, page_size)
        with self.engine.connect() as conn:
            rows = conn.execute(
                sql_text(statement),
                {**params, "limit": page_size, "offset": offset_for(page, page_size)},
            ).fetchall()
        return [_response_from_row(r) for r in rows]

    def list_by_form(self, form_id: str, page: int, page_size: int) -> List[ResponseRecord]:
        return self._list_page(_LIST_BY_FORM, {"fid": form_id}, page, page_size)

    def list_by_user(self, user_id: str, page: int, page_size: int) -> List[ResponseRecord]:
        return self._list_page(_LIST_BY_USER, {"uid": user_id}, page, page_size)

    def get_response(self, response_id: str) -> Optional[ResponseRecord]:
        """Load a response with its answers (in insertion order) and file metadata."""
        with self.engine.connect() as conn:
            row = conn.execute(
                sql_text(_GET_ONE),
                {"rid": response_id},
            ).fetchone()
            if row is None:
                return None
            answer_rows = conn.execute(
                sql_text(
                    """
                    SELECT answer_id, response_id, question_id, answer_type, answer_value, created_at
                    FROM answers WHERE response_id = :rid
                    ORDER BY position ASC, created_at ASC
                    """
                ),
                {"rid": response_id},
            ).fetchall()
            file_rows = conn.execute(
                sql_text(
                    """
                    SELECT f.file_id, f.answer_id, f.file_name, f.mime_type, f.file_size_bytes, f.created_at
                    FROM files f JOIN answers a ON a.answer_id = f.answer_id
                    WHERE a.response_id = :rid
                    """
                ),
                {"rid": response_id},
            ).fetchall()

        files_by_answer: Dict[str, List[FileMetadata]] = {}
        for fr in file_rows:
            fm = fr._mapping
            files_by_answer.setdefault(str(fm["answer_id"]), []).append(
                FileMetadata(
                    file_id=str(fm["file_id"]),
                    file_name=fm["file_name"],
                    mime_type=fm["mime_type"],
                    file_size_bytes=int(fm["file_size_bytes"]),
                    uploaded_at=parse_timestamp(fm["created_at"]),
                )
            )

        answers: List[AnswerRecord] = []
        for ar in answer_rows:
            am = ar._mapping
            answers.append(
                AnswerRecord(
                    answer_id=str(am["answer_id"]),
                    response_id=str(am["response_id"]),
                    question_id=str(am["question_id"]),
                    answer_type=QuestionType.parse(am["answer_type"]),
                    answer_value=am["answer_value"],
                    created_at=parse_timestamp(am["created_at"]),
                    files=files_by_answer.get(str(am["answer_id"]), []),
                )
            )
        record = _response_from_row(row)
        return record.model_copy(update={"answers": answers})

    def get_file(self, file_id: str) -> Optional[FileRecord]:
        with self.engine.connect() as conn:
            row = conn.execute(
                sql_text(
                    """
                    SELECT f.file_id, f.answer_id, a.response_id, f.file_name, f.mime_type,
                           f.file_size_bytes, f.file_content, f.created_at
                    FROM files f JOIN answers a ON a.answer_id = f.answer_id
                    WHERE f.file_id = :fid
                    """
                ),
                {"fid": file_id},
            ).fetchone()
        if row is None:
            return None
        m = row._mapping
        return FileRecord(
            file_id=str(m["file_id"]),
            answer_id=str(m["answer_id"]),
            response_id=str(m["response_id"]),
            file_name=m["file_name"],
            mime_type=m["mime_type"],
            file_size_bytes=int(m["file_size_bytes"]),
            content=m["file_content"],
            created_at=parse_timestamp(m["created_at"]),
        )


__all__ = ["SqlResponseRepository"]
