"""User directory over the relational `users` table.

The core only reads from it (username resolution for listings and detail
views); `create_user` exists for seeding and tests.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Engine

from formdesk.db.base import get_engine
from formdesk.logic.timestamps import format_timestamp, utc_now
from formdesk.models.caller import UserSummary

logger = logging.getLogger(__name__)


class SqlUserDirectory:
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine or get_engine()

    def get_user(self, user_id: str) -> Optional[UserSummary]:
        with self.engine.connect() as conn:
            row = conn.execute(
                sql_text("SELECT user_id, username, role FROM users WHERE user_id = :uid"),
                {"uid": user_id},
            ).fetchone()
        if row is None:
            return None
        m = row._mapping
        return UserSummary(user_id=str(m["user_id"]), username=m["username"], role=str(m["role"]))

    def create_user(self, email: str, username: Optional[str], role: str, user_id: Optional[str] = None) -> UserSummary:
        uid = user_id or str(uuid.uuid4())
        now = format_timestamp(utc_now())
        with self.engine.begin() as conn:
            conn.execute(
                sql_text(
                    """
                    INSERT INTO users (user_id, email, username, role, created_at, updated_at)
                    VALUES (:uid, :email, :username, :role, :at, :at)
                    """
                ),
                {"uid": uid, "email": email, "username": username, "role": role, "at": now},
            )
        logger.info("user_created user_id=%s role=%s", uid, role)
        return UserSummary(user_id=uid, username=username, role=role)


__all__ = ["SqlUserDirectory"]
