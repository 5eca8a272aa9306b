"""Identity types exchanged with the authentication provider and user directory."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class Role:
    ADMIN = "admin"
    LEARNER = "learner"


class Caller(BaseModel):
    user_id: str
    role: str


class UserSummary(BaseModel):
    user_id: str
    username: Optional[str] = None
    role: str


__all__ = ["Role", "Caller", "UserSummary"]
