"""FastAPI dependencies: caller resolution, role gates and service wiring.

Routes depend on these providers only; tests swap them through
`app.dependency_overrides`.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from formdesk.db.documents import get_forms_collection
from formdesk.logic.auth_provider import JwtAuthenticationProvider
from formdesk.logic.authorization import can_manage_form
from formdesk.logic.errors import FormUnauthorizedError
from formdesk.logic.form_lifecycle import FormLifecycleManager
from formdesk.logic.repository_forms import FormRepository, MongoFormRepository
from formdesk.logic.repository_responses import SqlResponseRepository
from formdesk.logic.repository_users import SqlUserDirectory
from formdesk.logic.response_submission import ResponseSubmissionEngine
from formdesk.models.caller import Caller

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

_FORM_REPOSITORY: Optional[FormRepository] = None


def get_form_repository() -> FormRepository:
    global _FORM_REPOSITORY
    if _FORM_REPOSITORY is None:
        _FORM_REPOSITORY = MongoFormRepository(get_forms_collection())
    return _FORM_REPOSITORY


def get_response_repository() -> SqlResponseRepository:
    return SqlResponseRepository()


def get_user_directory() -> SqlUserDirectory:
    return SqlUserDirectory()


def get_auth_provider() -> JwtAuthenticationProvider:
    return JwtAuthenticationProvider()


def get_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    provider: JwtAuthenticationProvider = Depends(get_auth_provider),
) -> Caller:
    token = credentials.credentials if credentials else None
    return provider.resolve_caller(token)


def require_privileged(caller: Caller = Depends(get_caller)) -> Caller:
    if not can_manage_form(caller):
        logger.info("privileged_route_denied user_id=%s role=%s", caller.user_id, caller.role)
        raise FormUnauthorizedError("Administrator role required")
    return caller


def get_form_manager(
    forms: FormRepository = Depends(get_form_repository),
    responses: SqlResponseRepository = Depends(get_response_repository),
    users: SqlUserDirectory = Depends(get_user_directory),
) -> FormLifecycleManager:
    return FormLifecycleManager(forms, responses, users)


def get_response_engine(
    forms: FormRepository = Depends(get_form_repository),
    responses: SqlResponseRepository = Depends(get_response_repository),
    users: SqlUserDirectory = Depends(get_user_directory),
) -> ResponseSubmissionEngine:
    return ResponseSubmissionEngine(forms, responses, users)


__all__ = [
    "bearer_scheme",
    "get_form_repository",
    "get_response_repository",
    "get_user_directory",
    "get_auth_provider",
    "get_caller",
    "require_privileged",
    "get_form_manager",
    "get_response_engine",
]
