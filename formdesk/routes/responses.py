"""Response submission and retrieval endpoints.

Implements:
- POST /forms/{form_id}/responses   submit answers (any authenticated caller)
- GET  /forms/{form_id}/responses   responses to a form (admin who created it)
- GET  /responses/mine              the caller's own submissions
- GET  /responses/{response_id}     one response with decoded answers
- GET  /files/{file_id}             raw file bytes for an answer
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, Request, Response

from formdesk.logic.response_submission import ResponseSubmissionEngine
from formdesk.models.caller import Caller
from formdesk.models.response_types import (
    ClientMeta,
    ResponseDetail,
    ResponseList,
    SubmissionResult,
    SubmitResponseRequest,
)
from formdesk.routes.deps import get_caller, get_response_engine, require_privileged

router = APIRouter()
logger = logging.getLogger(__name__)


def _client_meta(request: Request) -> ClientMeta:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        ip: Optional[str] = forwarded.split(",")[0].strip() or None
    else:
        ip = request.client.host if request.client else None
    return ClientMeta(client_ip=ip, user_agent=request.headers.get("User-Agent"))


@router.post(
    "/forms/{form_id}/responses",
    status_code=201,
    response_model=SubmissionResult,
    summary="Submit a response to a published form",
)
def submit_response(
    form_id: str,
    body: SubmitResponseRequest,
    request: Request,
    caller: Caller = Depends(get_caller),
    engine: ResponseSubmissionEngine = Depends(get_response_engine),
) -> SubmissionResult:
    return engine.submit(form_id, body.answers, caller.user_id, _client_meta(request))


@router.get("/forms/{form_id}/responses", response_model=ResponseList, summary="List responses to a form")
def list_form_responses(
    form_id: str,
    page: int = Query(1),
    page_size: Optional[int] = Query(None),
    caller: Caller = Depends(require_privileged),
    engine: ResponseSubmissionEngine = Depends(get_response_engine),
) -> ResponseList:
    return engine.list_for_form(form_id, page, page_size, caller.user_id)


@router.get("/responses/mine", response_model=ResponseList, summary="List the caller's responses")
def list_my_responses(
    page: int = Query(1),
    page_size: Optional[int] = Query(None),
    caller: Caller = Depends(get_caller),
    engine: ResponseSubmissionEngine = Depends(get_response_engine),
) -> ResponseList:
    return engine.list_for_user(caller.user_id, page, page_size)


@router.get("/responses/{response_id}", response_model=ResponseDetail, summary="Get a response")
def get_response(
    response_id: str,
    caller: Caller = Depends(get_caller),
    engine: ResponseSubmissionEngine = Depends(get_response_engine),
) -> ResponseDetail:
    return engine.get_by_id(response_id, caller.user_id, caller.role)


@router.get("/files/{file_id}", summary="Download an uploaded file")
def get_file(
    file_id: str,
    download: bool = Query(False),
    caller: Caller = Depends(get_caller),
    engine: ResponseSubmissionEngine = Depends(get_response_engine),
) -> Response:
    stored = engine.get_file(file_id, caller.user_id, caller.role)
    disposition = "attachment" if download else "inline"
    headers = {"Content-Disposition": f"{disposition}; filename*=UTF-8''{quote(stored.file_name)}"}
    return Response(content=stored.content_bytes(), media_type=stored.mime_type, headers=headers)


__all__ = ["router"]
