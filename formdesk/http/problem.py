"""Problem+JSON utilities and global exception handlers.

Defines the RFC7807 media type and handler callables that render every
failure as an application/problem+json response carrying `title`,
`status`, `detail` and, for domain errors, a stable `code`.
"""

from __future__ import annotations

from typing import Any, Dict, Optional
import logging

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from formdesk.http.error_mapping import CONCEALED_CODES, status_for, title_for
from formdesk.logic.errors import DomainError

PROBLEM_MEDIA_TYPE = "application/problem+json"
GENERIC_DETAIL = "An unexpected error occurred while processing the request"

logger = logging.getLogger(__name__)


def problem_response(
    status: int,
    title: str,
    detail: Optional[str] = None,
    code: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
    **extra: Any,
) -> JSONResponse:
    body: Dict[str, Any] = {"title": title, "status": status}
    if detail is not None:
        body["detail"] = detail
    if code is not None:
        body["code"] = code
    body.update(extra)
    return JSONResponse(jsonable_encoder(body), status_code=status, media_type=PROBLEM_MEDIA_TYPE, headers=headers)


async def handle_domain_error(request: Request, exc: DomainError) -> JSONResponse:
    status = status_for(exc.code)
    if exc.code in CONCEALED_CODES:
        logger.error("domain_error_concealed code=%s path=%s", exc.code, request.url.path, exc_info=exc)
        detail = GENERIC_DETAIL
    else:
        logger.info("domain_error code=%s status=%s path=%s", exc.code, status, request.url.path)
        detail = exc.message
    headers = {"WWW-Authenticate": "Bearer"} if status == 401 else None
    return problem_response(status, title_for(exc.code), detail, exc.code, headers=headers)


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    status = int(exc.status_code or 500)
    if isinstance(exc.detail, dict):
        return JSONResponse(exc.detail, status_code=status, media_type=PROBLEM_MEDIA_TYPE, headers=exc.headers)
    return problem_response(status, "Error", str(exc.detail or ""), headers=exc.headers)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return problem_response(
        422,
        "Invalid Request",
        "Request validation failed",
        errors=list(exc.errors()),
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unexpected_error path=%s", request.url.path, exc_info=exc)
    return problem_response(500, "Internal Server Error", GENERIC_DETAIL)


__all__ = [
    "PROBLEM_MEDIA_TYPE",
    "problem_response",
    "handle_domain_error",
    "handle_http_exception",
    "handle_request_validation_error",
    "handle_unexpected_error",
]
