"""APIRouter registration for the forms service."""

from __future__ import annotations

from fastapi import APIRouter

from formdesk.routes.forms import router as forms_router
from formdesk.routes.responses import router as responses_router

api_router = APIRouter()
api_router.include_router(forms_router, tags=["Forms"])
api_router.include_router(responses_router, tags=["Responses"])

__all__ = ["api_router"]
