"""FastAPI application package for the formdesk forms service.

Administrators design forms (stored as MongoDB documents); learners submit
responses (stored relationally). Business logic lives in `formdesk/logic/`
and route handlers in `formdesk/routes/`.
"""

from __future__ import annotations

from formdesk.main import create_app

__all__ = ["create_app"]
