"""CORS for browser clients of the forms API."""

from __future__ import annotations

from typing import Sequence

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Read back by the client for log correlation and file downloads
EXPOSE_HEADERS: list[str] = ["X-Request-Id", "Content-Disposition"]


def apply_cors(app: FastAPI, origins: Sequence[str]) -> None:
    wildcard = "*" in origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if wildcard else list(origins),
        # Bearer tokens travel in headers; cookies are only allowed for named origins
        allow_credentials=not wildcard,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-Id"],
        expose_headers=EXPOSE_HEADERS,
    )


__all__ = ["apply_cors", "EXPOSE_HEADERS"]
