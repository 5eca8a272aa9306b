"""Application factory: exception handlers, middleware, lifecycle hooks and /health."""

from __future__ import annotations

import logging
from typing import Callable

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from sqlalchemy import text as sql_text
from pymongo.errors import PyMongoError
from sqlalchemy.exc import SQLAlchemyError

from formdesk.config import get_config
from formdesk.db.base import dispose_engine, get_engine
from formdesk.db.documents import close_mongo_client, ensure_form_indexes, get_forms_collection, ping
from formdesk.db.migrations_runner import apply_migrations
from formdesk.http.problem import (
    handle_domain_error,
    handle_http_exception,
    handle_request_validation_error,
    handle_unexpected_error,
)
from formdesk.http.request_id import RequestIdMiddleware
from formdesk.logging_setup import configure_logging
from formdesk.logic.errors import DomainError
from formdesk.middleware.cors import apply_cors
from formdesk.routes import api_router

logger = logging.getLogger(__name__)


def _health_check() -> Callable[[], dict]:
    def check() -> dict:
        db_ok = True
        try:
            with get_engine().connect() as conn:
                conn.execute(sql_text("SELECT 1")).scalar()
        except SQLAlchemyError:
            logger.error("health_db_check_failed", exc_info=True)
            db_ok = False
        docs_ok = ping()
        return {
            "status": "ok" if db_ok and docs_ok else "degraded",
            "db": db_ok,
            "document_store": docs_ok,
        }

    return check


def create_app() -> FastAPI:
    cfg = get_config()
    configure_logging(cfg.log_level)
    app = FastAPI(title="formdesk", version="0.1.0")

    app.add_exception_handler(DomainError, handle_domain_error)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.add_middleware(RequestIdMiddleware)
    apply_cors(app, cfg.cors_origins)

    # Apply migrations on startup to avoid import-time side effects
    @app.on_event("startup")
    def _prepare_stores() -> None:
        if get_config().auto_apply_migrations:
            try:
                applied = apply_migrations(get_engine())
            except SQLAlchemyError:
                logger.error("Failed to apply migrations at startup", exc_info=True)
                raise
            logger.info("startup_migrations_applied count=%s", len(applied))
        else:
            logger.info("AUTO_APPLY_MIGRATIONS disabled; skipping migrations at startup")
        try:
            ensure_form_indexes(get_forms_collection())
        except PyMongoError:
            # Non-fatal; /health reports the document store
            logger.warning("startup_form_indexes_skipped", exc_info=True)

    @app.on_event("shutdown")
    def _release_stores() -> None:
        dispose_engine()
        close_mongo_client()

    app.include_router(api_router, prefix="/api/v1")

    health_check = _health_check()

    @app.get("/health")
    def health() -> dict:
        return health_check()

    return app


# Intentionally do not instantiate the app at import time to prevent side effects.
