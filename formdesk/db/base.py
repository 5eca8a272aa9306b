"""SQLAlchemy engine construction for the relational store.

The service targets PostgreSQL in production but supports SQLite for local
development and CI. No declarative models are defined here; repositories
issue `text()` SQL against the engine and this module only manages
connection lifecycle.
"""

from __future__ import annotations

import logging
import re

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from formdesk.config import get_config

logger = logging.getLogger(__name__)


def _mask(url: str) -> str:
    return re.sub(r"://([^:/]+):([^@]+)@", r"://\1:***@", url)


def build_engine(url: str) -> Engine:
    """Create a new Engine for `url`.

    For SQLite in-memory URLs, use a StaticPool to keep a single connection
    alive across sessions and threads; otherwise every checkout would see an
    empty database.
    """
    kwargs: dict = {"future": True, "pool_pre_ping": True}
    if url.startswith("sqlite") and ":memory:" in url:
        kwargs.update({
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        })
    elif url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
    logger.info("db_engine_create url=%s", _mask(url))
    return create_engine(url, **kwargs)


# Module-level cached Engine so repositories share the same pool
_ENGINE: Engine | None = None
_ENGINE_URL: str | None = None


def get_engine(url: str | None = None) -> Engine:
    """Return a singleton Engine for the configured (or given) URL."""
    global _ENGINE, _ENGINE_URL
    resolved_url = url or get_config().database.dsn

    if _ENGINE is None or _ENGINE_URL != resolved_url:
        _ENGINE = build_engine(resolved_url)
        _ENGINE_URL = resolved_url

    return _ENGINE


def dispose_engine() -> None:
    global _ENGINE, _ENGINE_URL
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = None
    _ENGINE_URL = None
