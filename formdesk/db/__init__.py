"""Storage bootstrap utilities for the forms service.

Exposes engine construction and the SQL migrations runner for the relational
store, and client/collection access for the document store. Repositories
live in `formdesk/logic/`; nothing here knows about domain types.
"""

from formdesk.db.base import build_engine, dispose_engine, get_engine
from formdesk.db.migrations_runner import apply_migrations

__all__ = [
    "build_engine",
    "dispose_engine",
    "get_engine",
    "apply_migrations",
]
