"""MongoDB client and collection access for form documents.

The client is created lazily and shared across the process; pymongo pools
connections internally and does not connect until the first operation.
"""

from __future__ import annotations

import logging

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from formdesk.config import get_config

logger = logging.getLogger(__name__)

_CLIENT: MongoClient | None = None


def get_mongo_client() -> MongoClient:
    global _CLIENT
    if _CLIENT is None:
        uri = get_config().document_store.uri
        _CLIENT = MongoClient(uri, tz_aware=True, serverSelectionTimeoutMS=5000)
    return _CLIENT


def get_forms_collection(client: MongoClient | None = None) -> Collection:
    cfg = get_config().document_store
    db = (client or get_mongo_client())[cfg.database]
    return db[cfg.collection]


def ensure_form_indexes(collection: Collection) -> None:
    """Create the indexes the list queries rely on (idempotent)."""
    collection.create_index([("isDeleted", ASCENDING), ("createdAt", DESCENDING)])
    collection.create_index(
        [("isDeleted", ASCENDING), ("isPublished", ASCENDING), ("visibility", ASCENDING)]
    )


def ping(client: MongoClient | None = None) -> bool:
    try:
        (client or get_mongo_client()).admin.command("ping")
        return True
    except PyMongoError as e:
        logger.warning("mongo_ping_failed error=%s", e)
        return False


def close_mongo_client() -> None:
    global _CLIENT
    if _CLIENT is not None:
        _CLIENT.close()
    _CLIENT = None


__all__ = [
    "get_mongo_client",
    "get_forms_collection",
    "ensure_form_indexes",
    "ping",
    "close_mongo_client",
]
