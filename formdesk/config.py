"""Configuration utilities for the forms service.

This module loads application configuration with the following rules:
- Primary source: `formdesk_config.json` at the project root.
- Overrides: environment variables, then optional text files under `config/`.
- Validation: Pydantic models enforce required fields and value constraints.
"""

from __future__ import annotations

import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator, model_validator


CONFIG_DIR = Path("config")
ROOT_CONFIG = Path("formdesk_config.json")
logger = logging.getLogger(__name__)


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        # Recoverable: log and ignore unreadable override
        logger.warning("Failed to read override %s: %s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


def _flag(text: Optional[str]) -> bool:
    return str(text or "").strip().lower() in {"1", "true", "yes", "on"}


class DatabaseConfig(BaseModel):
    dsn: str

    @field_validator("dsn")
    @classmethod
    def dsn_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("database.dsn must be a non-empty string")
        return v


class DocumentStoreConfig(BaseModel):
    uri: str
    database: str = Field(default="formdesk", min_length=1)
    collection: str = Field(default="forms", min_length=1)


class AuthConfig(BaseModel):
    jwt_secret: str = Field(min_length=8)
    algorithm: str = "HS256"
    issuer: str = "formdesk"
    audience: str = "formdesk-users"
    expire_minutes: int = Field(default=60 * 24 * 7, gt=0)

    @field_validator("algorithm")
    @classmethod
    def algorithm_must_be_hmac(cls, v: str) -> str:
        allowed = {"HS256", "HS384", "HS512"}
        if v not in allowed:
            raise ValueError(f"auth.algorithm must be one of {sorted(allowed)}")
        return v


class PaginationConfig(BaseModel):
    default_page_size: int = Field(default=10, gt=0)
    max_page_size: int = Field(default=100, gt=0)

    @model_validator(mode="after")
    def default_within_max(self) -> "PaginationConfig":
        if self.default_page_size > self.max_page_size:
            raise ValueError("pagination.default_page_size must not exceed max_page_size")
        return self


class AccessConfig(BaseModel):
    privileged_role: str = Field(default="admin", min_length=1)


class AppConfig(BaseModel):
    database: DatabaseConfig
    document_store: DocumentStoreConfig
    auth: AuthConfig
    pagination: PaginationConfig
    access: AccessConfig
    auto_apply_migrations: bool = True
    log_level: str = "INFO"
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"log_level must be a standard logging level, got {v!r}")
        return level


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) formdesk_config.json at project root (primary base)
    4) Safe defaults for development
    """

    base = _read_json_file(ROOT_CONFIG)

    def _base(path: str, default: Optional[str] = None) -> Optional[str]:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        if isinstance(cur, list):
            return ",".join(str(item) for item in cur)
        return str(cur) if cur is not None else default

    def _pick(env_key: str, file_key: str, base_key: str, default: Optional[str] = None) -> Optional[str]:
        return _env(env_key) or _read_config_file(file_key) or _base(base_key, default)

    dsn = _pick("DATABASE_URL", "database.url", "database.dsn", "sqlite+pysqlite:///./formdesk.db")

    mongo_uri = _pick("MONGODB_URI", "mongodb.uri", "document_store.uri", "mongodb://localhost:27017")
    mongo_db = _pick("MONGODB_DATABASE", "mongodb.database", "document_store.database", "formdesk")
    mongo_collection = _pick("MONGODB_FORMS_COLLECTION", "mongodb.collection", "document_store.collection", "forms")

    jwt_secret = _pick("JWT_SECRET", "jwt.secret", "auth.jwt_secret", "change-me-in-production")
    jwt_algorithm = _pick("JWT_ALGORITHM", "jwt.algorithm", "auth.algorithm", "HS256")
    jwt_issuer = _pick("JWT_ISSUER", "jwt.issuer", "auth.issuer", "formdesk")
    jwt_audience = _pick("JWT_AUDIENCE", "jwt.audience", "auth.audience", "formdesk-users")
    jwt_expire_text = _pick("JWT_EXPIRE_MINUTES", "jwt.expire_minutes", "auth.expire_minutes", str(60 * 24 * 7))

    default_page_size_text = _pick("DEFAULT_PAGE_SIZE", "pagination.default_page_size", "pagination.default_page_size", "10")
    max_page_size_text = _pick("MAX_PAGE_SIZE", "pagination.max_page_size", "pagination.max_page_size", "100")

    privileged_role = _pick("PRIVILEGED_ROLE", "access.privileged_role", "access.privileged_role", "admin")
    auto_migrate_text = _pick("AUTO_APPLY_MIGRATIONS", "database.auto_apply_migrations", "auto_apply_migrations", "true")
    log_level = _pick("LOG_LEVEL", "logging.level", "log_level", "INFO")
    cors_text = _pick("CORS_ORIGINS", "cors.origins", "cors_origins", "*")

    try:
        cfg = AppConfig(
            database=DatabaseConfig(dsn=dsn),
            document_store=DocumentStoreConfig(uri=mongo_uri, database=mongo_db, collection=mongo_collection),
            auth=AuthConfig(
                jwt_secret=jwt_secret,
                algorithm=str(jwt_algorithm).strip(),
                issuer=jwt_issuer,
                audience=jwt_audience,
                expire_minutes=int(str(jwt_expire_text).strip()),
            ),
            pagination=PaginationConfig(
                default_page_size=int(str(default_page_size_text).strip()),
                max_page_size=int(str(max_page_size_text).strip()),
            ),
            access=AccessConfig(privileged_role=str(privileged_role).strip()),
            auto_apply_migrations=_flag(auto_migrate_text),
            log_level=str(log_level),
            cors_origins=[o.strip() for o in str(cors_text).split(",") if o.strip()],
        )
        return cfg
    except PydanticValidationError as e:
        logger.error("Invalid application configuration: %s", e)
        raise


@lru_cache
def get_config() -> AppConfig:
    """Process-wide cached configuration; call `get_config.cache_clear()` in tests."""
    return load_config()


__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "DocumentStoreConfig",
    "AuthConfig",
    "PaginationConfig",
    "AccessConfig",
    "load_config",
    "get_config",
]
