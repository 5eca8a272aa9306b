"""Bearer-credential resolution backed by signed JWTs (PyJWT).

Tokens carry `sub` (user id) and `role`, plus `iat`, `exp`, `iss` and `aud`.
Any decoding failure surfaces as AuthenticationError; callers never see
PyJWT exceptions.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from formdesk.config import AuthConfig, get_config
from formdesk.logic.errors import AuthenticationError
from formdesk.models.caller import Caller

logger = logging.getLogger(__name__)


class JwtAuthenticationProvider:
    def __init__(self, config: AuthConfig | None = None) -> None:
        self._config = config or get_config().auth

    def issue_token(self, user_id: str, role: str, expires_minutes: Optional[int] = None) -> str:
        """Mint a token for `user_id`; used by development tooling and tests."""
        cfg = self._config
        now = datetime.now(timezone.utc)
        minutes = expires_minutes if expires_minutes is not None else cfg.expire_minutes
        claims: Dict[str, Any] = {
            "sub": str(user_id),
            "role": role,
            "iss": cfg.issuer,
            "aud": cfg.audience,
            "iat": int(now.timestamp()),
            "exp": now + timedelta(minutes=minutes),
        }
        return jwt.encode(claims, cfg.jwt_secret, algorithm=cfg.algorithm)

    def decode(self, credential: str) -> Dict[str, Any]:
        cfg = self._config
        try:
            return jwt.decode(
                credential,
                cfg.jwt_secret,
                algorithms=[cfg.algorithm],
                audience=cfg.audience,
                issuer=cfg.issuer,
                options={"require": ["exp", "iat", "sub"]},
                leeway=5,
            )
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token expired") from None
        except jwt.InvalidTokenError as e:
            logger.info("auth_token_rejected reason=%s", e)
            raise AuthenticationError("Invalid token") from None

    def resolve_caller(self, credential: Optional[str]) -> Caller:
        if not credential or not credential.strip():
            raise AuthenticationError("Missing credentials")
        claims = self.decode(credential.strip())
        sub = claims.get("sub")
        role = claims.get("role")
        if not sub or not role:
            raise AuthenticationError("Token is missing subject or role")
        return Caller(user_id=str(sub), role=str(role))


__all__ = ["JwtAuthenticationProvider"]
