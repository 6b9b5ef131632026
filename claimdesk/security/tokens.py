"""
Signed session tokens.

A session token is a short HS256 JWT carrying the user id and role. It only
*names* the caller: `claimdesk.security.auth.resolve_session` still checks
the user against the database before a `SessionContext` is built.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

import jwt

from claimdesk.db.base import utcnow
from claimdesk.settings import Settings

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class TokenError(Exception):
    """Raised when a session token is malformed, tampered with or expired. Do not log the token."""

    pass


def issue_session_token(user_id: int, role: str, name: str | None, settings: Settings) -> str:
    now = utcnow()
    payload = {
        "sub": str(user_id),
        "role": role,
        "name": name,
        "iat": now,
        "exp": now + timedelta(minutes=settings.session_ttl_minutes),
    }
    return jwt.encode(payload, settings.session_secret, algorithm=ALGORITHM)


def decode_session_token(token: str, settings: Settings) -> dict[str, Any]:
    try:
        payload = jwt.decode(
            token,
            settings.session_secret,
            algorithms=[ALGORITHM],
            options={"require": ["sub", "role", "exp"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenError("Session expired") from e
    except jwt.InvalidTokenError as e:
        logger.debug("Session token rejected: %s", type(e).__name__)
        raise TokenError("Invalid session token") from e

    try:
        payload["sub"] = int(payload["sub"])
    except (TypeError, ValueError) as e:
        raise TokenError("Invalid subject in session token") from e
    return payload
