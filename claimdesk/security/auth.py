from __future__ import annotations

import logging

from fastapi import HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from claimdesk.models.tenancy import Role, User
from claimdesk.security.context import SessionContext
from claimdesk.security.tokens import TokenError, decode_session_token
from claimdesk.settings import Settings, get_settings

logger = logging.getLogger(__name__)

AUTHORIZATION_HEADER = "Authorization"
BEARER_PREFIX = "Bearer"


def extract_bearer_token(request: Request) -> str | None:
    """
    Read `Authorization: Bearer <token>`.

    Returns None when the header is absent; a present but malformed header is
    a client error (400).
    """

    raw = request.headers.get(AUTHORIZATION_HEADER)
    if not raw:
        return None

    prefix = f"{BEARER_PREFIX} "
    if not raw.startswith(prefix):
        logger.warning("Invalid Authorization header format path=%s method=%s", request.url.path, request.method)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {AUTHORIZATION_HEADER}. Expected '{BEARER_PREFIX} <token>'.",
        )

    token = raw[len(prefix) :].strip()
    if not token:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {AUTHORIZATION_HEADER}. Missing token after '{BEARER_PREFIX}'.",
        )
    return token


def resolve_session(db: Session, token: str | None, settings: Settings | None = None) -> SessionContext | None:
    """
    Turn a session token into a `SessionContext`, or None (no session).

    None covers: no token, bad signature, expiry, unknown or inactive user,
    and a token whose role no longer matches the stored role.
    """

    if not token:
        return None

    settings = settings or get_settings()
    try:
        payload = decode_session_token(token, settings)
    except TokenError as e:
        logger.info("No session: %s", e)
        return None

    user = db.execute(select(User).where(User.id == payload["sub"])).scalar_one_or_none()
    if user is None or not user.is_active:
        logger.info("No session: user_id=%s missing or inactive", payload["sub"])
        return None

    try:
        claimed_role = Role(payload["role"])
    except ValueError:
        return None
    if claimed_role != user.role:
        logger.warning("No session: role mismatch user_id=%s token_role=%s", user.id, payload["role"])
        return None

    return SessionContext(user_id=user.id, role=user.role, name=user.name)
