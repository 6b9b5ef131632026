from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from claimdesk.db.filters import NO_CENTER, TenantFilter, attach_tenant_filter
from claimdesk.db.session import get_db
from claimdesk.security.auth import extract_bearer_token, resolve_session
from claimdesk.security.context import SessionContext
from claimdesk.security.guard import coordinator_center_id

logger = logging.getLogger(__name__)


def tenant_filter_for(db: Session, session: SessionContext) -> TenantFilter | None:
    """Claim row scope for this caller. Registry reads are scoped by the services instead."""

    if session.is_coordinator:
        center_id = coordinator_center_id(db, session.user_id)
        return TenantFilter(center_id=center_id if center_id is not None else NO_CENTER)
    if session.is_lecturer:
        return TenantFilter(submitted_by_id=session.user_id)
    return None


def get_session_context(request: Request, db: Session = Depends(get_db)) -> SessionContext:
    """
    Resolve the caller and scope the request's DB session to their tenant.

    No session (missing, invalid or stale token) is a 401.
    """

    session = resolve_session(db, extract_bearer_token(request))
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    attach_tenant_filter(db, tenant_filter_for(db, session))
    request.state.session = session
    return session
