"""
Claim submission and retrieval.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.sql.elements import ColumnElement

from claimdesk.errors import ScopeRequired, Unauthorized
from claimdesk.models.claims import Claim, ClaimStatus, ClaimType, SupervisedStudent
from claimdesk.models.tenancy import Center
from claimdesk.schemas.claims import SERVER_OWNED_FIELDS, parse_claim_payload, to_columns
from claimdesk.security.context import SessionContext
from claimdesk.security.guard import authorize, claim_chain, lecturer_center_id, require_role
from claimdesk.services.search import build_claim_filter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClaimScope:
    """Which center's claims to list. Required for Registry, optional narrowing otherwise."""

    center_id: int | None = None


def create_claim(session: SessionContext, db: Session, claim_type: ClaimType | str, payload: dict[str, Any]) -> Claim:
    """
    Submit a claim as the calling lecturer.

    The submitter and the center are taken from the session and the database.
    Any such keys in `payload` are ignored.
    """

    require_role(session, "claims.create")

    center_id = lecturer_center_id(db, session.user_id)
    if center_id is None:
        raise Unauthorized("Lecturer is not assigned to a center")

    ignored = sorted(SERVER_OWNED_FIELDS.intersection(payload))
    if ignored:
        logger.info("Ignoring server-owned claim fields %s from user_id=%s", ignored, session.user_id)

    parsed = parse_claim_payload(claim_type, payload)
    columns, students = to_columns(parsed)

    claim = Claim(**columns, submitted_by_id=session.user_id, center_id=center_id, status=ClaimStatus.PENDING)
    claim.supervised_students = [SupervisedStudent(**row, supervisor_id=session.user_id) for row in students]
    db.add(claim)
    db.commit()
    db.refresh(claim)

    logger.info(
        "Created claim_id=%s type=%s center_id=%s by user_id=%s",
        claim.id,
        claim.claim_type.value,
        center_id,
        session.user_id,
    )
    return claim


def get_claim(session: SessionContext, db: Session, claim_id: int) -> Claim:
    authorize(session, db, "claims.read", claim_chain(db, claim_id))
    return db.get(Claim, claim_id)


def scope_clause(session: SessionContext, scope: ClaimScope) -> ColumnElement[bool]:
    """Tenant predicate for the caller. Never returns an unrestricted clause."""

    if session.is_registry:
        if scope.center_id is None:
            raise ScopeRequired("Registry must choose a center to list claims")
        return Claim.center_id == scope.center_id

    if session.is_coordinator:
        own_centers = select(Center.id).where(Center.coordinator_id == session.user_id)
        clause = Claim.center_id.in_(own_centers)
    elif session.is_lecturer:
        clause = Claim.submitted_by_id == session.user_id
    else:
        raise Unauthorized(f"Role {session.role.value} may not list claims")

    if scope.center_id is not None:
        clause = clause & (Claim.center_id == scope.center_id)
    return clause


def list_claims(
    session: SessionContext,
    db: Session,
    scope: ClaimScope | None = None,
    query: str | None = None,
) -> list[Claim]:
    require_role(session, "claims.list")

    where = build_claim_filter(scope_clause(session, scope or ClaimScope()), query)
    pending_first = case((Claim.status == ClaimStatus.PENDING, 0), else_=1)
    stmt = (
        select(Claim)
        .where(where)
        .options(selectinload(Claim.submitted_by), selectinload(Claim.supervised_students))
        .order_by(pending_first, Claim.submitted_at.desc(), Claim.id.desc())
    )
    return list(db.scalars(stmt).all())


def claim_status_counts(
    session: SessionContext,
    db: Session,
    scope: ClaimScope | None = None,
) -> dict[ClaimStatus, int]:
    """
    Number of claims per status within the caller's tenant.

    Same scoping as `list_claims`. Every status is present in the result,
    with 0 where no claim has it.
    """

    require_role(session, "claims.stats")

    stmt = (
        select(Claim.status, func.count(Claim.id))
        .where(scope_clause(session, scope or ClaimScope()))
        .group_by(Claim.status)
    )
    counts = {status: 0 for status in ClaimStatus}
    for status, count in db.execute(stmt):
        counts[status] = count
    return counts
