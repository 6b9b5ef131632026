"""
Authorization guard.

Every service operation passes through `authorize()` before it reads or
writes anything tenant-owned. Two questions are answered, in order:

1. Role: may this role attempt the operation at all? (policy.yaml)
   A "no" is reported as `Unauthorized`.
2. Ownership: does the resource's owner chain, loaded from the database for
   this call, lead back to the caller? A "no" is reported as `NotFound` so
   that callers cannot discover which ids exist in other tenants.

Owner chains are never built from client-supplied ids alone: each loader
below joins through to `Center.coordinator_id`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from claimdesk.errors import NotFound, Unauthorized
from claimdesk.models.claims import Claim
from claimdesk.models.tenancy import Center, Department, Role, User
from claimdesk.security.context import SessionContext
from claimdesk.security.policy import Policy, get_policy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OwnerChain:
    """Ownership path of a tenant-owned resource: center, its coordinator, and (for claims) the submitter."""

    center_id: int
    coordinator_id: int
    submitted_by_id: int | None = None


# ---- Owner chain loaders -------------------------------------------------------------


def center_chain(db: Session, center_id: int) -> OwnerChain | None:
    row = db.execute(select(Center.id, Center.coordinator_id).where(Center.id == center_id)).first()
    if row is None:
        return None
    return OwnerChain(center_id=row.id, coordinator_id=row.coordinator_id)


def department_chain(db: Session, department_id: int) -> OwnerChain | None:
    row = db.execute(
        select(Center.id, Center.coordinator_id)
        .join(Department, Department.center_id == Center.id)
        .where(Department.id == department_id)
    ).first()
    if row is None:
        return None
    return OwnerChain(center_id=row.id, coordinator_id=row.coordinator_id)


def claim_chain(db: Session, claim_id: int) -> OwnerChain | None:
    row = db.execute(
        select(Center.id, Center.coordinator_id, Claim.submitted_by_id)
        .join(Claim, Claim.center_id == Center.id)
        .where(Claim.id == claim_id)
    ).first()
    if row is None:
        return None
    return OwnerChain(center_id=row.id, coordinator_id=row.coordinator_id, submitted_by_id=row.submitted_by_id)


def coordinator_center_id(db: Session, user_id: int) -> int | None:
    return db.execute(select(Center.id).where(Center.coordinator_id == user_id)).scalar_one_or_none()


def lecturer_center_id(db: Session, user_id: int) -> int | None:
    return db.execute(
        select(User.lecturer_center_id).where(User.id == user_id, User.role == Role.LECTURER)
    ).scalar_one_or_none()


# ---- Decisions -----------------------------------------------------------------------


def require_role(session: SessionContext, operation: str, policy: Policy | None = None) -> None:
    policy = policy or get_policy()
    if not policy.allows(session.role, operation):
        logger.info("Denied by role user_id=%s role=%s operation=%s", session.user_id, session.role.value, operation)
        raise Unauthorized(f"Role {session.role.value} may not perform {operation}")


def owns(session: SessionContext, db: Session, chain: OwnerChain) -> bool:
    if session.is_registry:
        return True
    if session.is_coordinator:
        return chain.coordinator_id == session.user_id
    if session.is_lecturer:
        if chain.submitted_by_id is not None:
            return chain.submitted_by_id == session.user_id
        return lecturer_center_id(db, session.user_id) == chain.center_id
    return False


def authorize(
    session: SessionContext,
    db: Session,
    operation: str,
    chain: OwnerChain | None,
    policy: Policy | None = None,
) -> OwnerChain:
    """
    Check role, then ownership. Returns the verified chain.

    A missing chain (resource does not exist) and a foreign chain (resource
    belongs to another tenant) both raise the same `NotFound`.
    """

    require_role(session, operation, policy)

    if chain is None:
        raise NotFound()

    if not owns(session, db, chain):
        logger.warning(
            "Denied by ownership user_id=%s role=%s operation=%s center_id=%s",
            session.user_id,
            session.role.value,
            operation,
            chain.center_id,
        )
        raise NotFound()

    return chain
