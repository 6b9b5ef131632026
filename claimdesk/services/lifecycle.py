"""
Claim state machine.

    PENDING --approve--> APPROVED
    PENDING --reject---> REJECTED

Both terminal states are final. A transition is one conditional UPDATE that
matches only a PENDING claim in the coordinator's own center, so of two
concurrent attempts exactly one changes the row; the other sees rowcount 0.
"""

from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from claimdesk.db.base import utcnow
from claimdesk.errors import AlreadyProcessed, NotFound
from claimdesk.models.claims import TERMINAL_STATES, Claim, ClaimStatus
from claimdesk.security.context import SessionContext
from claimdesk.security.guard import coordinator_center_id, require_role

logger = logging.getLogger(__name__)


def _transition(session: SessionContext, db: Session, claim_id: int, target: ClaimStatus) -> Claim:
    if target not in TERMINAL_STATES:
        raise ValueError(f"{target.value} is not a terminal claim status")

    require_role(session, "claims.process")

    center_id = coordinator_center_id(db, session.user_id)
    if center_id is None:
        raise NotFound("Claim not found")

    result = db.execute(
        update(Claim)
        .where(Claim.id == claim_id, Claim.center_id == center_id, Claim.status == ClaimStatus.PENDING)
        .values(status=target, processed_by_id=session.user_id, processed_at=utcnow())
        .execution_options(synchronize_session=False)
    )

    if result.rowcount != 1:
        db.rollback()
        exists = db.execute(
            select(Claim.id).where(Claim.id == claim_id, Claim.center_id == center_id)
        ).first()
        if exists is None:
            raise NotFound("Claim not found")
        logger.info("Claim claim_id=%s already processed; %s by user_id=%s refused", claim_id, target.value, session.user_id)
        raise AlreadyProcessed(f"Claim {claim_id} has already been processed")

    db.commit()
    logger.info("Claim claim_id=%s %s by user_id=%s", claim_id, target.value, session.user_id)

    return db.execute(
        select(Claim).where(Claim.id == claim_id).execution_options(populate_existing=True)
    ).scalar_one()


def approve_claim(session: SessionContext, db: Session, claim_id: int) -> Claim:
    return _transition(session, db, claim_id, ClaimStatus.APPROVED)


def reject_claim(session: SessionContext, db: Session, claim_id: int) -> Claim:
    return _transition(session, db, claim_id, ClaimStatus.REJECTED)
