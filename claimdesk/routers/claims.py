from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.orm import Session

from claimdesk.db.session import get_db
from claimdesk.deps import get_session_context
from claimdesk.errors import InvalidClaimPayload
from claimdesk.schemas.claims import ClaimOut, ClaimStatusCountsOut, claim_to_out, counts_to_out
from claimdesk.security.context import SessionContext
from claimdesk.services import claims, lifecycle

router = APIRouter(prefix="/claims", tags=["claims"])


@router.get("", response_model=list[ClaimOut])
def list_claims(
    center_id: int | None = None,
    q: str | None = None,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> list[ClaimOut]:
    found = claims.list_claims(session, db, claims.ClaimScope(center_id=center_id), query=q)
    return [claim_to_out(claim) for claim in found]


@router.post("", response_model=ClaimOut, status_code=status.HTTP_201_CREATED)
def create_claim(
    payload: dict[str, Any] = Body(...),
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> ClaimOut:
    claim_type = payload.get("claim_type")
    if not claim_type:
        raise InvalidClaimPayload("claim_type is required", errors=[{"loc": "claim_type", "msg": "Field required"}])
    return claim_to_out(claims.create_claim(session, db, claim_type, payload))


@router.get("/stats", response_model=ClaimStatusCountsOut)
def claim_stats(
    center_id: int | None = None,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> ClaimStatusCountsOut:
    return counts_to_out(claims.claim_status_counts(session, db, claims.ClaimScope(center_id=center_id)))


@router.get("/{claim_id}", response_model=ClaimOut)
def get_claim(
    claim_id: int,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> ClaimOut:
    return claim_to_out(claims.get_claim(session, db, claim_id))


@router.post("/{claim_id}/approve", response_model=ClaimOut)
def approve_claim(
    claim_id: int,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> ClaimOut:
    return claim_to_out(lifecycle.approve_claim(session, db, claim_id))


@router.post("/{claim_id}/reject", response_model=ClaimOut)
def reject_claim(
    claim_id: int,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> ClaimOut:
    return claim_to_out(lifecycle.reject_claim(session, db, claim_id))
