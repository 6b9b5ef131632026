from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import event
from sqlalchemy.orm import Session, with_loader_criteria

from claimdesk.models.claims import Claim

# Autoincrement ids start at 1, so this matches no center.
NO_CENTER = 0


@dataclass(frozen=True)
class TenantFilter:
    """
    Row scope applied to every ORM SELECT on `Claim` for one request.

    Exactly one of the two fields is used:
    - `center_id`: coordinators see their own center's claims only.
    - `submitted_by_id`: lecturers see their own claims only.
    """

    center_id: int | None = None
    submitted_by_id: int | None = None


def attach_tenant_filter(db: Session, tenant: TenantFilter | None) -> None:
    if tenant is None:
        db.info.pop("tenant", None)
    else:
        db.info["tenant"] = tenant


@event.listens_for(Session, "do_orm_execute")
def _apply_tenant_filters(execute_state) -> None:
    """
    Transparent claim scoping.

    Services already scope every claim query explicitly; this is a second,
    independent layer so that a query written without a scope clause still
    cannot return another tenant's claims.
    """

    if not execute_state.is_select:
        return

    tenant = execute_state.session.info.get("tenant")
    if tenant is None:
        return

    stmt = execute_state.statement

    if tenant.submitted_by_id is not None:
        submitter_id = tenant.submitted_by_id
        stmt = stmt.options(
            with_loader_criteria(Claim, lambda cls: cls.submitted_by_id == submitter_id, include_aliases=True),
        )
    elif tenant.center_id is not None:
        center_id = tenant.center_id
        stmt = stmt.options(
            with_loader_criteria(Claim, lambda cls: cls.center_id == center_id, include_aliases=True),
        )

    execute_state.statement = stmt
