from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from claimdesk.db.session import get_db
from claimdesk.deps import get_session_context
from claimdesk.models.tenancy import Department, User
from claimdesk.schemas.tenancy import DepartmentIn, DepartmentOut, UserOut
from claimdesk.security.context import SessionContext
from claimdesk.services import tenancy

router = APIRouter(tags=["departments"])


@router.patch("/departments/{department_id}", response_model=DepartmentOut)
def update_department(
    department_id: int,
    body: DepartmentIn,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> Department:
    return tenancy.update_department(session, db, department_id, body.name)


@router.delete("/departments/{department_id}")
def delete_department(
    department_id: int,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> dict[str, int]:
    unassigned = tenancy.delete_department(session, db, department_id)
    return {"unassigned_lecturers": unassigned}


@router.put("/departments/{department_id}/lecturers/{lecturer_id}", response_model=UserOut)
def assign_lecturer(
    department_id: int,
    lecturer_id: int,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> User:
    return tenancy.assign_lecturer_to_department(session, db, department_id, lecturer_id)


@router.delete("/lecturers/{lecturer_id}/department", response_model=UserOut)
def unassign_lecturer(
    lecturer_id: int,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> User:
    return tenancy.unassign_lecturer_from_department(session, db, lecturer_id)
