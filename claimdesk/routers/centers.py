from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from claimdesk.db.session import get_db
from claimdesk.deps import get_session_context
from claimdesk.models.tenancy import Center, Department, User
from claimdesk.schemas.tenancy import (
    CenterIn,
    CenterOut,
    CenterUpdateIn,
    CoordinatorIn,
    CreateLecturerIn,
    DepartmentIn,
    DepartmentOut,
    LecturerRefIn,
    UserOut,
)
from claimdesk.security.context import SessionContext
from claimdesk.services import accounts, registry, tenancy

router = APIRouter(prefix="/centers", tags=["centers"])


@router.get("", response_model=list[CenterOut])
def list_centers(
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> list[Center]:
    return tenancy.list_centers(session, db)


@router.post("", response_model=CenterOut, status_code=status.HTTP_201_CREATED)
def create_center(
    body: CenterIn,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> Center:
    return registry.create_center(session, db, body.name, body.coordinator_id)


@router.get("/{center_id}", response_model=CenterOut)
def get_center(
    center_id: int,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> Center:
    return tenancy.get_center(session, db, center_id)


@router.patch("/{center_id}", response_model=CenterOut)
def update_center(
    center_id: int,
    body: CenterUpdateIn,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> Center:
    return registry.update_center(session, db, center_id, body.name)


@router.put("/{center_id}/coordinator", response_model=CenterOut)
def change_coordinator(
    center_id: int,
    body: CoordinatorIn,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> Center:
    return registry.change_center_coordinator(session, db, center_id, body.coordinator_id)


# ---- Lecturers -----------------------------------------------------------------------


@router.get("/{center_id}/lecturers", response_model=list[UserOut])
def list_lecturers(
    center_id: int,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> list[User]:
    return tenancy.list_lecturers(session, db, center_id)


@router.post("/{center_id}/lecturers", response_model=UserOut)
def assign_lecturer(
    center_id: int,
    body: LecturerRefIn,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> User:
    return tenancy.assign_lecturer_to_center(session, db, center_id, body.lecturer_id)


@router.post("/{center_id}/lecturers/new", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_lecturer(
    center_id: int,
    body: CreateLecturerIn,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> User:
    return accounts.create_lecturer_for_center(
        session,
        db,
        center_id,
        email=body.email,
        password=body.password,
        name=body.name,
        department_id=body.department_id,
    )


@router.delete("/{center_id}/lecturers/{lecturer_id}", response_model=UserOut)
def unassign_lecturer(
    center_id: int,
    lecturer_id: int,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> User:
    return tenancy.unassign_lecturer_from_center(session, db, center_id, lecturer_id)


# ---- Departments ---------------------------------------------------------------------


@router.get("/{center_id}/departments", response_model=list[DepartmentOut])
def list_departments(
    center_id: int,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> list[Department]:
    return tenancy.list_departments(session, db, center_id)


@router.post("/{center_id}/departments", response_model=DepartmentOut, status_code=status.HTTP_201_CREATED)
def create_department(
    center_id: int,
    body: DepartmentIn,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> Department:
    return tenancy.create_department(session, db, center_id, body.name)
