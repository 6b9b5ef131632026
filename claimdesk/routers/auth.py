from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from claimdesk.db.session import get_db
from claimdesk.deps import get_session_context
from claimdesk.models.tenancy import Department, User
from claimdesk.schemas.tenancy import (
    CenterAssignmentOut,
    CenterOut,
    DepartmentOut,
    LoginIn,
    SessionOut,
    SignupIn,
    TokenOut,
    UserOut,
)
from claimdesk.security.context import SessionContext
from claimdesk.services import accounts, tenancy

router = APIRouter(tags=["auth"])


@router.post("/auth/login", response_model=TokenOut)
def login(body: LoginIn, db: Session = Depends(get_db)) -> TokenOut:
    result = accounts.login(db, body.email, body.password)
    if result is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")

    token, session = result
    return TokenOut(access_token=token, session=SessionOut(**session.to_dict()))


@router.post("/auth/signup", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def signup(body: SignupIn, db: Session = Depends(get_db)) -> User:
    return accounts.signup(db, body.email, body.password, body.name)


@router.get("/me", response_model=UserOut)
def me(session: SessionContext = Depends(get_session_context), db: Session = Depends(get_db)) -> User:
    return db.get(User, session.user_id)


@router.get("/me/center", response_model=CenterAssignmentOut)
def my_center(
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> CenterAssignmentOut:
    if session.is_coordinator:
        center = tenancy.find_center_for_coordinator(session, db, session.user_id)
    elif session.is_lecturer:
        center = tenancy.find_center_for_lecturer(session, db, session.user_id)
    else:
        center = None

    if center is None:
        return CenterAssignmentOut(assigned=False)

    department = None
    if session.is_lecturer:
        department_id = db.get(User, session.user_id).department_id
        if department_id is not None:
            department = DepartmentOut.model_validate(db.get(Department, department_id))

    return CenterAssignmentOut(assigned=True, center=CenterOut.model_validate(center), department=department)
