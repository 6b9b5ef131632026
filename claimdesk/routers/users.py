from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from claimdesk.db.session import get_db
from claimdesk.deps import get_session_context
from claimdesk.models.tenancy import Role, User
from claimdesk.schemas.tenancy import CreateUserIn, UserOut
from claimdesk.security.context import SessionContext
from claimdesk.services import registry

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=list[UserOut])
def list_users(
    role: Role | None = None,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> list[User]:
    return registry.list_users(session, db, role=role)


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(
    body: CreateUserIn,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> User:
    return registry.create_user(session, db, body.email, body.password, body.role, name=body.name)
