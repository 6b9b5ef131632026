"""
Account lifecycle: self-service signup, password login, and coordinators
onboarding lecturers straight into their center.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from claimdesk.errors import NotFound
from claimdesk.models.tenancy import Department, Role, User
from claimdesk.security.context import SessionContext
from claimdesk.security.guard import authorize, center_chain
from claimdesk.security.passwords import verify_password
from claimdesk.security.tokens import issue_session_token
from claimdesk.services.registry import add_user
from claimdesk.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def signup(db: Session, email: str, password: str, name: str) -> User:
    """New accounts are lecturers without a center until a coordinator assigns them."""

    return add_user(db, email=email, password=password, role=Role.LECTURER, name=name)


def authenticate(db: Session, email: str, password: str) -> User | None:
    user = db.execute(select(User).where(User.email == email.strip().lower())).scalar_one_or_none()
    if user is None or not user.is_active:
        return None
    if not verify_password(password, user.password_hash):
        logger.info("Failed login for user_id=%s", user.id)
        return None
    return user


def login(db: Session, email: str, password: str, settings: Settings | None = None) -> tuple[str, SessionContext] | None:
    """Returns `(token, session)` or None on bad credentials."""

    user = authenticate(db, email, password)
    if user is None:
        return None

    settings = settings or get_settings()
    token = issue_session_token(user.id, user.role.value, user.name, settings)
    logger.info("Issued session for user_id=%s role=%s", user.id, user.role.value)
    return token, SessionContext(user_id=user.id, role=user.role, name=user.name)


def create_lecturer_for_center(
    session: SessionContext,
    db: Session,
    center_id: int,
    email: str,
    password: str,
    name: str | None = None,
    department_id: int | None = None,
) -> User:
    authorize(session, db, "lecturers.create", center_chain(db, center_id))

    if department_id is not None:
        department = db.get(Department, department_id)
        if department is None or department.center_id != center_id:
            raise NotFound("Department not found in this center")

    return add_user(
        db,
        email=email,
        password=password,
        role=Role.LECTURER,
        name=name,
        lecturer_center_id=center_id,
        department_id=department_id,
    )
