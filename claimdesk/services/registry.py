"""
Registry administration: centers, coordinators and user accounts.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from claimdesk.errors import AlreadyAssigned, DuplicateEmail, DuplicateName, NotFound, Unauthorized
from claimdesk.models.tenancy import Center, Role, User
from claimdesk.security.context import SessionContext
from claimdesk.security.guard import authorize, center_chain, coordinator_center_id, require_role
from claimdesk.security.passwords import hash_password

logger = logging.getLogger(__name__)


def _available_coordinator(db: Session, coordinator_id: int) -> User:
    coordinator = db.execute(
        select(User).where(User.id == coordinator_id, User.role == Role.COORDINATOR)
    ).scalar_one_or_none()
    if coordinator is None:
        raise NotFound("Coordinator not found")
    if coordinator_center_id(db, coordinator_id) is not None:
        raise AlreadyAssigned(f"Coordinator {coordinator.email} already coordinates a center")
    return coordinator


def _center_name_taken(db: Session, name: str, exclude_id: int | None = None) -> bool:
    stmt = select(Center.id).where(Center.name == name)
    if exclude_id is not None:
        stmt = stmt.where(Center.id != exclude_id)
    return db.execute(stmt.limit(1)).first() is not None


def create_center(session: SessionContext, db: Session, name: str, coordinator_id: int) -> Center:
    require_role(session, "centers.create")

    name = name.strip()
    if _center_name_taken(db, name):
        raise DuplicateName(f'A center named "{name}" already exists')
    _available_coordinator(db, coordinator_id)

    center = Center(name=name, coordinator_id=coordinator_id)
    db.add(center)
    try:
        db.commit()
    except IntegrityError as e:
        # Lost a race on either unique column.
        db.rollback()
        raise AlreadyAssigned("Center name or coordinator is already taken") from e
    db.refresh(center)

    logger.info("Created center_id=%s name=%r coordinator_id=%s", center.id, name, coordinator_id)
    return center


def update_center(session: SessionContext, db: Session, center_id: int, name: str) -> Center:
    authorize(session, db, "centers.update", center_chain(db, center_id))

    name = name.strip()
    if _center_name_taken(db, name, exclude_id=center_id):
        raise DuplicateName(f'A center named "{name}" already exists')

    center = db.get(Center, center_id)
    center.name = name
    db.commit()
    db.refresh(center)

    logger.info("Renamed center_id=%s to %r", center_id, name)
    return center


def change_center_coordinator(session: SessionContext, db: Session, center_id: int, coordinator_id: int) -> Center:
    """
    Hand a center to another coordinator.

    The swap is a single column update, so the center always has exactly one
    coordinator. The new coordinator must not already coordinate a center.
    """

    authorize(session, db, "centers.change_coordinator", center_chain(db, center_id))

    center = db.get(Center, center_id)
    if center.coordinator_id == coordinator_id:
        return center
    _available_coordinator(db, coordinator_id)

    previous = center.coordinator_id
    center.coordinator_id = coordinator_id
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise AlreadyAssigned("Coordinator already coordinates a center") from e
    db.refresh(center)

    logger.info("Center center_id=%s coordinator changed %s -> %s", center_id, previous, coordinator_id)
    return center


def list_users(session: SessionContext, db: Session, role: Role | None = None) -> list[User]:
    require_role(session, "users.list")

    stmt = select(User).order_by(User.id)
    if role is not None:
        stmt = stmt.where(User.role == role)
    return list(db.scalars(stmt).all())


def create_user(
    session: SessionContext,
    db: Session,
    email: str,
    password: str,
    role: Role,
    name: str | None = None,
) -> User:
    require_role(session, "users.create")
    if role == Role.REGISTRY:
        raise Unauthorized("Registry accounts cannot be created through the application")

    return add_user(db, email=email, password=password, role=role, name=name)


def add_user(
    db: Session,
    email: str,
    password: str,
    role: Role,
    name: str | None = None,
    lecturer_center_id: int | None = None,
    department_id: int | None = None,
) -> User:
    """Insert a user row. Callers are responsible for authorization."""

    email = email.strip().lower()
    if db.execute(select(User.id).where(User.email == email)).first() is not None:
        raise DuplicateEmail(f"A user with the email {email} already exists")

    user = User(
        email=email,
        name=name,
        password_hash=hash_password(password),
        role=role,
        lecturer_center_id=lecturer_center_id,
        department_id=department_id,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateEmail(f"A user with the email {email} already exists") from e
    db.refresh(user)

    logger.info("Created user_id=%s role=%s", user.id, role.value)
    return user
