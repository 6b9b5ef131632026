"""
Tenant graph: centers, departments and lecturer membership.

All operations take the caller's `SessionContext` first and go through
`claimdesk.security.guard.authorize` before touching data.
"""

from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from claimdesk.errors import AlreadyAssigned, DuplicateName, NotFound
from claimdesk.models.tenancy import Center, Department, Role, User
from claimdesk.security.context import SessionContext
from claimdesk.security.guard import (
    authorize,
    center_chain,
    coordinator_center_id,
    department_chain,
    lecturer_center_id,
    require_role,
)

logger = logging.getLogger(__name__)


# ---- Lookups -------------------------------------------------------------------------


def find_center_for_coordinator(session: SessionContext, db: Session, user_id: int) -> Center | None:
    """Center coordinated by `user_id`, or None when the coordinator is unassigned."""

    center_id = coordinator_center_id(db, user_id)
    if center_id is None:
        return None
    authorize(session, db, "centers.read", center_chain(db, center_id))
    return db.get(Center, center_id)


def find_center_for_lecturer(session: SessionContext, db: Session, user_id: int) -> Center | None:
    """Center the lecturer belongs to, or None when unassigned."""

    center_id = lecturer_center_id(db, user_id)
    if center_id is None:
        return None
    authorize(session, db, "centers.read", center_chain(db, center_id))
    return db.get(Center, center_id)


def get_center(session: SessionContext, db: Session, center_id: int) -> Center:
    authorize(session, db, "centers.read", center_chain(db, center_id))
    return db.get(Center, center_id)


def list_centers(session: SessionContext, db: Session) -> list[Center]:
    require_role(session, "centers.read")

    stmt = select(Center).order_by(Center.name)
    if session.is_coordinator:
        stmt = stmt.where(Center.coordinator_id == session.user_id)
    elif session.is_lecturer:
        stmt = stmt.where(Center.id == lecturer_center_id(db, session.user_id))
    return list(db.scalars(stmt).all())


def list_departments(session: SessionContext, db: Session, center_id: int) -> list[Department]:
    authorize(session, db, "departments.list", center_chain(db, center_id))
    stmt = select(Department).where(Department.center_id == center_id).order_by(Department.name)
    return list(db.scalars(stmt).all())


def list_lecturers(session: SessionContext, db: Session, center_id: int) -> list[User]:
    authorize(session, db, "lecturers.list", center_chain(db, center_id))
    stmt = (
        select(User)
        .where(User.lecturer_center_id == center_id, User.role == Role.LECTURER)
        .order_by(User.name, User.email)
    )
    return list(db.scalars(stmt).all())


def _get_lecturer(db: Session, lecturer_id: int) -> User:
    lecturer = db.execute(
        select(User).where(User.id == lecturer_id, User.role == Role.LECTURER)
    ).scalar_one_or_none()
    if lecturer is None:
        raise NotFound("Lecturer not found")
    return lecturer


# ---- Lecturer membership -------------------------------------------------------------


def assign_lecturer_to_center(session: SessionContext, db: Session, center_id: int, lecturer_id: int) -> User:
    """
    Bind a lecturer to a center.

    A lecturer belongs to one center at a time; re-assigning to the same or
    another center fails with AlreadyAssigned.
    """

    authorize(session, db, "lecturers.assign_center", center_chain(db, center_id))
    lecturer = _get_lecturer(db, lecturer_id)

    if lecturer.lecturer_center_id is not None:
        raise AlreadyAssigned(f"Lecturer {lecturer.email} is already assigned to a center")

    lecturer.lecturer_center_id = center_id
    lecturer.department_id = None
    db.commit()
    db.refresh(lecturer)

    logger.info("Assigned lecturer_id=%s to center_id=%s by user_id=%s", lecturer.id, center_id, session.user_id)
    return lecturer


def unassign_lecturer_from_center(session: SessionContext, db: Session, center_id: int, lecturer_id: int) -> User:
    """Remove a lecturer from a center. Their department (center-local) is cleared too."""

    authorize(session, db, "lecturers.unassign_center", center_chain(db, center_id))
    lecturer = _get_lecturer(db, lecturer_id)

    if lecturer.lecturer_center_id != center_id:
        raise NotFound("Lecturer not found in this center")

    lecturer.lecturer_center_id = None
    lecturer.department_id = None
    db.commit()
    db.refresh(lecturer)

    logger.info("Unassigned lecturer_id=%s from center_id=%s by user_id=%s", lecturer.id, center_id, session.user_id)
    return lecturer


def assign_lecturer_to_department(
    session: SessionContext, db: Session, department_id: int, lecturer_id: int
) -> User:
    chain = authorize(session, db, "departments.assign_lecturer", department_chain(db, department_id))
    lecturer = _get_lecturer(db, lecturer_id)

    if lecturer.lecturer_center_id != chain.center_id:
        raise NotFound("Lecturer not found in this center")

    lecturer.department_id = department_id
    db.commit()
    db.refresh(lecturer)

    logger.info("Assigned lecturer_id=%s to department_id=%s", lecturer.id, department_id)
    return lecturer


def unassign_lecturer_from_department(session: SessionContext, db: Session, lecturer_id: int) -> User:
    """Clear a lecturer's department. Already unassigned lecturers are returned unchanged."""

    lecturer = _get_lecturer(db, lecturer_id)
    if lecturer.lecturer_center_id is None:
        # No center means no tenant to authorize against; treat as not visible.
        require_role(session, "departments.unassign_lecturer")
        raise NotFound("Lecturer not found in this center")

    authorize(session, db, "departments.unassign_lecturer", center_chain(db, lecturer.lecturer_center_id))

    if lecturer.department_id is None:
        return lecturer

    previous = lecturer.department_id
    lecturer.department_id = None
    db.commit()
    db.refresh(lecturer)

    logger.info("Unassigned lecturer_id=%s from department_id=%s", lecturer.id, previous)
    return lecturer


# ---- Departments ---------------------------------------------------------------------


def _department_name_taken(db: Session, center_id: int, name: str, exclude_id: int | None = None) -> bool:
    stmt = select(Department.id).where(Department.center_id == center_id, Department.name == name)
    if exclude_id is not None:
        stmt = stmt.where(Department.id != exclude_id)
    return db.execute(stmt.limit(1)).first() is not None


def create_department(session: SessionContext, db: Session, center_id: int, name: str) -> Department:
    authorize(session, db, "departments.create", center_chain(db, center_id))

    name = name.strip()
    if _department_name_taken(db, center_id, name):
        raise DuplicateName(f'A department named "{name}" already exists in this center')

    department = Department(name=name, center_id=center_id)
    db.add(department)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateName(f'A department named "{name}" already exists in this center') from e
    db.refresh(department)

    logger.info("Created department_id=%s name=%r center_id=%s", department.id, name, center_id)
    return department


def update_department(session: SessionContext, db: Session, department_id: int, name: str) -> Department:
    chain = authorize(session, db, "departments.update", department_chain(db, department_id))

    name = name.strip()
    if _department_name_taken(db, chain.center_id, name, exclude_id=department_id):
        raise DuplicateName(f'A department named "{name}" already exists in this center')

    department = db.get(Department, department_id)
    department.name = name
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateName(f'A department named "{name}" already exists in this center') from e
    db.refresh(department)

    logger.info("Renamed department_id=%s to %r", department_id, name)
    return department


def delete_department(session: SessionContext, db: Session, department_id: int) -> int:
    """
    Delete a department after unassigning its lecturers.

    Both steps run in one transaction. Returns the number of lecturers whose
    department was cleared; no user row is ever deleted.
    """

    authorize(session, db, "departments.delete", department_chain(db, department_id))

    result = db.execute(
        update(User)
        .where(User.department_id == department_id)
        .values(department_id=None)
        .execution_options(synchronize_session="fetch")
    )
    unassigned = result.rowcount or 0

    department = db.get(Department, department_id)
    db.delete(department)
    db.commit()

    logger.info("Deleted department_id=%s (unassigned %d lecturers)", department_id, unassigned)
    return unassigned

