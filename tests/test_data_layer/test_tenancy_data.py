"""
Tests for the tenant graph constraints (centers, departments, users).

Uses db_session fixture: fresh in-memory SQLite per test, foreign keys on.
"""
from __future__ import annotations

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from claimdesk.models.tenancy import Center, Department, Role, User


def test_center_requires_a_coordinator(db_session):
    db_session.add(Center(name="No Coordinator Center"))

    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


def test_coordinator_cannot_own_two_centers(db_session, make_user):
    coordinator = make_user(Role.COORDINATOR)
    db_session.add(Center(name="First", coordinator_id=coordinator.id))
    db_session.commit()

    db_session.add(Center(name="Second", coordinator_id=coordinator.id))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


def test_center_names_are_unique(db_session, make_center):
    make_center("Kumasi Center")

    with pytest.raises(IntegrityError):
        make_center("Kumasi Center")
    db_session.rollback()


def test_coordinator_with_a_center_cannot_be_deleted(db_session, center, coordinator_user):
    db_session.delete(coordinator_user)

    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()

    assert db_session.get(Center, center.id).coordinator_id == coordinator_user.id


def test_department_name_unique_within_center(db_session, center, department):
    db_session.add(Department(name=department.name, center_id=center.id))

    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


def test_department_name_may_repeat_across_centers(db_session, make_center, department):
    other = make_center("Tamale Center")
    db_session.add(Department(name=department.name, center_id=other.id))
    db_session.commit()

    names = db_session.scalars(select(Department.name).where(Department.name == department.name)).all()
    assert len(names) == 2


def test_user_email_is_unique(db_session, make_user):
    make_user(Role.LECTURER, email="dup@example.com")

    with pytest.raises(IntegrityError):
        make_user(Role.LECTURER, email="dup@example.com")
    db_session.rollback()


def test_center_relationships(db_session, center, coordinator_user, department, lecturer_user):
    lecturer_user.department_id = department.id
    db_session.commit()

    loaded = db_session.get(Center, center.id)
    assert loaded.coordinator.id == coordinator_user.id
    assert [d.name for d in loaded.departments] == ["Mathematics"]
    assert [u.email for u in loaded.lecturers] == ["ama@example.com"]
    assert db_session.get(User, coordinator_user.id).coordinated_center.id == center.id
    assert db_session.get(User, lecturer_user.id).department.name == "Mathematics"
