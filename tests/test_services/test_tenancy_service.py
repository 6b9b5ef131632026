"""
Tests for tenant graph operations: lookups, lecturer membership, departments.
"""
from __future__ import annotations

import pytest
from sqlalchemy import func, select

from claimdesk.errors import AlreadyAssigned, DuplicateName, NotFound, Unauthorized
from claimdesk.models.tenancy import Department, Role, User
from claimdesk.services import tenancy


def test_find_center_for_coordinator(db_session, coordinator, center):
    found = tenancy.find_center_for_coordinator(coordinator, db_session, coordinator.user_id)

    assert found.id == center.id


def test_unassigned_coordinator_has_no_center(db_session, make_user, session_of):
    newcomer = make_user(Role.COORDINATOR)

    assert tenancy.find_center_for_coordinator(session_of(newcomer), db_session, newcomer.id) is None


def test_find_center_for_lecturer(db_session, lecturer, center, make_user, session_of):
    assert tenancy.find_center_for_lecturer(lecturer, db_session, lecturer.user_id).id == center.id

    unassigned = make_user(Role.LECTURER)
    assert tenancy.find_center_for_lecturer(session_of(unassigned), db_session, unassigned.id) is None


def test_coordinator_cannot_read_another_center(db_session, coordinator, make_center):
    other = make_center("Takoradi Center")

    with pytest.raises(NotFound):
        tenancy.get_center(coordinator, db_session, other.id)


def test_list_centers_is_scoped_by_role(db_session, registry, coordinator, lecturer, center, make_center):
    other = make_center("Ho Center")

    assert {c.id for c in tenancy.list_centers(registry, db_session)} == {center.id, other.id}
    assert [c.id for c in tenancy.list_centers(coordinator, db_session)] == [center.id]
    assert [c.id for c in tenancy.list_centers(lecturer, db_session)] == [center.id]


def test_lecturer_cannot_list_lecturers(db_session, lecturer, center):
    with pytest.raises(Unauthorized):
        tenancy.list_lecturers(lecturer, db_session, center.id)


def test_list_lecturers_only_returns_center_members(db_session, coordinator, center, lecturer_user, make_user):
    make_user(Role.LECTURER)

    lecturers = tenancy.list_lecturers(coordinator, db_session, center.id)

    assert [u.id for u in lecturers] == [lecturer_user.id]


# ---- Lecturer membership -------------------------------------------------------------


def test_assign_lecturer_to_center(db_session, coordinator, center, make_user):
    newcomer = make_user(Role.LECTURER)

    assigned = tenancy.assign_lecturer_to_center(coordinator, db_session, center.id, newcomer.id)

    assert assigned.lecturer_center_id == center.id


def test_assign_already_assigned_lecturer_fails(db_session, coordinator, registry, center, lecturer_user, make_center):
    other = make_center("Sunyani Center")

    with pytest.raises(AlreadyAssigned):
        tenancy.assign_lecturer_to_center(coordinator, db_session, center.id, lecturer_user.id)
    with pytest.raises(AlreadyAssigned):
        tenancy.assign_lecturer_to_center(registry, db_session, other.id, lecturer_user.id)


def test_assign_non_lecturer_is_not_found(db_session, coordinator, center, make_user):
    other_coordinator = make_user(Role.COORDINATOR)

    with pytest.raises(NotFound):
        tenancy.assign_lecturer_to_center(coordinator, db_session, center.id, other_coordinator.id)


def test_coordinator_cannot_assign_into_foreign_center(db_session, coordinator, make_center, make_user):
    other = make_center("Bolgatanga Center")
    newcomer = make_user(Role.LECTURER)

    with pytest.raises(NotFound):
        tenancy.assign_lecturer_to_center(coordinator, db_session, other.id, newcomer.id)
    assert db_session.get(User, newcomer.id).lecturer_center_id is None


def test_unassign_lecturer_clears_department(db_session, coordinator, center, department, lecturer_user):
    lecturer_user.department_id = department.id
    db_session.commit()

    lecturer = tenancy.unassign_lecturer_from_center(coordinator, db_session, center.id, lecturer_user.id)

    assert lecturer.lecturer_center_id is None
    assert lecturer.department_id is None


def test_unassign_lecturer_of_another_center_is_not_found(db_session, registry, make_center, lecturer_user):
    other = make_center("Wa Center")

    with pytest.raises(NotFound):
        tenancy.unassign_lecturer_from_center(registry, db_session, other.id, lecturer_user.id)


def test_assign_lecturer_to_department(db_session, coordinator, department, lecturer_user):
    lecturer = tenancy.assign_lecturer_to_department(coordinator, db_session, department.id, lecturer_user.id)

    assert lecturer.department_id == department.id


def test_department_assignment_requires_center_membership(db_session, coordinator, department, make_user):
    outsider = make_user(Role.LECTURER)

    with pytest.raises(NotFound):
        tenancy.assign_lecturer_to_department(coordinator, db_session, department.id, outsider.id)


def test_unassign_from_department_is_idempotent(db_session, coordinator, department, lecturer_user):
    tenancy.assign_lecturer_to_department(coordinator, db_session, department.id, lecturer_user.id)

    first = tenancy.unassign_lecturer_from_department(coordinator, db_session, lecturer_user.id)
    second = tenancy.unassign_lecturer_from_department(coordinator, db_session, lecturer_user.id)

    assert first.department_id is None
    assert second.department_id is None


# ---- Departments ---------------------------------------------------------------------


def test_create_department(db_session, coordinator, center):
    department = tenancy.create_department(coordinator, db_session, center.id, "  Physics ")

    assert department.name == "Physics"
    assert department.center_id == center.id


def test_create_duplicate_department_fails(db_session, coordinator, center, department):
    with pytest.raises(DuplicateName):
        tenancy.create_department(coordinator, db_session, center.id, department.name)


def test_lecturer_cannot_create_department(db_session, lecturer, center):
    with pytest.raises(Unauthorized):
        tenancy.create_department(lecturer, db_session, center.id, "Chemistry")


def test_update_department_rejects_taken_name(db_session, coordinator, center, department):
    physics = tenancy.create_department(coordinator, db_session, center.id, "Physics")

    with pytest.raises(DuplicateName):
        tenancy.update_department(coordinator, db_session, physics.id, department.name)

    renamed = tenancy.update_department(coordinator, db_session, physics.id, "Applied Physics")
    assert renamed.name == "Applied Physics"


def test_delete_department_unassigns_lecturers(db_session, coordinator, center, department, make_user):
    first = make_user(Role.LECTURER, lecturer_center_id=center.id, department_id=department.id)
    second = make_user(Role.LECTURER, lecturer_center_id=center.id, department_id=department.id)
    users_before = db_session.scalar(select(func.count(User.id)))

    unassigned = tenancy.delete_department(coordinator, db_session, department.id)

    assert unassigned == 2
    assert db_session.get(Department, department.id) is None
    assert db_session.get(User, first.id).department_id is None
    assert db_session.get(User, second.id).department_id is None
    assert db_session.scalar(select(func.count(User.id))) == users_before


def test_delete_foreign_department_is_not_found(db_session, make_center, make_user, session_of):
    other = make_center("Koforidua Center")
    department = Department(name="History", center_id=other.id)
    db_session.add(department)
    db_session.commit()
    outsider = make_user(Role.COORDINATOR)
    make_center("Outsider Center", coordinator=outsider)

    with pytest.raises(NotFound):
        tenancy.delete_department(session_of(outsider), db_session, department.id)
    assert db_session.get(Department, department.id) is not None
