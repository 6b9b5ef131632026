"""
Pytest fixtures for the test suite.

Each test gets its own in-memory SQLite database (single shared connection via
StaticPool), so services can commit and roll back freely and tests still do
not affect each other.
"""
from __future__ import annotations

import os

# Cheap hashing and a fixed secret for the whole run; must be set before settings are cached.
os.environ.setdefault("CLAIMDESK_BCRYPT_ROUNDS", "4")
os.environ.setdefault("CLAIMDESK_SESSION_SECRET", "test-secret")

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import claimdesk.models  # noqa: F401  (register mappers)
from claimdesk.models.tenancy import Center, Department, Role, User
from claimdesk.security.context import SessionContext


TEST_DB_URL = "sqlite://"


def _enable_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture
def engine():
    """Create a fresh in-memory SQLite engine for each test."""
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    event.listen(engine, "connect", _enable_foreign_keys)
    yield engine
    engine.dispose()


@pytest.fixture
def tables(engine):
    """Create all ORM tables on the test engine."""
    from claimdesk.db.base import Base
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture
def db_session(tables):
    """Provide a Session bound to the test DB. The database itself is discarded after the test."""
    TestSession = sessionmaker(
        bind=tables,
        autocommit=False,
        autoflush=False,
        class_=Session,
    )
    session = TestSession()
    yield session
    session.close()


# ---- Tenant graph ----------------------------------------------------------------------


@pytest.fixture
def make_user(db_session):
    """Factory: insert a user directly (no hashing, no authorization)."""

    counter = {"n": 0}

    def _make(role: Role, email: str | None = None, name: str | None = None, **fields) -> User:
        counter["n"] += 1
        user = User(
            email=email or f"{role.value.lower()}{counter['n']}@example.com",
            name=name or f"{role.value.title()} {counter['n']}",
            password_hash="not-a-real-hash",
            role=role,
            **fields,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture
def make_center(db_session, make_user):
    """Factory: a center with a fresh coordinator."""

    def _make(name: str, coordinator: User | None = None) -> Center:
        coordinator = coordinator or make_user(Role.COORDINATOR)
        center = Center(name=name, coordinator_id=coordinator.id)
        db_session.add(center)
        db_session.commit()
        return center

    return _make


@pytest.fixture
def registry_user(make_user):
    return make_user(Role.REGISTRY, email="registry@example.com", name="Registry")


@pytest.fixture
def center(make_center):
    return make_center("Accra Study Center")


@pytest.fixture
def coordinator_user(db_session, center):
    return db_session.get(User, center.coordinator_id)


@pytest.fixture
def department(db_session, center):
    department = Department(name="Mathematics", center_id=center.id)
    db_session.add(department)
    db_session.commit()
    return department


@pytest.fixture
def lecturer_user(make_user, center):
    return make_user(Role.LECTURER, email="ama@example.com", name="Ama Mensah", lecturer_center_id=center.id)


def session_for(user: User) -> SessionContext:
    return SessionContext(user_id=user.id, role=user.role, name=user.name)


@pytest.fixture
def session_of():
    """The SessionContext a user would get after login."""
    return session_for


@pytest.fixture
def registry(registry_user):
    return session_for(registry_user)


@pytest.fixture
def coordinator(coordinator_user):
    return session_for(coordinator_user)


@pytest.fixture
def lecturer(lecturer_user):
    return session_for(lecturer_user)


# ---- Claim payloads --------------------------------------------------------------------


@pytest.fixture
def teaching_payload():
    return {
        "teaching_date": "2026-03-02",
        "teaching_start_time": "09:00",
        "teaching_end_time": "11:30",
        "description": "Linear algebra, level 200",
    }


@pytest.fixture
def transport_payload():
    return {
        "transport_type": "PUBLIC",
        "transport_from": "Kumasi",
        "transport_to": "Accra",
        "transport_amount": 120.5,
    }


@pytest.fixture
def examination_payload():
    return {
        "thesis_type": "EXAMINATION",
        "thesis_exam_course_code": "MATH 401",
        "thesis_exam_date": "2026-05-14",
    }


@pytest.fixture
def supervision_payload():
    return {
        "thesis_type": "SUPERVISION",
        "thesis_supervision_rank": "MASTERS",
        "supervised_students": [
            {"student_name": "Kofi Boateng", "thesis_title": "Sparse solvers on GPUs"},
            {"student_name": "Efua Owusu", "thesis_title": "Graph colouring heuristics"},
        ],
    }
