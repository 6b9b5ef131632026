"""
Tests for the claim state machine (approve / reject).

The concurrency test uses a file-backed SQLite database so that two threads
get independent connections and really compete for the same row.
"""
from __future__ import annotations

import threading

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from claimdesk.db.base import Base
from claimdesk.errors import AlreadyProcessed, NotFound, Unauthorized
from claimdesk.models.claims import Claim, ClaimStatus, ClaimType
from claimdesk.models.tenancy import Center, Role, User
from claimdesk.security.context import SessionContext
from claimdesk.services import claims as claims_service
from claimdesk.services import lifecycle


@pytest.fixture
def pending_claim(db_session, lecturer, teaching_payload):
    return claims_service.create_claim(lecturer, db_session, ClaimType.TEACHING, teaching_payload)


def test_approve_sets_processed_fields_together(db_session, coordinator, pending_claim):
    claim = lifecycle.approve_claim(coordinator, db_session, pending_claim.id)

    assert claim.status == ClaimStatus.APPROVED
    assert claim.processed_by_id == coordinator.user_id
    assert claim.processed_at is not None


def test_reject(db_session, coordinator, pending_claim):
    claim = lifecycle.reject_claim(coordinator, db_session, pending_claim.id)

    assert claim.status == ClaimStatus.REJECTED
    assert claim.processed_by_id == coordinator.user_id
    assert claim.processed_at is not None


def test_terminal_states_are_final(db_session, coordinator, pending_claim):
    lifecycle.approve_claim(coordinator, db_session, pending_claim.id)

    with pytest.raises(AlreadyProcessed):
        lifecycle.reject_claim(coordinator, db_session, pending_claim.id)
    with pytest.raises(AlreadyProcessed):
        lifecycle.approve_claim(coordinator, db_session, pending_claim.id)

    assert db_session.get(Claim, pending_claim.id).status == ClaimStatus.APPROVED


def test_coordinator_of_another_center_gets_not_found(db_session, pending_claim, make_center, session_of):
    other = make_center("Other Center")
    foreign = session_of(db_session.get(User, other.coordinator_id))

    with pytest.raises(NotFound):
        lifecycle.approve_claim(foreign, db_session, pending_claim.id)

    claim = db_session.get(Claim, pending_claim.id)
    assert claim.status == ClaimStatus.PENDING
    assert claim.processed_by_id is None


def test_unassigned_coordinator_gets_not_found(db_session, pending_claim, make_user, session_of):
    newcomer = session_of(make_user(Role.COORDINATOR))

    with pytest.raises(NotFound):
        lifecycle.reject_claim(newcomer, db_session, pending_claim.id)


def test_missing_claim_is_not_found(db_session, coordinator):
    with pytest.raises(NotFound):
        lifecycle.approve_claim(coordinator, db_session, 9999)


def test_registry_and_lecturers_cannot_process(db_session, registry, lecturer, pending_claim):
    for session in (registry, lecturer):
        with pytest.raises(Unauthorized):
            lifecycle.approve_claim(session, db_session, pending_claim.id)

    assert db_session.get(Claim, pending_claim.id).status == ClaimStatus.PENDING


def test_concurrent_approve_and_reject_only_one_wins(tmp_path, teaching_payload):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    @event.listens_for(engine, "connect")
    def _fk_on(dbapi_connection, _record):
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    Base.metadata.create_all(bind=engine)
    Factory = sessionmaker(bind=engine, autoflush=False)

    with Factory() as db:
        coordinator = User(email="c@example.com", password_hash="x", role=Role.COORDINATOR)
        lecturer = User(email="l@example.com", password_hash="x", role=Role.LECTURER)
        db.add_all([coordinator, lecturer])
        db.commit()
        center = Center(name="Race Center", coordinator_id=coordinator.id)
        db.add(center)
        db.commit()
        lecturer.lecturer_center_id = center.id
        db.commit()
        claim = claims_service.create_claim(
            SessionContext(user_id=lecturer.id, role=Role.LECTURER), db, ClaimType.TEACHING, teaching_payload
        )
        claim_id = claim.id
        coordinator_session = SessionContext(user_id=coordinator.id, role=Role.COORDINATOR)

    barrier = threading.Barrier(2)
    outcomes: dict[str, object] = {}

    def attempt(name: str, transition) -> None:
        with Factory() as db:
            barrier.wait()
            try:
                outcomes[name] = transition(coordinator_session, db, claim_id).status
            except AlreadyProcessed as e:
                outcomes[name] = e

    threads = [
        threading.Thread(target=attempt, args=("approve", lifecycle.approve_claim)),
        threading.Thread(target=attempt, args=("reject", lifecycle.reject_claim)),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    winners = [name for name, outcome in outcomes.items() if isinstance(outcome, ClaimStatus)]
    losers = [name for name, outcome in outcomes.items() if isinstance(outcome, AlreadyProcessed)]
    assert len(winners) == 1
    assert len(losers) == 1

    with Factory() as db:
        stored = db.get(Claim, claim_id)
        assert stored.status == outcomes[winners[0]]
        assert stored.processed_by_id == coordinator_session.user_id
        assert stored.processed_at is not None

    engine.dispose()


def test_transition_target_must_be_terminal(db_session, coordinator, pending_claim):
    with pytest.raises(ValueError):
        lifecycle._transition(coordinator, db_session, pending_claim.id, ClaimStatus.PENDING)

    assert db_session.get(Claim, pending_claim.id).status == ClaimStatus.PENDING
