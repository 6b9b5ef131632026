"""Tests for the registry seed run at startup."""
from __future__ import annotations

from sqlalchemy import func, select

from claimdesk.db.init_db import seed_registry
from claimdesk.models.tenancy import Role, User
from claimdesk.security.passwords import verify_password
from claimdesk.settings import Settings


def test_seed_registry_creates_one_registry_user(db_session):
    settings = Settings(seed_registry_email="Registry@Example.com", seed_registry_password="bootstrap-pass", bcrypt_rounds=4)

    first = seed_registry(db_session, settings)
    second = seed_registry(db_session, settings)

    assert first.id == second.id
    assert first.role == Role.REGISTRY
    assert first.email == "registry@example.com"
    assert verify_password("bootstrap-pass", first.password_hash)
    assert db_session.scalar(select(func.count(User.id))) == 1


def test_seed_registry_is_skipped_without_credentials(db_session):
    assert seed_registry(db_session, Settings(seed_registry_email=None, seed_registry_password=None)) is None
    assert db_session.scalar(select(func.count(User.id))) == 0
