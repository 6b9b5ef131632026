from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

import claimdesk.models  # noqa: F401  (register mappers)
from claimdesk.db.base import Base
from claimdesk.db.session import SessionLocal, engine
from claimdesk.models.tenancy import Role, User
from claimdesk.security.passwords import hash_password
from claimdesk.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def init_db(settings: Settings | None = None) -> None:
    """
    Create tables and seed the first Registry account.

    Registry accounts cannot be created through the API, so the first one
    comes from `CLAIMDESK_SEED_REGISTRY_EMAIL` / `CLAIMDESK_SEED_REGISTRY_PASSWORD`.
    Nothing is seeded when either is unset or the account already exists.
    """

    settings = settings or get_settings()
    Base.metadata.create_all(bind=engine)

    with SessionLocal() as db:
        seed_registry(db, settings)


def seed_registry(db: Session, settings: Settings) -> User | None:
    email = settings.seed_registry_email
    password = settings.seed_registry_password
    if not email or not password:
        return None

    email = email.strip().lower()
    existing = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if existing is not None:
        return existing

    user = User(
        email=email,
        name="Registry",
        password_hash=hash_password(password, rounds=settings.bcrypt_rounds),
        role=Role.REGISTRY,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info("Seeded registry user_id=%s", user.id)
    return user
