from __future__ import annotations

from collections.abc import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from claimdesk.settings import get_settings


_settings = get_settings()
_is_sqlite = _settings.resolved_db_url().startswith("sqlite")

engine = create_engine(
    _settings.resolved_db_url(),
    connect_args={"check_same_thread": False} if _is_sqlite else {},
)

if _is_sqlite:

    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, class_=Session)


def get_db() -> Generator[Session, None, None]:
    """
    Main DB dependency: one Session per request.

    Tenant scoping for claim reads is attached later, once the caller's
    session context is resolved (see `claimdesk.deps.get_session_context`).
    """

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
