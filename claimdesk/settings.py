from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    App settings.

    Notes:
    - Defaults are local and deterministic (SQLite file next to the package).
    - Every value can be overridden with a `CLAIMDESK_` environment variable.
    - `session_secret` must be overridden outside development.
    """

    model_config = SettingsConfigDict(env_prefix="CLAIMDESK_", extra="ignore")

    db_url: str | None = None
    policy_path: str | None = None
    log_level: str = "INFO"

    session_secret: str = "change-me-in-production"
    session_ttl_minutes: int = 60 * 24 * 7
    bcrypt_rounds: int = 12

    seed_registry_email: str | None = None
    seed_registry_password: str | None = None

    def resolved_db_url(self) -> str:
        if self.db_url:
            return self.db_url

        repo_root = Path(__file__).resolve().parents[1]
        db_path = repo_root / "claimdesk.db"
        return f"sqlite:///{db_path}"

    def resolved_policy_path(self) -> Path:
        if self.policy_path:
            return Path(self.policy_path)

        return Path(__file__).resolve().parent / "security" / "policy.yaml"


@lru_cache
def get_settings() -> Settings:
    return Settings()
