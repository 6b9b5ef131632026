from __future__ import annotations

import bcrypt

from claimdesk.settings import get_settings


def hash_password(password: str, rounds: int | None = None) -> str:
    if rounds is None:
        rounds = get_settings().bcrypt_rounds
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("ascii"))
    except ValueError:
        # Malformed stored hash.
        return False
