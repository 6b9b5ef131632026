from __future__ import annotations

from dataclasses import dataclass

from claimdesk.models.tenancy import Role


@dataclass(frozen=True)
class SessionContext:
    """
    Resolved identity for one request.

    Every service takes this as its first argument; nothing downstream looks
    the caller up implicitly. Tenant membership is *not* cached here: it is
    re-read from the database by the authorization guard on every call.
    """

    user_id: int
    role: Role
    name: str | None = None

    @property
    def is_registry(self) -> bool:
        return self.role == Role.REGISTRY

    @property
    def is_coordinator(self) -> bool:
        return self.role == Role.COORDINATOR

    @property
    def is_lecturer(self) -> bool:
        return self.role == Role.LECTURER

    def to_dict(self) -> dict[str, object]:
        return {"user_id": self.user_id, "role": self.role.value, "name": self.name}
