"""
Domain errors raised by services.

Every error here is user-facing and recoverable. The HTTP layer renders them
with a single exception handler (see `claimdesk.main`), so services never deal
with status codes directly.
"""

from __future__ import annotations

from typing import Any


class ClaimDeskError(Exception):
    """Base class for all domain errors."""

    status_code: int = 400
    code: str = "error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.__class__.__doc__ or self.code
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "detail": self.message}


class Unauthorized(ClaimDeskError):
    """The caller's role may not perform this operation."""

    status_code = 403
    code = "unauthorized"


class NotFound(ClaimDeskError):
    """Resource not found."""

    status_code = 404
    code = "not_found"


class ScopeRequired(ClaimDeskError):
    """A tenant scope is required for this query."""

    status_code = 400
    code = "scope_required"


class InvalidClaimPayload(ClaimDeskError):
    """Claim payload does not match its declared type."""

    status_code = 422
    code = "invalid_claim_payload"

    def __init__(self, message: str | None = None, errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["errors"] = self.errors
        return data


class Conflict(ClaimDeskError):
    status_code = 409
    code = "conflict"


class AlreadyAssigned(Conflict):
    """The user is already assigned."""

    code = "already_assigned"


class DuplicateName(Conflict):
    """The name is already taken."""

    code = "duplicate_name"


class DuplicateEmail(Conflict):
    """A user with this email already exists."""

    code = "duplicate_email"


class AlreadyProcessed(Conflict):
    """The claim has already been processed."""

    code = "already_processed"
