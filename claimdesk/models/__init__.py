"""ORM models. Importing this package registers every mapper on `Base.metadata`."""

from claimdesk.models.claims import Claim, ClaimStatus, ClaimType, SupervisedStudent, SupervisionRank, ThesisType, TransportType
from claimdesk.models.tenancy import Center, Department, Role, User

__all__ = [
    "Center",
    "Claim",
    "ClaimStatus",
    "ClaimType",
    "Department",
    "Role",
    "SupervisedStudent",
    "SupervisionRank",
    "ThesisType",
    "TransportType",
    "User",
]
