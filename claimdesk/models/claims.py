from __future__ import annotations

import enum
from datetime import date, datetime

from sqlalchemy import Date, DateTime, Enum, Float, ForeignKey, Integer, String, Text, event
from sqlalchemy.orm import Mapped, mapped_column, relationship

from claimdesk.db.base import Base, utcnow
from claimdesk.errors import InvalidClaimPayload
from claimdesk.models.tenancy import Center, User


class ClaimType(str, enum.Enum):
    TEACHING = "TEACHING"
    TRANSPORTATION = "TRANSPORTATION"
    THESIS_PROJECT = "THESIS_PROJECT"


class ClaimStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


TERMINAL_STATES = frozenset({ClaimStatus.APPROVED, ClaimStatus.REJECTED})


class TransportType(str, enum.Enum):
    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"


class ThesisType(str, enum.Enum):
    EXAMINATION = "EXAMINATION"
    SUPERVISION = "SUPERVISION"


class SupervisionRank(str, enum.Enum):
    PHD = "PHD"
    MPHIL = "MPHIL"
    MASTERS = "MASTERS"
    UNDERGRADUATE = "UNDERGRADUATE"


class Claim(Base):
    """
    Flat storage for every claim type.

    Type-specific columns are nullable here; which of them must (or must not)
    be populated depends on `claim_type` and is checked on every insert/update
    by `check_claim_columns`.
    """

    __tablename__ = "claims"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    claim_type: Mapped[ClaimType] = mapped_column(Enum(ClaimType, name="claim_type"), nullable=False, index=True)
    status: Mapped[ClaimStatus] = mapped_column(
        Enum(ClaimStatus, name="claim_status"), default=ClaimStatus.PENDING, nullable=False, index=True
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )
    submitted_by_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    center_id: Mapped[int] = mapped_column(ForeignKey("centers.id"), nullable=False, index=True)

    processed_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # TEACHING
    teaching_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    teaching_start_time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    teaching_end_time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    teaching_hours: Mapped[float | None] = mapped_column(Float, nullable=True)

    # TRANSPORTATION
    transport_type: Mapped[TransportType | None] = mapped_column(
        Enum(TransportType, name="transport_type"), nullable=True
    )
    transport_from: Mapped[str | None] = mapped_column(String(191), nullable=True)
    transport_to: Mapped[str | None] = mapped_column(String(191), nullable=True)
    transport_amount: Mapped[float | None] = mapped_column(Float, nullable=True)
    transport_reg_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    transport_cubic_capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # THESIS_PROJECT
    thesis_type: Mapped[ThesisType | None] = mapped_column(Enum(ThesisType, name="thesis_type"), nullable=True)
    thesis_supervision_rank: Mapped[SupervisionRank | None] = mapped_column(
        Enum(SupervisionRank, name="supervision_rank"), nullable=True
    )
    thesis_exam_course_code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    thesis_exam_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    submitted_by: Mapped[User] = relationship(back_populates="submitted_claims", foreign_keys=[submitted_by_id])
    processed_by: Mapped[User | None] = relationship(foreign_keys=[processed_by_id])
    center: Mapped[Center] = relationship(back_populates="claims")
    supervised_students: Mapped[list["SupervisedStudent"]] = relationship(
        back_populates="claim",
        cascade="all, delete-orphan",
        order_by="SupervisedStudent.id",
    )


class SupervisedStudent(Base):
    __tablename__ = "supervised_students"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    student_name: Mapped[str] = mapped_column(String(191), nullable=False)
    thesis_title: Mapped[str] = mapped_column(String(255), nullable=False)

    claim_id: Mapped[int] = mapped_column(ForeignKey("claims.id", ondelete="CASCADE"), nullable=False, index=True)
    # Redundant with claims.submitted_by_id; must always match it.
    supervisor_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)

    claim: Mapped[Claim] = relationship(back_populates="supervised_students")
    supervisor: Mapped[User] = relationship()


TYPE_COLUMNS: dict[ClaimType, tuple[str, ...]] = {
    ClaimType.TEACHING: ("teaching_date", "teaching_start_time", "teaching_end_time", "teaching_hours"),
    ClaimType.TRANSPORTATION: (
        "transport_type",
        "transport_from",
        "transport_to",
        "transport_amount",
        "transport_reg_number",
        "transport_cubic_capacity",
    ),
    ClaimType.THESIS_PROJECT: (
        "thesis_type",
        "thesis_supervision_rank",
        "thesis_exam_course_code",
        "thesis_exam_date",
    ),
}

REQUIRED_COLUMNS: dict[ClaimType, tuple[str, ...]] = {
    ClaimType.TEACHING: TYPE_COLUMNS[ClaimType.TEACHING],
    ClaimType.TRANSPORTATION: ("transport_type", "transport_from", "transport_to", "transport_amount"),
    ClaimType.THESIS_PROJECT: ("thesis_type",),
}


def _populated(claim: Claim, column: str) -> bool:
    value = getattr(claim, column)
    return value is not None and value != ""


def check_claim_columns(claim: Claim) -> list[str]:
    """
    Return a list of human-readable violations of the per-type column rules.

    An empty list means the row is consistent with its `claim_type` and its
    lifecycle columns agree with its status.
    """

    problems: list[str] = []
    claim_type = claim.claim_type

    for other_type, columns in TYPE_COLUMNS.items():
        if other_type == claim_type:
            continue
        for column in columns:
            if _populated(claim, column):
                problems.append(f"{column} is not allowed for {claim_type.value} claims")

    for column in REQUIRED_COLUMNS.get(claim_type, ()):
        if not _populated(claim, column):
            problems.append(f"{column} is required for {claim_type.value} claims")

    if claim_type == ClaimType.TRANSPORTATION:
        private = claim.transport_type == TransportType.PRIVATE
        for column in ("transport_reg_number", "transport_cubic_capacity"):
            if private and not _populated(claim, column):
                problems.append(f"{column} is required for private transport")
            if not private and _populated(claim, column):
                problems.append(f"{column} is only allowed for private transport")

    if claim_type == ClaimType.THESIS_PROJECT:
        exam_columns = ("thesis_exam_course_code", "thesis_exam_date")
        if claim.thesis_type == ThesisType.EXAMINATION:
            problems.extend(f"{c} is required for examination" for c in exam_columns if not _populated(claim, c))
            if _populated(claim, "thesis_supervision_rank"):
                problems.append("thesis_supervision_rank is only allowed for supervision")
        elif claim.thesis_type == ThesisType.SUPERVISION:
            if not _populated(claim, "thesis_supervision_rank"):
                problems.append("thesis_supervision_rank is required for supervision")
            problems.extend(f"{c} is only allowed for examination" for c in exam_columns if _populated(claim, c))

    status = claim.status or ClaimStatus.PENDING
    processed_markers = (claim.processed_at is not None, claim.processed_by_id is not None)
    if status == ClaimStatus.PENDING and any(processed_markers):
        problems.append("pending claims cannot carry processed_by/processed_at")
    if status in TERMINAL_STATES and not all(processed_markers):
        problems.append("processed claims must carry both processed_by and processed_at")

    return problems


@event.listens_for(Claim, "before_insert")
def _validate_claim_insert(_mapper, _connection, target: Claim) -> None:
    problems = check_claim_columns(target)

    # Students are part of the same unit of work, so the in-memory list is complete.
    is_supervision = target.thesis_type == ThesisType.SUPERVISION
    if is_supervision and not target.supervised_students:
        problems.append("supervision claims need at least one supervised student")
    if not is_supervision and target.supervised_students:
        problems.append("supervised students are only allowed for supervision claims")

    if problems:
        raise InvalidClaimPayload("; ".join(problems))


@event.listens_for(Claim, "before_update")
def _validate_claim_update(_mapper, _connection, target: Claim) -> None:
    problems = check_claim_columns(target)
    if problems:
        raise InvalidClaimPayload("; ".join(problems))


@event.listens_for(SupervisedStudent, "before_insert")
def _validate_student_supervisor(_mapper, _connection, target: SupervisedStudent) -> None:
    claim = target.claim
    if claim is not None and target.supervisor_id != claim.submitted_by_id:
        raise InvalidClaimPayload("supervisor must be the lecturer who submitted the claim")
