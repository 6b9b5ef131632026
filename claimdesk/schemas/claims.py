"""
Claim payloads at the API boundary.

Storage keeps every claim in one flat table with nullable type-specific
columns. At the boundary a claim is a tagged union instead:

    Teaching | Transportation | ThesisProject(Examination | Supervision)

`parse_claim_payload` validates incoming data into one of the variants and
`to_columns` flattens a variant into column values. `claim_to_out` goes the
other way for responses.
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator

from claimdesk.errors import InvalidClaimPayload
from claimdesk.models.claims import (
    Claim,
    ClaimStatus,
    ClaimType,
    SupervisionRank,
    ThesisType,
    TransportType,
)

# Set by the server, never by the submitter. Silently dropped from payloads.
SERVER_OWNED_FIELDS = frozenset(
    {"id", "center_id", "submitted_by_id", "status", "submitted_at", "processed_by_id", "processed_at"}
)


def _is_unpopulated(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class _PayloadModel(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_unpopulated(cls, data: Any) -> Any:
        # Forms send every field; null/blank means "not populated".
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if not _is_unpopulated(v)}
        return data


class _ClaimIn(_PayloadModel):
    description: str | None = Field(default=None, max_length=1000)


class TeachingClaimIn(_ClaimIn):
    claim_type: Literal["TEACHING"]
    teaching_date: date
    teaching_start_time: time
    teaching_end_time: time

    @model_validator(mode="after")
    def _end_after_start(self) -> TeachingClaimIn:
        if self.teaching_end_time <= self.teaching_start_time:
            raise ValueError("teaching_end_time must be after teaching_start_time")
        return self

    @property
    def contact_hours(self) -> float:
        start = self.teaching_start_time.hour * 60 + self.teaching_start_time.minute
        end = self.teaching_end_time.hour * 60 + self.teaching_end_time.minute
        return round((end - start) / 60, 2)


class TransportationClaimIn(_ClaimIn):
    claim_type: Literal["TRANSPORTATION"]
    transport_type: TransportType
    transport_from: str = Field(min_length=1, max_length=191)
    transport_to: str = Field(min_length=1, max_length=191)
    transport_amount: float = Field(gt=0)
    transport_reg_number: str | None = Field(default=None, max_length=50)
    transport_cubic_capacity: int | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _private_vehicle_fields(self) -> TransportationClaimIn:
        vehicle_fields = {
            "transport_reg_number": self.transport_reg_number,
            "transport_cubic_capacity": self.transport_cubic_capacity,
        }
        if self.transport_type == TransportType.PRIVATE:
            missing = [name for name, value in vehicle_fields.items() if value is None]
            if missing:
                raise ValueError(f"{', '.join(missing)} required for private transport")
        else:
            present = [name for name, value in vehicle_fields.items() if value is not None]
            if present:
                raise ValueError(f"{', '.join(present)} only allowed for private transport")
        return self


class ExaminationClaimIn(_ClaimIn):
    claim_type: Literal["THESIS_PROJECT"]
    thesis_type: Literal["EXAMINATION"]
    thesis_exam_course_code: str = Field(min_length=1, max_length=50)
    thesis_exam_date: date


class SupervisedStudentIn(_PayloadModel):
    student_name: str = Field(min_length=1, max_length=191)
    thesis_title: str = Field(min_length=1, max_length=255)


class SupervisionClaimIn(_ClaimIn):
    claim_type: Literal["THESIS_PROJECT"]
    thesis_type: Literal["SUPERVISION"]
    thesis_supervision_rank: SupervisionRank
    supervised_students: list[SupervisedStudentIn] = Field(min_length=1, max_length=10)


ThesisProjectClaimIn = Annotated[Union[ExaminationClaimIn, SupervisionClaimIn], Field(discriminator="thesis_type")]

ClaimIn = Annotated[
    Union[TeachingClaimIn, TransportationClaimIn, ThesisProjectClaimIn],
    Field(discriminator="claim_type"),
]

_claim_in_adapter: TypeAdapter[Any] = TypeAdapter(ClaimIn)


def parse_claim_payload(claim_type: ClaimType | str, payload: dict[str, Any]) -> Any:
    """
    Validate `payload` as a claim of `claim_type`.

    Raises InvalidClaimPayload when required fields are missing, fields of
    another claim type are populated, or values are out of range.
    """

    type_value = claim_type.value if isinstance(claim_type, ClaimType) else str(claim_type).upper()
    data = {k: v for k, v in payload.items() if k not in SERVER_OWNED_FIELDS}

    declared = data.pop("claim_type", None)
    if declared is not None and str(declared).upper() != type_value:
        raise InvalidClaimPayload(f"Payload declares claim_type {declared!r} but {type_value!r} was requested")
    data["claim_type"] = type_value

    try:
        return _claim_in_adapter.validate_python(data)
    except ValidationError as e:
        errors = [
            {"loc": ".".join(str(part) for part in err["loc"]), "msg": err["msg"]}
            for err in e.errors(include_url=False)
        ]
        raise InvalidClaimPayload("Invalid claim payload", errors=errors) from e


def to_columns(payload: Any) -> tuple[dict[str, Any], list[dict[str, str]]]:
    """Flatten a validated variant into (claim columns, supervised student rows)."""

    columns: dict[str, Any] = {
        "claim_type": ClaimType(payload.claim_type),
        "description": payload.description,
    }
    students: list[dict[str, str]] = []

    if isinstance(payload, TeachingClaimIn):
        columns.update(
            teaching_date=payload.teaching_date,
            teaching_start_time=payload.teaching_start_time.strftime("%H:%M"),
            teaching_end_time=payload.teaching_end_time.strftime("%H:%M"),
            teaching_hours=payload.contact_hours,
        )
    elif isinstance(payload, TransportationClaimIn):
        columns.update(
            transport_type=payload.transport_type,
            transport_from=payload.transport_from,
            transport_to=payload.transport_to,
            transport_amount=payload.transport_amount,
            transport_reg_number=payload.transport_reg_number,
            transport_cubic_capacity=payload.transport_cubic_capacity,
        )
    elif isinstance(payload, ExaminationClaimIn):
        columns.update(
            thesis_type=ThesisType.EXAMINATION,
            thesis_exam_course_code=payload.thesis_exam_course_code,
            thesis_exam_date=payload.thesis_exam_date,
        )
    elif isinstance(payload, SupervisionClaimIn):
        columns.update(
            thesis_type=ThesisType.SUPERVISION,
            thesis_supervision_rank=payload.thesis_supervision_rank,
        )
        students = [s.model_dump() for s in payload.supervised_students]
    else:  # pragma: no cover (exhaustive over ClaimIn)
        raise TypeError(f"Unsupported claim payload: {type(payload).__name__}")

    return columns, students


# ---- Responses -----------------------------------------------------------------------


class SubmitterOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str | None
    email: str


class SupervisedStudentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    student_name: str
    thesis_title: str


class _ClaimOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    status: ClaimStatus
    description: str | None
    submitted_at: datetime
    submitted_by: SubmitterOut
    center_id: int
    processed_by_id: int | None
    processed_at: datetime | None


class TeachingClaimOut(_ClaimOut):
    claim_type: Literal[ClaimType.TEACHING]
    teaching_date: date
    teaching_start_time: str
    teaching_end_time: str
    teaching_hours: float


class TransportationClaimOut(_ClaimOut):
    claim_type: Literal[ClaimType.TRANSPORTATION]
    transport_type: TransportType
    transport_from: str
    transport_to: str
    transport_amount: float
    transport_reg_number: str | None
    transport_cubic_capacity: int | None


class ExaminationClaimOut(_ClaimOut):
    claim_type: Literal[ClaimType.THESIS_PROJECT]
    thesis_type: Literal[ThesisType.EXAMINATION]
    thesis_exam_course_code: str
    thesis_exam_date: date


class SupervisionClaimOut(_ClaimOut):
    claim_type: Literal[ClaimType.THESIS_PROJECT]
    thesis_type: Literal[ThesisType.SUPERVISION]
    thesis_supervision_rank: SupervisionRank
    supervised_students: list[SupervisedStudentOut]


class ClaimStatusCountsOut(BaseModel):
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    total: int = 0


def counts_to_out(counts: dict[ClaimStatus, int]) -> ClaimStatusCountsOut:
    return ClaimStatusCountsOut(**{status.value.lower(): n for status, n in counts.items()}, total=sum(counts.values()))


ClaimOut = Union[TeachingClaimOut, TransportationClaimOut, ExaminationClaimOut, SupervisionClaimOut]


def claim_to_out(claim: Claim) -> ClaimOut:
    if claim.claim_type == ClaimType.TEACHING:
        return TeachingClaimOut.model_validate(claim)
    if claim.claim_type == ClaimType.TRANSPORTATION:
        return TransportationClaimOut.model_validate(claim)
    if claim.thesis_type == ThesisType.EXAMINATION:
        return ExaminationClaimOut.model_validate(claim)
    return SupervisionClaimOut.model_validate(claim)
