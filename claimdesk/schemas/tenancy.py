from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from claimdesk.models.tenancy import Role

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str | None
    role: Role
    is_active: bool
    lecturer_center_id: int | None
    department_id: int | None


class CenterOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    coordinator_id: int
    created_at: datetime


class DepartmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    center_id: int


class CenterAssignmentOut(BaseModel):
    """Where the caller belongs. `assigned=False` is a normal state for new coordinators and lecturers."""

    assigned: bool
    center: CenterOut | None = None
    department: DepartmentOut | None = None


class SessionOut(BaseModel):
    user_id: int
    role: Role
    name: str | None


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    session: SessionOut


class LoginIn(BaseModel):
    email: str = Field(pattern=_EMAIL_PATTERN)
    password: str = Field(min_length=1)


class SignupIn(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    email: str = Field(pattern=_EMAIL_PATTERN, max_length=191)
    password: str = Field(min_length=8)


class CreateUserIn(BaseModel):
    email: str = Field(pattern=_EMAIL_PATTERN, max_length=191)
    password: str = Field(min_length=8)
    name: str | None = Field(default=None, min_length=2, max_length=100)
    role: Role

    @field_validator("role")
    @classmethod
    def _not_registry(cls, value: Role) -> Role:
        if value == Role.REGISTRY:
            raise ValueError("only COORDINATOR or LECTURER users can be created")
        return value


class CreateLecturerIn(BaseModel):
    email: str = Field(pattern=_EMAIL_PATTERN, max_length=191)
    password: str = Field(min_length=8)
    name: str | None = Field(default=None, min_length=2, max_length=100)
    department_id: int | None = None


class CenterIn(BaseModel):
    name: str = Field(min_length=3, max_length=100)
    coordinator_id: int


class CenterUpdateIn(BaseModel):
    name: str = Field(min_length=3, max_length=100)


class CoordinatorIn(BaseModel):
    coordinator_id: int


class LecturerRefIn(BaseModel):
    lecturer_id: int


class DepartmentIn(BaseModel):
    name: str = Field(min_length=2, max_length=100)
