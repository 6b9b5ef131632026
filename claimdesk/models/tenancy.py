from __future__ import annotations

import enum
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from claimdesk.db.base import Base, utcnow

if TYPE_CHECKING:
    from claimdesk.models.claims import Claim


class Role(str, enum.Enum):
    REGISTRY = "REGISTRY"
    COORDINATOR = "COORDINATOR"
    LECTURER = "LECTURER"


class User(Base):
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("email"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(191), nullable=False)
    name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    password_hash: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[Role] = mapped_column(Enum(Role, name="role"), nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Lecturer membership. Both stay null for registry and coordinator users.
    lecturer_center_id: Mapped[int | None] = mapped_column(ForeignKey("centers.id"), nullable=True, index=True)
    department_id: Mapped[int | None] = mapped_column(ForeignKey("departments.id"), nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    coordinated_center: Mapped["Center | None"] = relationship(
        back_populates="coordinator",
        foreign_keys="Center.coordinator_id",
        uselist=False,
    )
    lecturer_center: Mapped["Center | None"] = relationship(
        back_populates="lecturers",
        foreign_keys=[lecturer_center_id],
    )
    department: Mapped["Department | None"] = relationship(back_populates="lecturers")
    submitted_claims: Mapped[list["Claim"]] = relationship(
        back_populates="submitted_by",
        foreign_keys="Claim.submitted_by_id",
    )


class Center(Base):
    __tablename__ = "centers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(191), unique=True, nullable=False)

    # One coordinator per center and one center per coordinator.
    coordinator_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        unique=True,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    coordinator: Mapped[User] = relationship(back_populates="coordinated_center", foreign_keys=[coordinator_id])
    lecturers: Mapped[list[User]] = relationship(
        back_populates="lecturer_center",
        foreign_keys=[User.lecturer_center_id],
    )
    departments: Mapped[list["Department"]] = relationship(back_populates="center", order_by="Department.name")
    claims: Mapped[list["Claim"]] = relationship(back_populates="center")


class Department(Base):
    __tablename__ = "departments"
    __table_args__ = (UniqueConstraint("name", "center_id", name="uq_department_name_center"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    center_id: Mapped[int] = mapped_column(ForeignKey("centers.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    center: Mapped[Center] = relationship(back_populates="departments")
    lecturers: Mapped[list[User]] = relationship(back_populates="department")
