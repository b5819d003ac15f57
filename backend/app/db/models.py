from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how DateTime columns are stored."""

    return datetime.now(UTC).replace(tzinfo=None)


class UserRole(str, Enum):
    STANDARD = "user"
    ADMINISTRATOR = "admin"


class ResumeStatus(str, Enum):
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    NEEDS_REVISION = "needs_revision"
    REJECTED = "rejected"


def _enum_values(enum_cls: type[Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class Base(DeclarativeBase):
    """Base declarative model."""


class User(Base):
    """Applicant or reviewer identified by email, signing in with magic links."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        SAEnum(
            UserRole,
            name="user_role",
            native_enum=False,
            values_callable=_enum_values,
            length=16,
        ),
        default=UserRole.STANDARD,
        nullable=False,
    )
    magic_link_token: Mapped[str | None] = mapped_column(
        String(128), unique=True, index=True, nullable=True
    )
    magic_link_expires: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    resumes: Mapped[list[Resume]] = relationship(
        back_populates="owner",
        foreign_keys="Resume.user_id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Resume(Base):
    """Uploaded PDF resume and its review state."""

    __tablename__ = "resumes"
    __table_args__ = (
        Index("ix_resumes_user_id", "user_id"),
        Index("ix_resumes_status", "status"),
        Index("ix_resumes_reviewer_id", "reviewer_id"),
        Index("ix_resumes_uploaded_at", "uploaded_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_name: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[ResumeStatus] = mapped_column(
        SAEnum(
            ResumeStatus,
            name="resume_status",
            native_enum=False,
            values_callable=_enum_values,
            length=32,
        ),
        default=ResumeStatus.PENDING,
        nullable=False,
    )
    score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    reviewer_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    review_notes: Mapped[str] = mapped_column(Text, default="")
    tags: Mapped[list[str]] = mapped_column(JSON, default=list)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    uploaded_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    owner: Mapped[User] = relationship(
        back_populates="resumes",
        foreign_keys=[user_id],
        lazy="joined",
    )
    reviewer: Mapped[User | None] = relationship(foreign_keys=[reviewer_id], lazy="joined")


class SettingEntry(Base):
    """Key-value configuration stored in DB."""

    __tablename__ = "settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utcnow,
        onupdate=utcnow,
    )


__all__ = [
    "Base",
    "Resume",
    "ResumeStatus",
    "SettingEntry",
    "User",
    "UserRole",
    "utcnow",
]
