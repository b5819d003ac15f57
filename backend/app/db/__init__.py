"""Database models for the resume review platform."""

from .models import (
    Base,
    Resume,
    ResumeStatus,
    SettingEntry,
    User,
    UserRole,
)

__all__ = [
    "Base",
    "Resume",
    "ResumeStatus",
    "SettingEntry",
    "User",
    "UserRole",
]
