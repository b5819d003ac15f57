from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from ..db.models import UserRole
from .auth import UserSummary


class CreateAdminRequest(BaseModel):
    email: str | None = None
    name: str | None = None


class CreateAdminResponse(BaseModel):
    message: str
    user: UserSummary


class AdminUserModel(BaseModel):
    id: int
    email: str
    name: str
    role: UserRole
    is_verified: bool
    last_login_at: datetime | None
    created_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


class AdminUserListResponse(BaseModel):
    items: list[AdminUserModel]
