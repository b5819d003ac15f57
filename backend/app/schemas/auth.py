from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from ..db.models import UserRole


class MagicLinkRequest(BaseModel):
    # presence is checked by the service so missing fields map to 400
    email: str | None = None
    name: str | None = None


class MessageResponse(BaseModel):
    message: str


class UserSummary(BaseModel):
    id: int
    email: str
    name: str
    role: UserRole

    model_config = ConfigDict(from_attributes=True)


class VerifyResponse(BaseModel):
    message: str = "Login successful"
    token: str
    expires_at: datetime
    user: UserSummary


class CurrentUserResponse(BaseModel):
    user: UserSummary
