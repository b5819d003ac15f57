from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from ...core.errors import ValidationError
from ...core.logging import mask_email
from ...core.security import Identity, require_admin, require_admin_token
from ...schemas.admin import (
    AdminUserListResponse,
    AdminUserModel,
    CreateAdminRequest,
    CreateAdminResponse,
)
from ...schemas.auth import UserSummary
from ...services.magic_link import normalize_email
from ...services.storage import StorageService
from .deps import get_storage_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/create-admin", response_model=CreateAdminResponse)
async def create_admin(
    payload: CreateAdminRequest,
    _: None = Depends(require_admin_token),
    storage: StorageService = Depends(get_storage_service),
) -> CreateAdminResponse:
    name = (payload.name or "").strip()
    if not name:
        raise ValidationError("Email and name are required")
    email = normalize_email(payload.email)
    user, created = await storage.promote_to_admin(email=email, name=name)
    logger.warning(
        "Admin role granted",
        extra={"user": mask_email(email), "event": "admin_granted"},
    )
    message = "Admin user created successfully" if created else "User updated to admin successfully"
    return CreateAdminResponse(message=message, user=UserSummary.model_validate(user))


@router.get("/users", response_model=AdminUserListResponse)
async def list_users(
    _: Identity = Depends(require_admin),
    storage: StorageService = Depends(get_storage_service),
) -> AdminUserListResponse:
    users = await storage.list_users()
    return AdminUserListResponse(items=[AdminUserModel.model_validate(u) for u in users])
