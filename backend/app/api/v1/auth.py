from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ...core.errors import Unauthenticated
from ...core.security import Identity, resolve_identity
from ...schemas.auth import (
    CurrentUserResponse,
    MagicLinkRequest,
    MessageResponse,
    UserSummary,
    VerifyResponse,
)
from ...services.magic_link import MagicLinkService
from ...services.storage import StorageService
from .deps import get_magic_link_service, get_storage_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/request-magic-link", response_model=MessageResponse)
async def request_magic_link(
    payload: MagicLinkRequest,
    service: MagicLinkService = Depends(get_magic_link_service),
) -> MessageResponse:
    await service.request_link(payload.email, payload.name)
    return MessageResponse(message="Magic link sent to your email")


@router.get("/verify", response_model=VerifyResponse)
async def verify_magic_link(
    token: str | None = Query(default=None),
    service: MagicLinkService = Depends(get_magic_link_service),
) -> VerifyResponse:
    user, credential = await service.redeem(token)
    return VerifyResponse(
        token=credential.token,
        expires_at=credential.expires_at,
        user=UserSummary.model_validate(user),
    )


@router.get("/me", response_model=CurrentUserResponse)
async def read_current_user(
    identity: Identity = Depends(resolve_identity),
    storage: StorageService = Depends(get_storage_service),
) -> CurrentUserResponse:
    user = await storage.get_user_by_id(identity.user_id)
    if user is None:
        raise Unauthenticated("User no longer exists")
    summary = UserSummary.model_validate(user)
    # the role asserted by the credential is authoritative until it expires
    return CurrentUserResponse(user=summary.model_copy(update={"role": identity.role}))


@router.post("/logout", response_model=MessageResponse)
async def logout(_: Identity = Depends(resolve_identity)) -> MessageResponse:
    # credentials are stateless; the client discards its copy
    return MessageResponse(message="Logout successful")
