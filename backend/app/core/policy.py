"""Role and ownership checks applied to every resource-scoped operation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..db.models import UserRole
from .errors import Forbidden

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .security import Identity


def authorize(identity: Identity, required_role: UserRole) -> bool:
    if identity.role == UserRole.ADMINISTRATOR:
        return True
    return identity.role == required_role


def authorize_owner(identity: Identity, resource_owner_id: int) -> bool:
    if identity.role == UserRole.ADMINISTRATOR:
        return True
    return identity.user_id == resource_owner_id


def require_role(identity: Identity, required_role: UserRole) -> None:
    if not authorize(identity, required_role):
        raise Forbidden("Admin access required")


def require_owner(identity: Identity, resource_owner_id: int) -> None:
    if not authorize_owner(identity, resource_owner_id):
        raise Forbidden()


__all__ = ["authorize", "authorize_owner", "require_owner", "require_role"]
