from __future__ import annotations

import pytest

from backend.app.core.errors import Forbidden
from backend.app.core.policy import authorize, authorize_owner, require_owner, require_role
from backend.app.core.security import Identity
from backend.app.db.models import UserRole

STANDARD = Identity(user_id=1, email="ada@example.com", role=UserRole.STANDARD)
ADMIN = Identity(user_id=2, email="root@example.com", role=UserRole.ADMINISTRATOR)


def test_authorize_by_role() -> None:
    assert authorize(STANDARD, UserRole.STANDARD)
    assert not authorize(STANDARD, UserRole.ADMINISTRATOR)
    assert authorize(ADMIN, UserRole.ADMINISTRATOR)
    assert authorize(ADMIN, UserRole.STANDARD)


def test_authorize_owner() -> None:
    assert authorize_owner(STANDARD, 1)
    assert not authorize_owner(STANDARD, 99)
    assert authorize_owner(ADMIN, 99)


def test_require_helpers_raise_forbidden() -> None:
    require_role(ADMIN, UserRole.ADMINISTRATOR)
    require_owner(STANDARD, 1)

    with pytest.raises(Forbidden):
        require_role(STANDARD, UserRole.ADMINISTRATOR)
    with pytest.raises(Forbidden) as excinfo:
        require_owner(STANDARD, 2)
    assert excinfo.value.status_code == 403
    assert excinfo.value.message == "Access denied"
