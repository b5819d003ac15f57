from __future__ import annotations

from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from backend.app.core.errors import (
    ResumeReviewError,
    Unauthenticated,
    handle_resume_review_error,
)
from backend.app.core.security import (
    Identity,
    SessionAuthenticator,
    require_admin,
    require_admin_token,
    resolve_identity,
)
from backend.app.db.models import UserRole, utcnow


class _Clock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def _user(user_id: int = 1, role: UserRole = UserRole.STANDARD):
    return SimpleNamespace(id=user_id, email=f"user{user_id}@example.com", role=role)


def test_issue_and_authenticate_round_trip() -> None:
    authenticator = SessionAuthenticator("secret")

    credential = authenticator.issue(_user(5, UserRole.ADMINISTRATOR))
    identity = authenticator.authenticate(credential.token)

    assert identity == Identity(user_id=5, email="user5@example.com", role=UserRole.ADMINISTRATOR)
    assert identity.is_admin
    assert credential.expires_at > utcnow() + timedelta(days=6)


def test_authenticate_rejects_expired_credential() -> None:
    clock = _Clock(utcnow() - timedelta(days=8))
    authenticator = SessionAuthenticator("secret", clock=clock)
    credential = authenticator.issue(_user())

    with pytest.raises(Unauthenticated):
        authenticator.authenticate(credential.token)


def test_authenticate_rejects_foreign_signature() -> None:
    credential = SessionAuthenticator("other-secret").issue(_user())

    with pytest.raises(Unauthenticated):
        SessionAuthenticator("secret").authenticate(credential.token)


def test_authenticate_rejects_tampered_and_missing_credentials() -> None:
    authenticator = SessionAuthenticator("secret")
    token = authenticator.issue(_user()).token
    header, payload, signature = token.split(".")
    tampered = ".".join([header, payload, signature[::-1]])

    for value in (None, "", "not-a-jwt", tampered):
        with pytest.raises(Unauthenticated):
            authenticator.authenticate(value)


def test_authenticator_requires_secret() -> None:
    with pytest.raises(ValueError):
        SessionAuthenticator("")


def _app_with_security(admin_token: str | None = "admin-secret") -> FastAPI:
    app = FastAPI()
    app.state.session_authenticator = SessionAuthenticator("secret")
    app.state.settings = SimpleNamespace(admin_api_token=admin_token)
    app.add_exception_handler(ResumeReviewError, handle_resume_review_error)

    @app.get("/secure")
    async def secure(identity: Identity = Depends(resolve_identity)) -> dict[str, int]:
        return {"user": identity.user_id}

    @app.get("/admin")
    async def admin(identity: Identity = Depends(require_admin)) -> dict[str, int]:
        return {"user": identity.user_id}

    @app.post("/bootstrap", dependencies=[Depends(require_admin_token)])
    async def bootstrap() -> dict[str, bool]:
        return {"ok": True}

    return app


def _bearer(app: FastAPI, user) -> dict[str, str]:
    token = app.state.session_authenticator.issue(user).token
    return {"Authorization": f"Bearer {token}"}


def test_resolve_identity_accepts_bearer_credential() -> None:
    app = _app_with_security()
    with TestClient(app) as client:
        response = client.get("/secure", headers=_bearer(app, _user(3)))
        assert response.status_code == 200
        assert response.json()["user"] == 3


def test_resolve_identity_missing_or_invalid() -> None:
    app = _app_with_security()
    with TestClient(app) as client:
        missing = client.get("/secure")
        invalid = client.get("/secure", headers={"Authorization": "Bearer nope"})

    assert missing.status_code == 401
    assert missing.headers["WWW-Authenticate"] == "Bearer"
    assert invalid.status_code == 401
    assert invalid.json()["detail"] == "Invalid or expired session"


def test_require_admin_checks_role() -> None:
    app = _app_with_security()
    with TestClient(app) as client:
        standard = client.get("/admin", headers=_bearer(app, _user(1)))
        admin = client.get("/admin", headers=_bearer(app, _user(2, UserRole.ADMINISTRATOR)))

    assert standard.status_code == 403
    assert standard.json()["detail"] == "Admin access required"
    assert admin.status_code == 200


def test_require_admin_token() -> None:
    app = _app_with_security()
    with TestClient(app) as client:
        assert client.post("/bootstrap").status_code == 401
        assert client.post("/bootstrap", headers={"X-Admin-Token": "wrong"}).status_code == 401
        assert (
            client.post("/bootstrap", headers={"X-Admin-Token": "admin-secret"}).status_code
            == 200
        )
        assert (
            client.post(
                "/bootstrap", headers={"Authorization": "Bearer admin-secret"}
            ).status_code
            == 200
        )


def test_require_admin_token_disabled() -> None:
    app = _app_with_security(admin_token=None)
    with TestClient(app) as client:
        response = client.post("/bootstrap", headers={"X-Admin-Token": "anything"})
    assert response.status_code == 503
