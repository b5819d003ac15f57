from __future__ import annotations

import hmac
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from fastapi import Depends, Header, HTTPException, Request, status
from jose import JWTError, jwt

from ..db.models import User, UserRole, utcnow
from ..metrics import AUTH_EVENTS
from .errors import Unauthenticated
from .policy import require_role

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """Who is calling, as asserted by a verified session credential."""

    user_id: int
    email: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMINISTRATOR


@dataclass(frozen=True)
class SessionCredential:
    token: str
    expires_at: datetime


class SessionAuthenticator:
    """Issue and verify signed, time-boxed session credentials (JWT).

    The role is frozen into the credential at issuance and trusted until the
    credential expires; there is no server-side revocation.
    """

    def __init__(
        self,
        secret: str,
        *,
        algorithm: str = "HS256",
        ttl: timedelta = timedelta(days=7),
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if not secret:
            raise ValueError("session secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm
        self._ttl = ttl
        self._clock: Callable[[], datetime] = clock or utcnow

    def issue(self, user: User) -> SessionCredential:
        issued_at = self._clock()
        expires_at = issued_at + self._ttl
        claims = {
            "sub": str(user.id),
            "email": user.email,
            "role": UserRole(user.role).value,
            "iat": issued_at,
            "exp": expires_at,
        }
        token = jwt.encode(claims, self._secret, algorithm=self._algorithm)
        return SessionCredential(token=token, expires_at=expires_at)

    def authenticate(self, credential: str | None) -> Identity:
        if not credential:
            raise Unauthenticated()
        try:
            claims = jwt.decode(credential, self._secret, algorithms=[self._algorithm])
        except JWTError as exc:
            raise Unauthenticated("Invalid or expired session") from exc

        try:
            return Identity(
                user_id=int(claims["sub"]),
                email=str(claims["email"]),
                role=UserRole(claims["role"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise Unauthenticated("Invalid or expired session") from exc


def _bearer_value(authorization: str | None) -> str | None:
    if authorization and authorization.lower().startswith("bearer "):
        return authorization.split(" ", 1)[1].strip() or None
    return None


async def resolve_identity(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> Identity:
    authenticator: SessionAuthenticator = request.app.state.session_authenticator
    try:
        identity = authenticator.authenticate(_bearer_value(authorization))
    except Unauthenticated:
        AUTH_EVENTS.labels(event="session", result="rejected").inc()
        raise
    request.state.current_user_id = identity.user_id
    return identity


async def require_admin(identity: Identity = Depends(resolve_identity)) -> Identity:
    require_role(identity, UserRole.ADMINISTRATOR)
    return identity


async def require_admin_token(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
    admin_header: str | None = Header(default=None, alias="X-Admin-Token"),
) -> None:
    """Gate out-of-band operations behind the static ``ADMIN_TOKEN``."""

    settings = request.app.state.settings
    expected = getattr(settings, "admin_api_token", None)
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="admin disabled",
        )
    token_value = _bearer_value(authorization)
    if token_value is None and admin_header:
        token_value = admin_header.strip()
    if token_value is None or not hmac.compare_digest(
        token_value.encode("utf-8"), expected.encode("utf-8")
    ):
        logger.warning("Rejected admin token", extra={"event": "admin_token_rejected"})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="admin token invalid")


__all__ = [
    "Identity",
    "SessionAuthenticator",
    "SessionCredential",
    "require_admin",
    "require_admin_token",
    "resolve_identity",
]
