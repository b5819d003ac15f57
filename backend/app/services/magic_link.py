from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from datetime import datetime, timedelta
from urllib.parse import urlencode

from email_validator import EmailNotValidError, validate_email

from ..core.errors import DeliveryFailure, InvalidOrExpiredToken, ValidationError
from ..core.logging import mask_email
from ..core.security import SessionAuthenticator, SessionCredential
from ..db.models import User, utcnow
from ..metrics import AUTH_EVENTS, EMAILS_SENT
from .email_templates import magic_link_email
from .notifier import Notifier
from .storage import StorageService

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32


def generate_token() -> str:
    """256 bits from the OS CSPRNG, hex encoded."""

    return secrets.token_hex(TOKEN_BYTES)


def normalize_email(email: str | None) -> str:
    value = (email or "").strip()
    if not value:
        raise ValidationError("Email and name are required")
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValidationError("Invalid email address") from exc
    return value.lower()


class MagicLinkService:
    """Issue one-time login links and redeem them for session credentials."""

    def __init__(
        self,
        storage: StorageService,
        notifier: Notifier,
        authenticator: SessionAuthenticator,
        *,
        frontend_url: str,
        ttl: timedelta = timedelta(minutes=15),
        clock: Callable[[], datetime] | None = None,
        token_factory: Callable[[], str] = generate_token,
    ) -> None:
        self._storage = storage
        self._notifier = notifier
        self._authenticator = authenticator
        self._frontend_url = frontend_url.rstrip("/")
        self._ttl = ttl
        self._clock: Callable[[], datetime] = clock or utcnow
        self._token_factory = token_factory

    def build_link(self, token: str) -> str:
        return f"{self._frontend_url}/auth/verify?{urlencode({'token': token})}"

    async def request_link(self, email: str | None, name: str | None) -> None:
        display_name = (name or "").strip()
        if not display_name:
            raise ValidationError("Email and name are required")
        address = normalize_email(email)

        token = self._token_factory()
        expires_at = self._clock() + self._ttl
        await self._storage.store_magic_link(
            email=address,
            name=display_name,
            token=token,
            expires_at=expires_at,
        )

        ttl_minutes = int(self._ttl.total_seconds() // 60)
        subject, html = magic_link_email(display_name, self.build_link(token), ttl_minutes)
        try:
            await self._notifier.send(address, subject, html)
        except DeliveryFailure:
            EMAILS_SENT.labels(kind="magic_link", result="failed").inc()
            logger.error(
                "Magic link persisted but not delivered",
                extra={"user": mask_email(address), "event": "magic_link_undelivered"},
            )
            raise
        EMAILS_SENT.labels(kind="magic_link", result="sent").inc()
        AUTH_EVENTS.labels(event="magic_link_requested", result="ok").inc()
        logger.info(
            "Magic link issued",
            extra={"user": mask_email(address), "event": "magic_link_requested"},
        )

    async def redeem(self, token: str | None) -> tuple[User, SessionCredential]:
        if not token:
            raise ValidationError("Token is required")
        user = await self._storage.consume_magic_link(token, now=self._clock())
        if user is None:
            AUTH_EVENTS.labels(event="magic_link_redeemed", result="rejected").inc()
            raise InvalidOrExpiredToken()

        credential = self._authenticator.issue(user)
        AUTH_EVENTS.labels(event="magic_link_redeemed", result="ok").inc()
        logger.info(
            "Magic link redeemed",
            extra={"user": user.id, "event": "magic_link_redeemed"},
        )
        return user, credential


__all__ = ["MagicLinkService", "generate_token", "normalize_email"]
