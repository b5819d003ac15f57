from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

import httpx

from ..core.errors import DeliveryFailure
from ..core.logging import mask_email

logger = logging.getLogger(__name__)


@runtime_checkable
class Notifier(Protocol):
    async def send(self, to: str, subject: str, html: str) -> None: ...

    async def close(self) -> None: ...


class SendGridNotifier:
    """Deliver HTML email through the SendGrid v3 ``mail/send`` endpoint.

    Failures are raised as :class:`DeliveryFailure`; nothing is queued or
    retried.
    """

    def __init__(
        self,
        api_key: str | None,
        from_email: str | None,
        *,
        api_url: str = "https://api.sendgrid.com/v3/mail/send",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._from_email = from_email
        self._api_url = api_url
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def available(self) -> bool:
        return bool(self._api_key and self._from_email)

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self._client

    async def send(self, to: str, subject: str, html: str) -> None:
        if not self._api_key:
            raise DeliveryFailure("SENDGRID_API_KEY is required")
        if not self._from_email:
            raise DeliveryFailure("FROM_EMAIL is required")

        payload = {
            "personalizations": [{"to": [{"email": to}]}],
            "from": {"email": self._from_email},
            "subject": subject,
            "content": [{"type": "text/html", "value": html}],
        }
        client = self._ensure_client()
        try:
            response = await client.post(
                self._api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "SendGrid rejected email",
                extra={"status": exc.response.status_code, "user": mask_email(to)},
            )
            raise DeliveryFailure() from exc
        except httpx.HTTPError as exc:
            logger.error("SendGrid request failed: %s", exc, extra={"user": mask_email(to)})
            raise DeliveryFailure() from exc

        logger.info("Email sent", extra={"user": mask_email(to)})

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


__all__ = ["Notifier", "SendGridNotifier"]
