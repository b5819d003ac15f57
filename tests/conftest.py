from __future__ import annotations

import asyncio
import re
from collections.abc import Generator
from dataclasses import dataclass, field
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from backend.app.core import config
from backend.db import create_engine, create_session_factory, init_db

TOKEN_PATTERN = re.compile(r"token=([0-9a-f]{64})")


@dataclass
class SentEmail:
    to: str
    subject: str
    html: str


@dataclass
class RecordingNotifier:
    """Stands in for SendGrid; keeps every message it was asked to send."""

    sent: list[SentEmail] = field(default_factory=list)
    fail_with: Exception | None = None

    async def send(self, to: str, subject: str, html: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append(SentEmail(to=to, subject=subject, html=html))

    async def close(self) -> None:
        return None

    def last_token(self) -> str:
        for message in reversed(self.sent):
            match = TOKEN_PATTERN.search(message.html)
            if match:
                return match.group(1)
        raise AssertionError("no magic link was sent")


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def test_client(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    notifier: RecordingNotifier,
) -> Generator[TestClient, None, None]:
    monkeypatch.delenv("SENDGRID_API_KEY", raising=False)
    monkeypatch.setenv("VERSION", "0.1.0-test")
    monkeypatch.setenv("ADMIN_TOKEN", "test-admin")
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    monkeypatch.setenv("FRONTEND_URL", "https://resumes.example.com")
    monkeypatch.setenv("FROM_EMAIL", "noreply@example.com")
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setenv("MAX_UPLOAD_BYTES", str(64 * 1024))
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'api.db'}")
    config.get_settings.cache_clear()

    from backend.app.main import app

    with TestClient(app) as client:
        monkeypatch.setattr(client.app.state.notifier, "send", notifier.send)
        yield client
    config.get_settings.cache_clear()


@pytest.fixture()
def temp_session_factory(tmp_path: Path):
    database_url = f"sqlite+aiosqlite:///{tmp_path / 'unit.db'}"
    engine = create_engine(database_url)
    session_factory = create_session_factory(engine)
    asyncio.run(init_db(engine, session_factory, "test", database_url))
    try:
        yield session_factory
    finally:
        asyncio.run(engine.dispose())
