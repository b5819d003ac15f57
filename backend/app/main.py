from __future__ import annotations

import logging
import secrets
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any

from fastapi import Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from backend.db import create_engine, create_session_factory, init_db

from .api.v1 import router as v1_router
from .core.config import Settings, get_settings
from .core.errors import (
    ResumeReviewError,
    handle_request_validation_error,
    handle_resume_review_error,
)
from .core.logging import configure_logging
from .core.security import SessionAuthenticator
from .middleware import RequestLoggingMiddleware
from .services.files import FileStore
from .services.magic_link import MagicLinkService
from .services.notifier import SendGridNotifier
from .services.resumes import ResumeService
from .services.storage import StorageService

logger = logging.getLogger(__name__)


def _session_secret(settings: Settings) -> str:
    if settings.jwt_secret:
        return settings.jwt_secret
    logger.warning("JWT_SECRET not set; sessions will not survive a restart")
    return secrets.token_urlsafe(32)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Configure application services during startup and ensure graceful shutdown."""

    configure_logging()
    settings: Settings = get_settings()

    engine = create_engine(settings.database_url)
    session_factory = create_session_factory(engine)
    await init_db(engine, session_factory, settings.version, settings.database_url)
    storage_service = StorageService(session_factory)

    notifier = SendGridNotifier(
        settings.sendgrid_api_key,
        settings.from_email,
        api_url=settings.sendgrid_api_url,
        timeout=settings.email_timeout_seconds,
    )
    if not notifier.available:
        logger.warning("SendGrid not configured; email delivery will fail")

    session_authenticator = SessionAuthenticator(
        _session_secret(settings),
        algorithm=settings.jwt_algorithm,
        ttl=timedelta(days=settings.session_ttl_days),
    )
    magic_link_service = MagicLinkService(
        storage_service,
        notifier,
        session_authenticator,
        frontend_url=settings.frontend_url,
        ttl=timedelta(minutes=settings.magic_link_ttl_minutes),
    )
    file_store = FileStore(settings.upload_dir, max_bytes=settings.max_upload_bytes)
    file_store.ensure_root()
    resume_service = ResumeService(
        storage_service,
        file_store,
        notifier,
        dashboard_url=f"{settings.frontend_url}/dashboard",
    )

    app.state.settings = settings
    app.state.db_engine = engine
    app.state.db_session_factory = session_factory
    app.state.storage_service = storage_service
    app.state.notifier = notifier
    app.state.session_authenticator = session_authenticator
    app.state.magic_link_service = magic_link_service
    app.state.file_store = file_store
    app.state.resume_service = resume_service

    logger.info("Starting resume review API %s", settings.version)

    try:
        yield
    finally:
        await notifier.close()
        await app.state.db_engine.dispose()


app = FastAPI(title="Resume Review", version=get_settings().version, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)
app.add_exception_handler(ResumeReviewError, handle_resume_review_error)
app.add_exception_handler(RequestValidationError, handle_request_validation_error)

app.include_router(v1_router)


@app.get("/healthz")
async def healthz(settings: Settings = Depends(get_settings)) -> dict[str, str]:
    return {"status": "ok", "version": settings.version}


@app.get("/readyz")
async def readyz(request: Request) -> dict[str, Any]:
    storage: StorageService = request.app.state.storage_service
    notifier = request.app.state.notifier

    db_ok = True
    db_detail = "ok"
    try:
        await storage.healthcheck()
    except Exception as exc:  # pragma: no cover
        logger.exception("Database readiness check failed: %s", exc)
        db_ok = False
        db_detail = str(exc)

    email_ok = bool(getattr(notifier, "available", True))
    return {
        "ready": db_ok,
        "db": {"ok": db_ok, "detail": db_detail},
        "email": {"ok": email_ok, "detail": "configured" if email_ok else "not configured"},
    }


@app.get("/metrics")
async def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.get("/", response_class=HTMLResponse)
async def root() -> str:
    return "<h1>Resume Review</h1><p>Submit resumes and track their review status.</p>"
