from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from backend.db import normalize_database_url


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
    )

    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/resume_review.db",
        alias="DATABASE_URL",
    )
    log_file: Path = Field(default=Path("logs/resume_review.log"))
    cors_origins: str = Field(default="*", alias="CORS_ORIGINS")
    admin_api_token: str | None = Field(default=None, alias="ADMIN_TOKEN")

    # Magic links and session credentials
    frontend_url: str = Field(default="http://localhost:3000", alias="FRONTEND_URL")
    jwt_secret: str | None = Field(default=None, alias="JWT_SECRET")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    session_ttl_days: int = Field(default=7, alias="SESSION_TTL_DAYS")
    magic_link_ttl_minutes: int = Field(default=15, alias="MAGIC_LINK_TTL_MINUTES")

    # Outbound email (SendGrid v3 API)
    sendgrid_api_key: str | None = Field(default=None, alias="SENDGRID_API_KEY")
    from_email: str | None = Field(default=None, alias="FROM_EMAIL")
    sendgrid_api_url: str = Field(
        default="https://api.sendgrid.com/v3/mail/send",
        alias="SENDGRID_API_URL",
    )
    email_timeout_seconds: float = Field(default=10.0, alias="EMAIL_TIMEOUT_SECONDS")

    # Resume file storage
    upload_dir: Path = Field(default=Path("uploads"), alias="UPLOAD_DIR")
    max_upload_bytes: int = Field(default=10 * 1024 * 1024, alias="MAX_UPLOAD_BYTES")

    version: str = Field(default_factory=lambda: Settings._load_version())

    @property
    def cors_origin_list(self) -> list[str]:
        origins = [item.strip() for item in self.cors_origins.split(",") if item.strip()]
        return origins or ["*"]

    @staticmethod
    def _load_version() -> str:
        version_env = os.getenv("VERSION")
        if version_env:
            return version_env
        version_file = Path("VERSION")
        if version_file.exists():
            return version_file.read_text(encoding="utf-8").strip()
        return "0.0.0"

    @field_validator("log_file", mode="before")
    @classmethod
    def _validate_log_file(cls, value: Path | str) -> Path:
        path = Path(value)
        if not path.parent.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
        return path

    @field_validator("frontend_url", mode="before")
    @classmethod
    def _validate_frontend_url(cls, value: str | None) -> str:
        if not value:
            return "http://localhost:3000"
        return str(value).rstrip("/")

    @field_validator("magic_link_ttl_minutes", mode="before")
    @classmethod
    def _validate_magic_link_ttl(cls, value: int | str | None) -> int:
        if value is None:
            return 15
        return max(int(value), 1)

    @field_validator("session_ttl_days", mode="before")
    @classmethod
    def _validate_session_ttl(cls, value: int | str | None) -> int:
        if value is None:
            return 7
        return max(int(value), 1)

    @field_validator("database_url", mode="before")
    @classmethod
    def _validate_database_url(cls, value: str | None) -> str:
        return normalize_database_url(value)


@lru_cache
def get_settings() -> Settings:
    """Cached settings accessor."""

    return Settings()
