from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import event, select
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from backend.app.db.models import Base, SettingEntry

logger = logging.getLogger(__name__)

BACKEND_DIR = Path(__file__).resolve().parent
DEFAULT_SQLITE_URL = "sqlite:///./data/resume_review.db"
SCHEMA_VERSION_KEY = "schema_version"

# sync URL prefix -> async driver prefix
_ASYNC_DRIVERS = (
    ("postgres://", "postgresql+asyncpg://"),
    ("postgresql://", "postgresql+asyncpg://"),
    ("sqlite://", "sqlite+aiosqlite://"),
)


def normalize_database_url(raw_url: str | None) -> str:
    """Point the URL at an async driver and make sure a SQLite file can be created."""

    url = str(raw_url or DEFAULT_SQLITE_URL)
    for prefix, replacement in _ASYNC_DRIVERS:
        if url.startswith(prefix):
            url = replacement + url[len(prefix) :]
            break

    if url.startswith("sqlite") and not _is_private_memory_db(url):
        Path(make_url(url).database).parent.mkdir(parents=True, exist_ok=True)
    return url


def _is_private_memory_db(url: str) -> bool:
    database = make_url(url).database
    return url.startswith("sqlite") and database in (None, "", ":memory:")


def _enable_foreign_keys(dbapi_connection, _connection_record) -> None:  # pragma: no cover
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine(database_url: str | None) -> AsyncEngine:
    engine = create_async_engine(normalize_database_url(database_url), echo=False)
    if engine.dialect.name == "sqlite":
        # ON DELETE CASCADE / SET NULL on resumes depend on it
        event.listen(engine.sync_engine, "connect", _enable_foreign_keys)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


def _upgrade_to_head(database_url: str) -> None:
    config = Config(str(BACKEND_DIR.parent / "alembic.ini"))
    config.set_main_option("script_location", str(BACKEND_DIR / "alembic"))
    # configparser interpolation would choke on percent-encoded passwords
    config.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))
    command.upgrade(config, "head")


async def _record_schema_version(
    session_factory: async_sessionmaker[AsyncSession], version: str
) -> None:
    async with session_factory() as session:
        entry = await session.scalar(
            select(SettingEntry).where(SettingEntry.key == SCHEMA_VERSION_KEY)
        )
        if entry is None:
            session.add(SettingEntry(key=SCHEMA_VERSION_KEY, value=version))
        else:
            entry.value = version
        await session.commit()


async def init_db(
    engine: AsyncEngine,
    session_factory: async_sessionmaker[AsyncSession],
    version: str,
    database_url: str | None = None,
) -> None:
    """Migrate to head, fill in anything migrations do not cover, stamp the version."""

    if database_url:
        url = normalize_database_url(database_url)
        # a private in-memory database dies with the migration's own connection
        if not _is_private_memory_db(url):
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, _upgrade_to_head, url)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    await _record_schema_version(session_factory, version)
    logger.info("Database ready", extra={"extra_fields": {"schema_version": version}})


__all__ = [
    "create_engine",
    "create_session_factory",
    "init_db",
    "normalize_database_url",
]
