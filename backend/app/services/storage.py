from __future__ import annotations

import math
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import func, or_, select, text, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..db.models import Resume, ResumeStatus, SettingEntry, User, UserRole, utcnow


class StorageService:
    """Persist users, magic-link state and resumes."""

    def __init__(self, session_factory: async_sessionmaker) -> None:
        self._session_factory = session_factory

    async def healthcheck(self) -> None:
        async with self._session_factory() as session:
            await session.execute(text("SELECT 1"))

    # -- settings helpers ------------------------------------------------
    async def get_setting(self, key: str) -> str | None:
        async with self._session_factory() as session:
            entry = await session.scalar(select(SettingEntry).where(SettingEntry.key == key))
            return entry.value if entry else None

    # -- user management -------------------------------------------------
    async def get_user_by_id(self, user_id: int) -> User | None:
        async with self._session_factory() as session:
            return await session.get(User, user_id)

    async def get_user_by_email(self, email: str) -> User | None:
        async with self._session_factory() as session:
            return await session.scalar(select(User).where(User.email == email.lower()))

    async def list_users(self) -> Sequence[User]:
        async with self._session_factory() as session:
            result = await session.execute(select(User).order_by(User.created_at.desc()))
            return list(result.scalars().all())

    async def store_magic_link(
        self,
        *,
        email: str,
        name: str,
        token: str,
        expires_at: datetime,
    ) -> User:
        """Find-or-create the user by email and replace any outstanding token."""

        email = email.lower()
        async with self._session_factory() as session:
            user = await session.scalar(select(User).where(User.email == email))
            if user is None:
                created = User(
                    email=email,
                    name=name,
                    role=UserRole.STANDARD,
                    is_verified=False,
                    magic_link_token=token,
                    magic_link_expires=expires_at,
                )
                session.add(created)
                try:
                    await session.commit()
                except IntegrityError:
                    # a concurrent request inserted the same email first
                    await session.rollback()
                    user = await session.scalar(select(User).where(User.email == email))
                    if user is None:
                        raise
                else:
                    await session.refresh(created)
                    return created

            user.name = name
            user.magic_link_token = token
            user.magic_link_expires = expires_at
            await session.commit()
            await session.refresh(user)
            return user

    async def consume_magic_link(self, token: str, *, now: datetime) -> User | None:
        """Clear a live token and mark its owner verified.

        Returns ``None`` when the token is unknown, expired or was consumed by a
        concurrent caller first.
        """

        async with self._session_factory() as session:
            user_id = await session.scalar(
                select(User.id)
                .where(User.magic_link_token == token)
                .where(User.magic_link_expires > now)
            )
            if user_id is None:
                return None
            result = await session.execute(
                update(User)
                .where(User.id == user_id)
                .where(User.magic_link_token == token)
                .where(User.magic_link_expires > now)
                .values(
                    magic_link_token=None,
                    magic_link_expires=None,
                    is_verified=True,
                    last_login_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                await session.rollback()
                return None
            await session.commit()
            return await session.get(User, user_id, populate_existing=True)

    async def promote_to_admin(self, *, email: str, name: str) -> tuple[User, bool]:
        """Grant the admin role, creating a verified admin for unseen emails."""

        email = email.lower()
        async with self._session_factory() as session:
            user = await session.scalar(select(User).where(User.email == email))
            created = user is None
            if user is None:
                user = User(email=email, name=name, role=UserRole.ADMINISTRATOR, is_verified=True)
                session.add(user)
            else:
                user.name = name
                user.role = UserRole.ADMINISTRATOR
            await session.commit()
            await session.refresh(user)
            return user, created

    # -- resumes ---------------------------------------------------------
    async def add_resume(
        self,
        *,
        user_id: int,
        original_name: str,
        file_name: str,
        file_size: int,
        mime_type: str,
    ) -> Resume:
        async with self._session_factory() as session:
            resume = Resume(
                user_id=user_id,
                original_name=original_name,
                file_name=file_name,
                file_size=file_size,
                mime_type=mime_type,
                status=ResumeStatus.PENDING,
                review_notes="",
                tags=[],
            )
            session.add(resume)
            await session.commit()
            return await self._load_resume(session, resume.id)

    async def get_resume(self, resume_id: int) -> Resume | None:
        async with self._session_factory() as session:
            return await session.get(Resume, resume_id)

    async def list_user_resumes(self, user_id: int) -> Sequence[Resume]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Resume)
                .where(Resume.user_id == user_id)
                .order_by(Resume.uploaded_at.desc(), Resume.id.desc())
            )
            return list(result.scalars().all())

    async def list_resumes(
        self,
        *,
        page: int = 1,
        limit: int = 10,
        status: ResumeStatus | None = None,
        search: str | None = None,
    ) -> dict[str, Any]:
        filters = []
        if status is not None:
            filters.append(Resume.status == status)
        if search:
            needle = search.lower()
            owner_ids = select(User.id).where(
                or_(
                    func.lower(User.name).contains(needle, autoescape=True),
                    func.lower(User.email).contains(needle, autoescape=True),
                )
            )
            filters.append(Resume.user_id.in_(owner_ids))

        async with self._session_factory() as session:
            total = await session.scalar(
                select(func.count()).select_from(Resume).where(*filters)
            )
            result = await session.execute(
                select(Resume)
                .where(*filters)
                .order_by(Resume.uploaded_at.desc(), Resume.id.desc())
                .limit(limit)
                .offset((page - 1) * limit)
            )
            items = list(result.scalars().all())

        total = int(total or 0)
        return {
            "items": items,
            "total": total,
            "total_pages": math.ceil(total / limit) if limit else 0,
            "current_page": page,
        }

    async def review_resume(
        self,
        resume_id: int,
        *,
        reviewer_id: int,
        status: ResumeStatus,
        score: int | None = None,
        review_notes: str | None = None,
        tags: list[str] | None = None,
        update_score: bool = False,
    ) -> tuple[Resume, ResumeStatus] | None:
        """Apply a review and return the updated resume with its previous status."""

        async with self._session_factory() as session:
            resume = await session.get(Resume, resume_id)
            if resume is None:
                return None
            previous = resume.status
            resume.status = status
            resume.reviewer_id = reviewer_id
            resume.reviewed_at = utcnow()
            if update_score:
                resume.score = score
            if review_notes is not None:
                resume.review_notes = review_notes
            if tags is not None:
                resume.tags = list(tags)
            await session.commit()
            return await self._load_resume(session, resume_id), previous

    async def delete_resume(self, resume_id: int) -> Resume | None:
        async with self._session_factory() as session:
            resume = await session.get(Resume, resume_id)
            if resume is None:
                return None
            await session.delete(resume)
            await session.commit()
            return resume

    @staticmethod
    async def _load_resume(session, resume_id: int) -> Resume:
        resume = await session.get(Resume, resume_id, populate_existing=True)
        if resume is None:  # pragma: no cover - deleted between commit and reload
            raise LookupError(resume_id)
        return resume


__all__ = ["StorageService"]
