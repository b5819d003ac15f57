from __future__ import annotations

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from backend.app.db import Resume, ResumeStatus, SettingEntry, User, UserRole


@pytest.mark.anyio
async def test_user_and_resume_defaults(temp_session_factory):
    session_factory = temp_session_factory

    async with session_factory() as session:
        user = User(email="ada@example.com", name="Ada")
        session.add(user)
        await session.flush()
        resume = Resume(
            user_id=user.id,
            original_name="cv.pdf",
            file_name="stored.pdf",
            file_size=10,
            mime_type="application/pdf",
        )
        session.add(resume)
        await session.commit()

        await session.refresh(user)
        await session.refresh(resume)

        assert user.role == UserRole.STANDARD
        assert user.is_verified is False
        assert user.created_at is not None
        assert resume.status == ResumeStatus.PENDING
        assert resume.uploaded_at is not None


@pytest.mark.anyio
async def test_user_email_is_unique(temp_session_factory):
    session_factory = temp_session_factory

    async with session_factory() as session:
        session.add(User(email="ada@example.com", name="Ada"))
        await session.commit()

    async with session_factory() as session:
        session.add(User(email="ada@example.com", name="Other"))
        with pytest.raises(IntegrityError):
            await session.commit()


@pytest.mark.anyio
async def test_deleting_user_cascades_resumes(temp_session_factory):
    session_factory = temp_session_factory

    async with session_factory() as session:
        user = User(email="ada@example.com", name="Ada")
        session.add(user)
        await session.flush()
        session.add(
            Resume(
                user_id=user.id,
                original_name="cv.pdf",
                file_name="cascade.pdf",
                file_size=10,
                mime_type="application/pdf",
            )
        )
        await session.commit()
        user_id = user.id

    async with session_factory() as session:
        user = await session.get(User, user_id)
        await session.delete(user)
        await session.commit()

    async with session_factory() as session:
        remaining = (await session.execute(select(Resume))).scalars().all()
        assert remaining == []


@pytest.mark.anyio
async def test_setting_entry_unique_key(temp_session_factory):
    session_factory = temp_session_factory

    async with session_factory() as session:
        session.add(SettingEntry(key="theme", value="light"))
        await session.commit()

    async with session_factory() as session:
        query = select(SettingEntry).where(SettingEntry.key == "theme")
        setting = (await session.execute(query)).scalar_one()
        setting.value = "dark"
        await session.commit()

    async with session_factory() as session:
        query = select(SettingEntry).where(SettingEntry.key == "theme")
        setting = (await session.execute(query)).scalar_one()
        assert setting.value == "dark"
