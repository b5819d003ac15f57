from __future__ import annotations

import logging
from pathlib import Path, PurePath
from typing import Any

from ..core.errors import DeliveryFailure, NotFound, ValidationError
from ..core.policy import require_owner
from ..core.security import Identity
from ..db.models import Resume, ResumeStatus
from ..metrics import EMAILS_SENT, RESUME_EVENTS
from .email_templates import status_update_email
from .files import FileStore, UploadTooLarge
from .notifier import Notifier
from .storage import StorageService

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"


class ResumeService:
    """Upload, review and serve resumes, notifying owners of status changes."""

    def __init__(
        self,
        storage: StorageService,
        files: FileStore,
        notifier: Notifier,
        *,
        dashboard_url: str,
    ) -> None:
        self._storage = storage
        self._files = files
        self._notifier = notifier
        self._dashboard_url = dashboard_url

    async def upload(self, identity: Identity, upload) -> Resume:
        if upload is None or not getattr(upload, "filename", None):
            raise ValidationError("No file uploaded")
        original_name = PurePath(upload.filename.replace("\\", "/")).name
        content_type = (upload.content_type or "").split(";", 1)[0].strip().lower()
        if content_type != PDF_MIME_TYPE or not original_name.lower().endswith(".pdf"):
            raise ValidationError("Only PDF files are allowed")

        try:
            file_name, size = await self._files.save(upload)
        except UploadTooLarge as exc:
            limit_mb = self._files.max_bytes / (1024 * 1024)
            raise ValidationError(f"File exceeds the {limit_mb:g}MB limit") from exc
        if size == 0:
            await self._files.delete(file_name)
            raise ValidationError("Uploaded file is empty")

        try:
            resume = await self._storage.add_resume(
                user_id=identity.user_id,
                original_name=original_name,
                file_name=file_name,
                file_size=size,
                mime_type=content_type,
            )
        except Exception:
            await self._files.delete(file_name)
            raise
        RESUME_EVENTS.labels(event="uploaded").inc()
        logger.info(
            "Resume uploaded",
            extra={"user": identity.user_id, "extra_fields": {"resume_id": resume.id}},
        )
        return resume

    async def list_own(self, identity: Identity) -> list[Resume]:
        return list(await self._storage.list_user_resumes(identity.user_id))

    async def list_all(
        self,
        *,
        page: int,
        limit: int,
        status: ResumeStatus | None,
        search: str | None,
    ) -> dict[str, Any]:
        return await self._storage.list_resumes(
            page=page,
            limit=limit,
            status=status,
            search=(search or "").strip() or None,
        )

    async def get(self, identity: Identity, resume_id: int) -> Resume:
        resume = await self._storage.get_resume(resume_id)
        if resume is None:
            raise NotFound("Resume not found")
        require_owner(identity, resume.user_id)
        return resume

    async def open_file(self, identity: Identity, resume_id: int) -> tuple[Resume, Path]:
        resume = await self.get(identity, resume_id)
        if not await self._files.exists(resume.file_name):
            raise NotFound("File not found")
        RESUME_EVENTS.labels(event="downloaded").inc()
        return resume, self._files.path_for(resume.file_name)

    async def review(
        self,
        identity: Identity,
        resume_id: int,
        *,
        status: ResumeStatus,
        score: int | None = None,
        review_notes: str | None = None,
        tags: list[str] | None = None,
        update_score: bool = False,
    ) -> Resume:
        result = await self._storage.review_resume(
            resume_id,
            reviewer_id=identity.user_id,
            status=status,
            score=score,
            review_notes=review_notes,
            tags=tags,
            update_score=update_score,
        )
        if result is None:
            raise NotFound("Resume not found")
        resume, previous = result
        RESUME_EVENTS.labels(event="reviewed").inc()

        if previous != status:
            await self._notify_status_change(resume, review_notes)
        return resume

    async def delete(self, resume_id: int) -> None:
        resume = await self._storage.delete_resume(resume_id)
        if resume is None:
            raise NotFound("Resume not found")
        await self._files.delete(resume.file_name)
        RESUME_EVENTS.labels(event="deleted").inc()

    async def _notify_status_change(self, resume: Resume, notes: str | None) -> None:
        owner = resume.owner
        subject, html = status_update_email(owner.name, resume.status, self._dashboard_url, notes)
        try:
            await self._notifier.send(owner.email, subject, html)
        except DeliveryFailure:
            # the review itself is already committed
            EMAILS_SENT.labels(kind="status_update", result="failed").inc()
            logger.warning(
                "Status notification not delivered",
                extra={"user": owner.id, "extra_fields": {"resume_id": resume.id}},
                exc_info=True,
            )
            return
        EMAILS_SENT.labels(kind="status_update", result="sent").inc()


__all__ = ["PDF_MIME_TYPE", "ResumeService"]
