from __future__ import annotations

from fastapi import Request

from ...services.magic_link import MagicLinkService
from ...services.resumes import ResumeService
from ...services.storage import StorageService


def get_storage_service(request: Request) -> StorageService:
    return request.app.state.storage_service


def get_magic_link_service(request: Request) -> MagicLinkService:
    return request.app.state.magic_link_service


def get_resume_service(request: Request) -> ResumeService:
    return request.app.state.resume_service
