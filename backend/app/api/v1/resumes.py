from __future__ import annotations

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from fastapi.responses import FileResponse

from ...core.security import Identity, require_admin, resolve_identity
from ...db.models import ResumeStatus
from ...schemas.auth import MessageResponse
from ...schemas.resume import (
    ResumeDetailModel,
    ResumeModel,
    ResumePage,
    ResumeReviewRequest,
    ResumeReviewResponse,
    ResumeReviewSummary,
    ResumeUploadResponse,
    ResumeUploadSummary,
)
from ...services.resumes import PDF_MIME_TYPE, ResumeService
from .deps import get_resume_service

router = APIRouter(prefix="/resumes", tags=["resumes"])


@router.post(
    "/upload",
    response_model=ResumeUploadResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_resume(
    resume: UploadFile | None = File(default=None),
    identity: Identity = Depends(resolve_identity),
    service: ResumeService = Depends(get_resume_service),
) -> ResumeUploadResponse:
    try:
        saved = await service.upload(identity, resume)
    finally:
        if resume is not None:
            await resume.close()
    return ResumeUploadResponse(resume=ResumeUploadSummary.model_validate(saved))


@router.get("/my-resumes", response_model=list[ResumeModel])
async def list_my_resumes(
    identity: Identity = Depends(resolve_identity),
    service: ResumeService = Depends(get_resume_service),
) -> list[ResumeModel]:
    resumes = await service.list_own(identity)
    return [ResumeModel.model_validate(item) for item in resumes]


@router.get("/all", response_model=ResumePage)
async def list_all_resumes(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    status_filter: ResumeStatus | None = Query(default=None, alias="status"),
    search: str | None = Query(default=None, max_length=200),
    _: Identity = Depends(require_admin),
    service: ResumeService = Depends(get_resume_service),
) -> ResumePage:
    result = await service.list_all(page=page, limit=limit, status=status_filter, search=search)
    return ResumePage(
        resumes=[ResumeDetailModel.model_validate(item) for item in result["items"]],
        total_pages=result["total_pages"],
        current_page=result["current_page"],
        total=result["total"],
    )


@router.get("/{resume_id}", response_model=ResumeDetailModel)
async def read_resume(
    resume_id: int,
    identity: Identity = Depends(require_admin),
    service: ResumeService = Depends(get_resume_service),
) -> ResumeDetailModel:
    resume = await service.get(identity, resume_id)
    return ResumeDetailModel.model_validate(resume)


@router.get("/{resume_id}/download")
async def download_resume(
    resume_id: int,
    identity: Identity = Depends(resolve_identity),
    service: ResumeService = Depends(get_resume_service),
) -> FileResponse:
    resume, path = await service.open_file(identity, resume_id)
    return FileResponse(path, media_type=PDF_MIME_TYPE, filename=resume.original_name)


@router.put("/{resume_id}/review", response_model=ResumeReviewResponse)
async def review_resume(
    resume_id: int,
    payload: ResumeReviewRequest,
    identity: Identity = Depends(require_admin),
    service: ResumeService = Depends(get_resume_service),
) -> ResumeReviewResponse:
    resume = await service.review(
        identity,
        resume_id,
        status=payload.status,
        score=payload.score,
        review_notes=payload.review_notes,
        tags=payload.tags,
        update_score="score" in payload.model_fields_set,
    )
    return ResumeReviewResponse(resume=ResumeReviewSummary.model_validate(resume))


@router.delete("/{resume_id}", response_model=MessageResponse)
async def delete_resume(
    resume_id: int,
    _: Identity = Depends(require_admin),
    service: ResumeService = Depends(get_resume_service),
) -> MessageResponse:
    await service.delete(resume_id)
    return MessageResponse(message="Resume deleted successfully")
