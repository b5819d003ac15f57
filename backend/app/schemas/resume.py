from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..db.models import ResumeStatus


class PersonRef(BaseModel):
    id: int
    name: str
    email: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ResumeModel(BaseModel):
    id: int
    user_id: int
    original_name: str
    file_size: int
    mime_type: str
    status: ResumeStatus
    score: int | None
    review_notes: str | None = ""
    tags: list[str] | None = None
    reviewed_at: datetime | None
    uploaded_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ResumeDetailModel(ResumeModel):
    owner: PersonRef
    reviewer: PersonRef | None = None


class ResumeUploadSummary(BaseModel):
    id: int
    original_name: str
    status: ResumeStatus
    uploaded_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ResumeUploadResponse(BaseModel):
    message: str = "Resume uploaded successfully"
    resume: ResumeUploadSummary


class ResumePage(BaseModel):
    resumes: list[ResumeDetailModel]
    total_pages: int
    current_page: int
    total: int


class ResumeReviewRequest(BaseModel):
    status: ResumeStatus
    score: int | None = Field(default=None, ge=0, le=100)
    review_notes: str | None = Field(default=None, max_length=5000)
    tags: list[str] | None = None

    @field_validator("tags")
    @classmethod
    def _normalize_tags(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return [tag.strip() for tag in value if tag and tag.strip()]


class ResumeReviewSummary(BaseModel):
    id: int
    status: ResumeStatus
    score: int | None
    review_notes: str | None
    tags: list[str] | None
    reviewed_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


class ResumeReviewResponse(BaseModel):
    message: str = "Resume review updated successfully"
    resume: ResumeReviewSummary
