from __future__ import annotations

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class ResumeReviewError(Exception):
    """Base error rendered as ``{"detail": message}`` with its own status code."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "internal error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ResumeReviewError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "invalid request"


class InvalidOrExpiredToken(ResumeReviewError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid or expired token"


class Unauthenticated(ResumeReviewError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "authentication required"


class Forbidden(ResumeReviewError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class NotFound(ResumeReviewError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "not found"


class DeliveryFailure(ResumeReviewError):
    """Outbound email could not be handed to the provider."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Error sending email"


async def handle_resume_review_error(_: Request, exc: ResumeReviewError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
        headers=headers,
    )


async def handle_request_validation_error(
    _: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


__all__ = [
    "DeliveryFailure",
    "Forbidden",
    "InvalidOrExpiredToken",
    "NotFound",
    "ResumeReviewError",
    "Unauthenticated",
    "ValidationError",
    "handle_request_validation_error",
    "handle_resume_review_error",
]
