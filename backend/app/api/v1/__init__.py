from fastapi import APIRouter

from .admin import router as admin_router
from .auth import router as auth_router
from .resumes import router as resumes_router

router = APIRouter(prefix="/api/v1")
router.include_router(auth_router)
router.include_router(resumes_router)
router.include_router(admin_router)

__all__ = ["router"]
