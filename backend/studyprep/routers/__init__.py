"""
API routers for StudyPrep.

This module contains all API endpoint routers:
- auth: Registration, login, logout, password reset
- curriculum: Chapters, topics and questions
- progress: Quiz attempts, study sessions, activity feed, statistics
- admin: Admin statistics and user list
"""

from fastapi import APIRouter

# Import individual routers
from .auth import router as auth_router
from .curriculum import router as curriculum_router
from .progress import router as progress_router
from .admin import router as admin_router

# Create main API router
api_router = APIRouter()

# Paths are flat under the API prefix (/api/login, /api/chapters, ...)
api_router.include_router(auth_router, tags=["authentication"])
api_router.include_router(curriculum_router, tags=["curriculum"])
api_router.include_router(progress_router, tags=["progress"])
api_router.include_router(
    admin_router,
    prefix="/admin",
    tags=["admin"]
)

# Export all routers
__all__ = [
    "api_router",
    "auth_router",
    "curriculum_router",
    "progress_router",
    "admin_router"
]
