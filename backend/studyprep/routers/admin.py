"""
Admin router for StudyPrep: dashboard statistics and the user list.
"""

from typing import List

from fastapi import APIRouter, Depends

from studyprep.dependencies import Identity, get_progress_service, get_storage, require_admin
from studyprep.schemas import AdminStats, UserResponse
from studyprep.services import ProgressService
from studyprep.storage import Storage


router = APIRouter()


@router.get("/stats", response_model=AdminStats)
def get_admin_stats(
    identity: Identity = Depends(require_admin),
    progress_service: ProgressService = Depends(get_progress_service)
) -> AdminStats:
    return progress_service.get_admin_stats()


@router.get("/users", response_model=List[UserResponse])
def list_users(
    identity: Identity = Depends(require_admin),
    storage: Storage = Depends(get_storage)
) -> List[UserResponse]:
    """
    All users, without password hashes or reset tokens.
    """
    return [UserResponse.model_validate(user) for user in storage.list_users()]
