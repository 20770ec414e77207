"""
Progress router for StudyPrep.

Quiz attempts, topic progress, study sessions, the activity feed and the
student statistics. Every endpoint is scoped to the calling user.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from studyprep.core.config import Settings
from studyprep.dependencies import (
    Identity,
    get_activity_recorder,
    get_progress_service,
    get_settings,
    require_authenticated,
)
from studyprep.schemas import (
    ActivityLogRecord,
    QuizAttemptCreate,
    QuizAttemptRecord,
    StudySessionCreate,
    StudySessionRecord,
    UserProgressRecord,
    UserStats,
)
from studyprep.services import ActivityRecorder, ProgressService


router = APIRouter()


@router.get("/stats", response_model=UserStats)
def get_stats(
    identity: Identity = Depends(require_authenticated),
    progress_service: ProgressService = Depends(get_progress_service)
) -> UserStats:
    """
    Dashboard statistics for the current user, recomputed on every call.
    """
    return progress_service.get_user_stats(identity.user_id)


@router.post("/quiz-attempts", response_model=QuizAttemptRecord, status_code=status.HTTP_201_CREATED)
def submit_quiz_attempt(
    attempt_data: QuizAttemptCreate,
    identity: Identity = Depends(require_authenticated),
    progress_service: ProgressService = Depends(get_progress_service)
) -> QuizAttemptRecord:
    return progress_service.submit_quiz_attempt(identity.user_id, attempt_data)


@router.get("/quiz-attempts", response_model=List[QuizAttemptRecord])
def list_quiz_attempts(
    identity: Identity = Depends(require_authenticated),
    progress_service: ProgressService = Depends(get_progress_service)
) -> List[QuizAttemptRecord]:
    return progress_service.list_quiz_attempts(identity.user_id)


@router.get("/progress", response_model=List[UserProgressRecord])
def list_progress(
    identity: Identity = Depends(require_authenticated),
    progress_service: ProgressService = Depends(get_progress_service)
) -> List[UserProgressRecord]:
    return progress_service.list_progress(identity.user_id)


@router.get("/chapters/{chapter_id}/progress", response_model=List[UserProgressRecord])
def list_chapter_progress(
    chapter_id: int,
    identity: Identity = Depends(require_authenticated),
    progress_service: ProgressService = Depends(get_progress_service)
) -> List[UserProgressRecord]:
    return progress_service.list_progress(identity.user_id, chapter_id=chapter_id)


@router.post("/study-sessions", response_model=StudySessionRecord, status_code=status.HTTP_201_CREATED)
def log_study_session(
    session_data: StudySessionCreate,
    identity: Identity = Depends(require_authenticated),
    progress_service: ProgressService = Depends(get_progress_service)
) -> StudySessionRecord:
    return progress_service.log_study_session(identity.user_id, session_data)


@router.get("/study-sessions", response_model=List[StudySessionRecord])
def list_study_sessions(
    identity: Identity = Depends(require_authenticated),
    progress_service: ProgressService = Depends(get_progress_service)
) -> List[StudySessionRecord]:
    return progress_service.list_study_sessions(identity.user_id)


@router.get("/activities", response_model=List[ActivityLogRecord])
def list_activities(
    limit: Optional[int] = Query(None, ge=1, le=100),
    identity: Identity = Depends(require_authenticated),
    activity: ActivityRecorder = Depends(get_activity_recorder),
    settings: Settings = Depends(get_settings)
) -> List[ActivityLogRecord]:
    """
    Most recent activity entries for the current user, newest first.
    """
    return activity.recent(identity.user_id, limit or settings.ACTIVITY_DEFAULT_LIMIT)
