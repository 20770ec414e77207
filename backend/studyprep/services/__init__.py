"""
Business logic for StudyPrep.

- auth_service: registration, login, password reset, identity resolution
- progress_service: quiz attempts, study sessions and statistics
- aggregation: pure progress/statistics calculations
- activity: recent-activity feed
"""

from .activity import ActivityRecorder
from .auth_service import AuthService, seed_first_admin
from .progress_service import ProgressService

__all__ = [
    "ActivityRecorder",
    "AuthService",
    "seed_first_admin",
    "ProgressService",
]
