"""
Recent-activity feed.
"""

import logging
from typing import Any, Dict, List, Optional

from studyprep.core.clock import utcnow
from studyprep.schemas import ActivityLogRecord
from studyprep.storage import Storage


logger = logging.getLogger(__name__)

DEFAULT_ACTIVITY_LIMIT = 10


class ActivityRecorder:
    def __init__(self, storage: Storage):
        self.storage = storage

    def record(
        self,
        user_id: int,
        activity: str,
        entity_type: Optional[str] = None,
        entity_id: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ActivityLogRecord:
        """Append an entry stamped with the server's current time."""
        entry = self.storage.create_activity_log(
            user_id=user_id,
            activity=activity,
            entity_type=entity_type,
            entity_id=entity_id,
            metadata=metadata,
            created_at=utcnow(),
        )
        logger.debug(f"Activity recorded for user {user_id}: {activity}")
        return entry

    def recent(self, user_id: int, limit: int = DEFAULT_ACTIVITY_LIMIT) -> List[ActivityLogRecord]:
        return self.storage.list_recent_activities(user_id, limit)
