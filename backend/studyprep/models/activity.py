"""
Activity log model for StudyPrep.

Append-only audit trail of user actions shown in the "recent activity" feed.
"""

from datetime import datetime
from typing import Optional, Dict, Any
from sqlalchemy import Integer, String, DateTime, Text, ForeignKey, Index, JSON
from sqlalchemy.orm import Mapped, mapped_column

from studyprep.core.database import Base


class ActivityLog(Base):
    """
    One recorded user action.
    """
    __tablename__ = "activity_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    activity: Mapped[str] = mapped_column(Text, nullable=False)
    entity_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)  # chapter, topic, quiz
    entity_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    # "metadata" is reserved on declarative classes
    details: Mapped[Optional[Dict[str, Any]]] = mapped_column("metadata", JSON, nullable=True)

    __table_args__ = (
        Index("idx_activity_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<ActivityLog(id={self.id}, user_id={self.user_id}, activity='{self.activity}')>"
