"""
Server-side HTTP session rows, used by the database session store.
"""

from datetime import datetime
from typing import Dict, Any
from sqlalchemy import String, DateTime, Index, JSON
from sqlalchemy.orm import Mapped, mapped_column

from studyprep.core.database import Base


class HttpSession(Base):
    __tablename__ = "sessions"

    sid: Mapped[str] = mapped_column(String(128), primary_key=True)
    data: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        Index("idx_session_expires", "expires_at"),
    )

    def __repr__(self) -> str:
        return f"<HttpSession(sid='{self.sid[:8]}...', expires_at={self.expires_at})>"
