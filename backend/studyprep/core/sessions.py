"""
Cookie-backed server-side sessions.

The cookie carries only a random session id signed with
``itsdangerous.TimestampSigner``; the session data lives in a
``SessionStore`` (process memory or the ``sessions`` table).
"""

import logging
import secrets
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from fastapi import Request, Response
from itsdangerous import BadSignature, TimestampSigner
from sqlalchemy.orm import Session

from studyprep.models import HttpSession
from .clock import utcnow


logger = logging.getLogger(__name__)


class SessionStore(ABC):
    """Maps session ids to their data until the entry expires."""

    @abstractmethod
    def get(self, sid: str) -> Optional[Dict[str, Any]]: ...

    @abstractmethod
    def set(self, sid: str, data: Dict[str, Any], expires_at: datetime) -> None: ...

    @abstractmethod
    def delete(self, sid: str) -> None: ...


class MemorySessionStore(SessionStore):
    def __init__(self):
        self._entries: Dict[str, tuple] = {}

    def _prune(self, now: datetime) -> None:
        expired = [sid for sid, (_, expires_at) in self._entries.items() if expires_at <= now]
        for sid in expired:
            self._entries.pop(sid, None)

    def get(self, sid: str) -> Optional[Dict[str, Any]]:
        self._prune(utcnow())
        entry = self._entries.get(sid)
        return dict(entry[0]) if entry else None

    def set(self, sid: str, data: Dict[str, Any], expires_at: datetime) -> None:
        self._entries[sid] = (dict(data), expires_at)

    def delete(self, sid: str) -> None:
        self._entries.pop(sid, None)

    def __len__(self) -> int:
        return len(self._entries)


class DatabaseSessionStore(SessionStore):
    """
    Sessions persisted in the ``sessions`` table so they survive restarts.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def get(self, sid: str) -> Optional[Dict[str, Any]]:
        db = self.session_factory()
        try:
            row = db.get(HttpSession, sid)
            if row is None:
                return None
            if row.expires_at <= utcnow():
                db.delete(row)
                db.commit()
                return None
            return dict(row.data or {})
        finally:
            db.close()

    def set(self, sid: str, data: Dict[str, Any], expires_at: datetime) -> None:
        db = self.session_factory()
        try:
            # Sweep expired rows
            db.query(HttpSession).filter(HttpSession.expires_at <= utcnow()).delete()
            db.merge(HttpSession(sid=sid, data=dict(data), expires_at=expires_at))
            db.commit()
        finally:
            db.close()

    def delete(self, sid: str) -> None:
        db = self.session_factory()
        try:
            db.query(HttpSession).filter(HttpSession.sid == sid).delete()
            db.commit()
        finally:
            db.close()


class SessionManager:
    """
    Issues, reads and clears the session cookie.

    A missing, tampered or expired cookie reads as "no session".
    """

    def __init__(
        self,
        store: SessionStore,
        secret: str,
        cookie_name: str = "studyprep.sid",
        max_age: int = 60 * 60 * 24,
        secure: bool = False
    ):
        self.store = store
        self.signer = TimestampSigner(secret)
        self.cookie_name = cookie_name
        self.max_age = max_age
        self.secure = secure

    def _session_id(self, request: Request) -> Optional[str]:
        cookie = request.cookies.get(self.cookie_name)
        if not cookie:
            return None
        try:
            return self.signer.unsign(cookie, max_age=self.max_age).decode("utf-8")
        except BadSignature as exc:
            logger.warning(f"Session cookie rejected: {exc}")
            return None

    def load(self, request: Request) -> Optional[Dict[str, Any]]:
        """Return the session data for this request, if any."""
        sid = self._session_id(request)
        if sid is None:
            return None
        return self.store.get(sid)

    def user_id(self, request: Request) -> Optional[int]:
        data = self.load(request)
        if not data:
            return None
        user_id = data.get("user_id")
        return user_id if isinstance(user_id, int) else None

    def establish(self, response: Response, user_id: int, request: Optional[Request] = None) -> str:
        """
        Start a new session for ``user_id`` and set its cookie on ``response``.

        Any session already attached to ``request`` is dropped first.
        """
        if request is not None:
            previous = self._session_id(request)
            if previous is not None:
                self.store.delete(previous)

        sid = secrets.token_urlsafe(32)
        self.store.set(sid, {"user_id": user_id}, utcnow() + timedelta(seconds=self.max_age))
        response.set_cookie(
            key=self.cookie_name,
            value=self.signer.sign(sid).decode("utf-8"),
            max_age=self.max_age,
            httponly=True,
            samesite="lax",
            secure=self.secure,
            path="/",
        )
        return sid

    def destroy(self, request: Request, response: Response) -> None:
        sid = self._session_id(request)
        if sid is not None:
            self.store.delete(sid)
        response.delete_cookie(
            key=self.cookie_name,
            path="/",
            httponly=True,
            samesite="lax",
            secure=self.secure,
        )
