"""
Storage backends for StudyPrep.

``StorageProvider`` hands out a ``Storage`` per request: the shared
in-memory instance, or a ``DatabaseStorage`` bound to a fresh session.
"""

from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from sqlalchemy.orm import Session

from .base import Storage
from .memory import MemoryStorage
from .database import DatabaseStorage


class StorageProvider:
    def __init__(
        self,
        backend: str = "memory",
        session_factory: Optional[Callable[[], Session]] = None
    ):
        if backend == "database" and session_factory is None:
            raise ValueError("Database storage needs a session factory")
        self.backend = backend
        self.session_factory = session_factory
        self._memory = MemoryStorage() if backend == "memory" else None

    @contextmanager
    def open(self) -> Iterator[Storage]:
        if self._memory is not None:
            yield self._memory
            return

        db = self.session_factory()
        try:
            yield DatabaseStorage(db)
        finally:
            db.close()


__all__ = [
    "Storage",
    "MemoryStorage",
    "DatabaseStorage",
    "StorageProvider",
]
