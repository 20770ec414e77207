"""
Database configuration for StudyPrep.

Sets up the SQLAlchemy engine, session factory and declarative base.
"""

import logging
from typing import Callable

from sqlalchemy import create_engine, MetaData
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool

from .config import Settings


# Configure logging
logger = logging.getLogger(__name__)


# SQLAlchemy metadata conventions for better constraint naming
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s"
}

metadata = MetaData(naming_convention=convention)


# Base class for models
Base = declarative_base(metadata=metadata)


def build_engine(settings: Settings) -> Engine:
    """
    Create an engine for the configured database.

    ``sqlite://`` with no path is a shared in-memory database (tests);
    other SQLite URLs are files; anything else is a pooled server database.
    """
    url = settings.DATABASE_URL
    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=settings.DEBUG,
        )
    if settings.is_sqlite:
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            echo=settings.DEBUG,
        )
    return create_engine(
        url,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=10,
        max_overflow=20,
        echo=settings.DEBUG,
    )


def build_session_factory(engine: Engine) -> Callable[[], Session]:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


class DatabaseManager:
    """
    Schema management for a given engine.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    def create_all_tables(self) -> None:
        """Create all database tables."""
        # Import models to ensure they're registered
        from studyprep import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info("All database tables created successfully")
