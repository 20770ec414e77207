"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("SESSION_BACKEND", "memory")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("SESSION_SECRET", "test-session-secret")

from studyprep.core.config import Settings
from studyprep.core.database import Base
from studyprep.core.security import TokenService
from studyprep.main import create_app
from studyprep.storage import DatabaseStorage, MemoryStorage
from tests.utils import ADMIN_PASSWORD

import studyprep.models  # noqa: F401


def build_settings(**overrides) -> Settings:
    values = {
        "STORAGE_BACKEND": "memory",
        "SESSION_BACKEND": "memory",
        "DATABASE_URL": "sqlite://",
        "JWT_SECRET": "test-jwt-secret",
        "SESSION_SECRET": "test-session-secret",
        "FIRST_ADMIN_USERNAME": "admin",
        "FIRST_ADMIN_EMAIL": "admin@example.com",
        "FIRST_ADMIN_PASSWORD": ADMIN_PASSWORD,
        "LOG_LEVEL": "WARNING",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture()
def settings() -> Settings:
    return build_settings()


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session(session_factory) -> Session:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(params=["memory", "database"])
def storage(request):
    """Each storage test runs once per backend."""
    if request.param == "memory":
        yield MemoryStorage()
    else:
        yield DatabaseStorage(request.getfixturevalue("db_session"))


@pytest.fixture()
def token_service() -> TokenService:
    return TokenService("test-jwt-secret", expires_minutes=60)


@pytest.fixture(params=["memory", "database"])
def client(request) -> TestClient:
    """API client against a fresh app; both storage and sessions use the given backend."""
    app = create_app(build_settings(
        STORAGE_BACKEND=request.param,
        SESSION_BACKEND=request.param,
    ))
    with TestClient(app) as test_client:
        yield test_client
