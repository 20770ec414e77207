"""
FastAPI dependencies: storage, services, identity and guards.

Everything here reads the objects ``create_app`` puts on ``app.state``.
FastAPI caches each dependency per request, so the identity is resolved
at most once and shares the request's storage.
"""

from dataclasses import dataclass
from typing import Iterator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from studyprep.core.config import Settings
from studyprep.core.errors import AuthenticationError, AuthorizationError
from studyprep.core.security import TokenService
from studyprep.core.sessions import SessionManager
from studyprep.schemas import UserRecord
from studyprep.services import AuthService, ProgressService, ActivityRecorder
from studyprep.storage import Storage


bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    """The authenticated user for one request."""
    user: UserRecord

    @property
    def user_id(self) -> int:
        return self.user.id

    @property
    def is_admin(self) -> bool:
        return self.user.is_admin


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> Iterator[Storage]:
    with request.app.state.storage_provider.open() as storage:
        yield storage


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_auth_service(
    storage: Storage = Depends(get_storage),
    token_service: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_settings)
) -> AuthService:
    return AuthService(storage, token_service, settings.PASSWORD_RESET_EXPIRE_MINUTES)


def get_activity_recorder(storage: Storage = Depends(get_storage)) -> ActivityRecorder:
    return ActivityRecorder(storage)


def get_progress_service(
    storage: Storage = Depends(get_storage),
    activity: ActivityRecorder = Depends(get_activity_recorder)
) -> ProgressService:
    return ProgressService(storage, activity)


def get_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
    sessions: SessionManager = Depends(get_session_manager)
) -> Optional[Identity]:
    """
    Resolve who is calling: bearer token first, then the session cookie.

    Returns None for anonymous requests; never raises.
    """
    token = credentials.credentials if credentials else None
    user = auth_service.resolve_identity(token, lambda: sessions.user_id(request))
    return Identity(user) if user else None


def require_authenticated(identity: Optional[Identity] = Depends(get_identity)) -> Identity:
    if identity is None:
        raise AuthenticationError("Not authenticated")
    return identity


def require_admin(identity: Optional[Identity] = Depends(get_identity)) -> Identity:
    # Anonymous callers get 403 here, not 401.
    if identity is None or not identity.is_admin:
        raise AuthorizationError("Not authorized")
    return identity
