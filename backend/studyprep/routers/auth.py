"""
Authentication router for StudyPrep.

Handles registration, login, logout, the current-user endpoint and
password reset. Login and registration answer with a bearer token and
also start a cookie session, so either credential works afterwards.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status

from studyprep.core.sessions import SessionManager
from studyprep.dependencies import (
    Identity,
    get_auth_service,
    get_identity,
    get_session_manager,
    require_authenticated,
)
from studyprep.schemas import (
    AuthResponse,
    MessageResponse,
    PasswordReset,
    PasswordResetRequest,
    UserLogin,
    UserRegister,
    UserResponse,
)
from studyprep.services import AuthService


logger = logging.getLogger(__name__)

router = APIRouter()

RESET_REQUESTED_MESSAGE = "If an account with that email exists, a password reset link has been sent"


# Endpoints are plain ``def`` so scrypt runs in the threadpool.

@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    user_data: UserRegister,
    request: Request,
    response: Response,
    identity: Optional[Identity] = Depends(get_identity),
    auth_service: AuthService = Depends(get_auth_service),
    sessions: SessionManager = Depends(get_session_manager)
) -> AuthResponse:
    """
    Register a new user.

    Admins may create other admins by sending ``role: "admin"``.
    """
    actor = identity.user if identity else None
    user, token = auth_service.register(user_data, actor=actor)
    sessions.establish(response, user.id, request)
    return AuthResponse(user=UserResponse.model_validate(user), token=token)


@router.post("/login", response_model=AuthResponse)
def login(
    credentials: UserLogin,
    request: Request,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
    sessions: SessionManager = Depends(get_session_manager)
) -> AuthResponse:
    user, token = auth_service.login(credentials.username, credentials.password)
    sessions.establish(response, user.id, request)
    return AuthResponse(user=UserResponse.model_validate(user), token=token)


@router.post("/logout", response_model=MessageResponse)
def logout(
    request: Request,
    response: Response,
    sessions: SessionManager = Depends(get_session_manager)
) -> MessageResponse:
    """
    End the cookie session. Bearer tokens stay valid until they expire.
    """
    user_id = sessions.user_id(request)
    sessions.destroy(request, response)
    if user_id is not None:
        logger.info(f"User {user_id} logged out")
    return MessageResponse(message="Logged out successfully")


@router.get("/user", response_model=UserResponse)
def current_user(identity: Identity = Depends(require_authenticated)) -> UserResponse:
    return UserResponse.model_validate(identity.user)


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    request_data: PasswordResetRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    # Same answer whether or not the email is registered
    auth_service.request_password_reset(request_data.email)
    return MessageResponse(message=RESET_REQUESTED_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    reset_data: PasswordReset,
    auth_service: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    auth_service.confirm_password_reset(reset_data.token, reset_data.new_password)
    return MessageResponse(message="Password has been reset successfully")
