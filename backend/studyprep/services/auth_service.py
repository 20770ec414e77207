"""
Authentication service for StudyPrep.

Registration, login, password reset and identity resolution. Session
cookies are handled by the routers; this module only deals with users
and bearer tokens.
"""

import logging
from datetime import timedelta
from typing import Callable, Optional, Tuple

from studyprep.core.clock import utcnow
from studyprep.core.config import Settings
from studyprep.core.errors import (
    ValidationError,
    AuthenticationError,
    AuthorizationError,
    InvalidTokenError,
)
from studyprep.core.security import (
    TokenService,
    hash_password,
    verify_password,
    generate_reset_token,
)
from studyprep.models.user import UserRole
from studyprep.schemas import UserRecord, UserCreate, UserRegister
from studyprep.storage import Storage


logger = logging.getLogger(__name__)


class AuthService:
    """
    User-facing authentication operations over a ``Storage``.
    """

    def __init__(
        self,
        storage: Storage,
        token_service: TokenService,
        reset_expire_minutes: int = 60
    ):
        self.storage = storage
        self.tokens = token_service
        self.reset_expire_minutes = reset_expire_minutes

    def register(
        self,
        data: UserRegister,
        actor: Optional[UserRecord] = None
    ) -> Tuple[UserRecord, str]:
        """
        Create a user and issue a bearer token for them.

        Only an authenticated admin (``actor``) may create another admin.

        Raises:
            ValidationError: a field is blank, or the username/email is taken
            AuthorizationError: admin role requested by a non-admin
        """
        username = (data.username or "").strip()
        email = (data.email or "").strip()
        name = (data.name or "").strip()
        if not username or not email or not data.password or not name:
            raise ValidationError("Username, email, password, and name are required")

        if self.storage.get_user_by_username(username):
            raise ValidationError("Username already exists")

        if self.storage.get_user_by_email(email):
            raise ValidationError("Email already exists")

        if data.role == UserRole.ADMIN and not (actor and actor.is_admin):
            logger.warning(f"Refused admin registration for '{username}'")
            raise AuthorizationError("Unauthorized to create admin users")

        user = self.storage.create_user(UserCreate(
            username=username,
            email=email,
            password=hash_password(data.password),
            name=name,
            role=data.role,
        ))
        logger.info(f"Registered user {user.id} ('{user.username}', role={user.role.value})")
        return user, self.tokens.issue(user)

    def login(self, username: str, password: str) -> Tuple[UserRecord, str]:
        """
        Check credentials and issue a bearer token.

        Unknown usernames and wrong passwords fail identically.

        Raises:
            AuthenticationError: the credentials do not match a user
        """
        user = self.storage.get_user_by_username(username) if username else None
        if user is None or not verify_password(password, user.password):
            logger.warning(f"Failed login for '{username}'")
            raise AuthenticationError("Invalid username or password")

        self.storage.update_user_last_login(user.id, utcnow())
        user = self.storage.get_user(user.id) or user
        logger.info(f"User {user.id} logged in")
        return user, self.tokens.issue(user)

    def request_password_reset(self, email: Optional[str]) -> None:
        """
        Issue a reset token if ``email`` belongs to a user.

        Callers must answer the same way whether or not the user exists.
        """
        if not email:
            raise ValidationError("Email is required")

        user = self.storage.get_user_by_email(email)
        if user is None:
            logger.info("Password reset requested for an unknown email")
            return

        token = generate_reset_token()
        expires_at = utcnow() + timedelta(minutes=self.reset_expire_minutes)
        self.storage.set_password_reset_token(user.id, token, expires_at)
        # No mail transport: the token is delivered through the log.
        logger.info(f"Password reset token for user {user.id}: {token} (expires {expires_at.isoformat()})")

    def confirm_password_reset(self, token: Optional[str], new_password: Optional[str]) -> None:
        """
        Replace the password of the user holding an unexpired ``token``.

        Raises:
            ValidationError: token or password missing
            InvalidTokenError: token unknown, already used or expired
        """
        if not token or not new_password:
            raise ValidationError("Token and new password are required")

        if not self.storage.reset_password_with_token(token, hash_password(new_password), utcnow()):
            logger.warning("Password reset attempted with an invalid or expired token")
            raise InvalidTokenError("Invalid or expired reset token")
        logger.info("Password reset completed")

    def resolve_identity(
        self,
        bearer_token: Optional[str],
        session_user_id: Callable[[], Optional[int]]
    ) -> Optional[UserRecord]:
        """
        Find the requesting user: a valid bearer token wins, then the session.

        ``session_user_id`` is only called when the token does not resolve.
        Never raises; an unusable credential just falls through.
        """
        if bearer_token:
            claims = self.tokens.verify(bearer_token)
            if claims is not None:
                user = self.storage.get_user(claims["id"])
                if user is not None:
                    return user
                logger.warning(f"Bearer token for unknown user {claims['id']}")

        user_id = session_user_id()
        if user_id is not None:
            return self.storage.get_user(user_id)
        return None


def seed_first_admin(storage: Storage, settings: Settings) -> Optional[UserRecord]:
    """
    Create the configured first admin unless that username already exists.

    Returns:
        Optional[UserRecord]: the new admin, or None when nothing was created
    """
    if storage.get_user_by_username(settings.FIRST_ADMIN_USERNAME):
        logger.info(f"Admin user '{settings.FIRST_ADMIN_USERNAME}' already exists, skipping creation")
        return None

    admin = storage.create_user(UserCreate(
        username=settings.FIRST_ADMIN_USERNAME,
        email=settings.FIRST_ADMIN_EMAIL,
        password=hash_password(settings.FIRST_ADMIN_PASSWORD),
        name=settings.FIRST_ADMIN_NAME,
        role=UserRole.ADMIN,
    ))
    logger.info(f"Admin user '{admin.username}' created with id {admin.id}")
    return admin
