from __future__ import annotations

from datetime import timedelta

import pytest

from studyprep.core.clock import utcnow
from studyprep.core.errors import (
    AuthenticationError,
    AuthorizationError,
    InvalidTokenError,
    ValidationError,
)
from studyprep.models.user import UserRole
from studyprep.schemas import UserRegister
from studyprep.services import AuthService, seed_first_admin
from studyprep.core.security import verify_password

from tests.utils import PASSWORD, create_admin, create_user


@pytest.fixture()
def auth(storage, token_service) -> AuthService:
    return AuthService(storage, token_service, reset_expire_minutes=60)


def registration(**kwargs) -> UserRegister:
    defaults = {
        "username": "bob",
        "email": "bob@example.com",
        "password": "bob-password",
        "name": "Bob",
    }
    defaults.update(kwargs)
    return UserRegister(**defaults)


def test_register_creates_student_and_issues_token(auth, token_service):
    user, token = auth.register(registration())

    assert user.id
    assert user.role == UserRole.STUDENT
    assert verify_password("bob-password", user.password)
    assert token_service.verify(token)["id"] == user.id


@pytest.mark.parametrize("missing", ["username", "email", "password", "name"])
def test_register_requires_every_field(auth, missing):
    with pytest.raises(ValidationError) as exc:
        auth.register(registration(**{missing: None}))

    assert exc.value.message == "Username, email, password, and name are required"


def test_register_treats_blank_values_as_missing(auth):
    with pytest.raises(ValidationError):
        auth.register(registration(username="   ", email=""))


def test_register_rejects_duplicate_username(auth, storage):
    create_user(storage, username="bob", email="other@example.com")

    with pytest.raises(ValidationError) as exc:
        auth.register(registration())

    assert exc.value.message == "Username already exists"


def test_register_rejects_duplicate_email(auth, storage):
    create_user(storage, username="robert", email="bob@example.com")

    with pytest.raises(ValidationError) as exc:
        auth.register(registration())

    assert exc.value.message == "Email already exists"


def test_only_admins_can_create_admins(auth, storage):
    student = create_user(storage)

    with pytest.raises(AuthorizationError) as exc:
        auth.register(registration(role="admin"))
    assert exc.value.message == "Unauthorized to create admin users"

    with pytest.raises(AuthorizationError):
        auth.register(registration(role="admin"), actor=student)

    admin = create_admin(storage)
    user, _ = auth.register(registration(role="admin"), actor=admin)
    assert user.role == UserRole.ADMIN
    assert storage.get_user_by_username("bob") is not None


def test_login_updates_last_login(auth, storage, token_service):
    alice = create_user(storage)
    assert alice.last_login is None

    user, token = auth.login("alice", PASSWORD)

    assert user.id == alice.id
    assert user.last_login is not None
    assert storage.get_user(alice.id).last_login is not None
    assert token_service.verify(token)["username"] == "alice"


def test_login_failures_are_indistinguishable(auth, storage):
    create_user(storage)

    with pytest.raises(AuthenticationError) as wrong_password:
        auth.login("alice", "nope")
    with pytest.raises(AuthenticationError) as unknown_user:
        auth.login("mallory", PASSWORD)

    assert wrong_password.value.message == unknown_user.value.message == "Invalid username or password"


def test_password_reset_flow(auth, storage):
    alice = create_user(storage)

    auth.request_password_reset("alice@example.com")
    token = storage.get_user(alice.id).reset_token
    assert token and len(token) == 64

    auth.confirm_password_reset(token, "new-password")

    updated = storage.get_user(alice.id)
    assert updated.reset_token is None
    assert updated.reset_token_expiry is None
    assert verify_password("new-password", updated.password)
    auth.login("alice", "new-password")


def test_reset_token_is_single_use(auth, storage):
    alice = create_user(storage)
    auth.request_password_reset("alice@example.com")
    token = storage.get_user(alice.id).reset_token
    auth.confirm_password_reset(token, "first")

    with pytest.raises(InvalidTokenError) as exc:
        auth.confirm_password_reset(token, "second")

    assert exc.value.message == "Invalid or expired reset token"
    assert verify_password("first", storage.get_user(alice.id).password)


def test_expired_reset_token_is_rejected(auth, storage):
    alice = create_user(storage)
    storage.set_password_reset_token(alice.id, "a" * 64, utcnow() - timedelta(minutes=1))

    with pytest.raises(InvalidTokenError):
        auth.confirm_password_reset("a" * 64, "new-password")

    assert verify_password(PASSWORD, storage.get_user(alice.id).password)


def test_reset_request_for_unknown_email_is_silent(auth, storage):
    alice = create_user(storage)

    assert auth.request_password_reset("nobody@example.com") is None
    assert storage.get_user(alice.id).reset_token is None


def test_reset_confirmation_requires_token_and_password(auth):
    with pytest.raises(ValidationError) as exc:
        auth.confirm_password_reset("", "pw")
    assert exc.value.message == "Token and new password are required"

    with pytest.raises(ValidationError):
        auth.confirm_password_reset("token", None)


def test_valid_token_wins_over_session(auth, storage, token_service):
    alice = create_user(storage)
    bob = create_user(storage, username="bob", email="bob@example.com")

    session_reads = []

    def session_user_id():
        session_reads.append(bob.id)
        return bob.id

    resolved = auth.resolve_identity(token_service.issue(alice), session_user_id)

    assert resolved.id == alice.id
    # the session store is not consulted when the token resolves
    assert session_reads == []


def test_invalid_token_falls_back_to_session(auth, storage):
    bob = create_user(storage, username="bob", email="bob@example.com")

    assert auth.resolve_identity("garbage", lambda: bob.id).id == bob.id
    assert auth.resolve_identity("garbage", lambda: None) is None
    assert auth.resolve_identity(None, lambda: None) is None


def test_seed_first_admin_is_idempotent(storage, settings):
    admin = seed_first_admin(storage, settings)

    assert admin.role == UserRole.ADMIN
    assert verify_password(settings.FIRST_ADMIN_PASSWORD, admin.password)
    assert seed_first_admin(storage, settings) is None
    assert storage.count_users(role="admin") == 1
