"""
Security utilities for StudyPrep.

Handles password hashing, bearer token issuing/verification and
password reset token generation.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any

from jose import JWTError, jwt
from passlib.crypto.scrypt import scrypt
from passlib.utils import consteq


logger = logging.getLogger(__name__)


# scrypt cost parameters; every stored hash in the system uses the same ones
SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1
SCRYPT_KEY_LENGTH = 64
SALT_BYTES = 16

RESET_TOKEN_BYTES = 32


def _derive(password: str, salt_hex: str) -> bytes:
    # The salt is fed to the KDF as its hex text, not the raw bytes.
    return scrypt(
        password.encode("utf-8"),
        salt_hex.encode("ascii"),
        SCRYPT_N,
        SCRYPT_R,
        SCRYPT_P,
        SCRYPT_KEY_LENGTH,
    )


def hash_password(password: str) -> str:
    """
    Hash a password with scrypt and a fresh random salt.

    Args:
        password: The plain text password to hash

    Returns:
        str: ``<hashHex>.<saltHex>``
    """
    salt = secrets.token_hex(SALT_BYTES)
    return f"{_derive(password, salt).hex()}.{salt}"


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Verify a plain password against a stored ``<hashHex>.<saltHex>`` value.

    Never raises: a malformed stored value or a KDF failure counts as a
    mismatch.

    Args:
        plain_password: The plain text password to verify
        hashed_password: The stored hash to compare against

    Returns:
        bool: True if password matches, False otherwise
    """
    if not hashed_password or "." not in hashed_password:
        logger.warning("Stored password hash is missing or has no salt separator")
        return False

    hashed, _, salt = hashed_password.partition(".")
    if not salt:
        logger.warning("Stored password hash has an empty salt")
        return False

    try:
        expected = bytes.fromhex(hashed)
        supplied = _derive(plain_password, salt)
    except (ValueError, TypeError) as exc:
        logger.warning(f"Password verification failed: {exc}")
        return False

    return consteq(expected, supplied)


def generate_reset_token() -> str:
    """Random single-use password reset token (32 bytes, hex)."""
    return secrets.token_hex(RESET_TOKEN_BYTES)


class TokenService:
    """
    Issues and verifies signed, time-limited bearer tokens (JWT).
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expires_minutes: int = 60 * 24
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.expires_delta = timedelta(minutes=expires_minutes)

    def issue(self, user: Any, expires_delta: Optional[timedelta] = None) -> str:
        """
        Create a token embedding the user's id, username and role.

        Args:
            user: Any object with ``id``, ``username`` and ``role`` attributes
            expires_delta: Optional custom lifetime (defaults to 24 hours)

        Returns:
            str: The encoded JWT token
        """
        now = datetime.now(timezone.utc)
        to_encode = {
            "id": user.id,
            "username": user.username,
            "role": getattr(user.role, "value", user.role),
            "iat": now,
            "exp": now + (expires_delta or self.expires_delta),
        }
        return jwt.encode(to_encode, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> Optional[Dict[str, Any]]:
        """
        Verify and decode a token.

        Args:
            token: The JWT token to verify

        Returns:
            Optional[Dict[str, Any]]: The claims if valid and unexpired, None otherwise
        """
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as exc:
            logger.warning(f"Bearer token rejected: {exc}")
            return None

        if not isinstance(payload.get("id"), int):
            logger.warning("Bearer token rejected: missing user id claim")
            return None
        return payload
