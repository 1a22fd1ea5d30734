"""
Credential primitives.

Password hashing with bcrypt, JWT issuing/verification with PyJWT and
random hex tokens for password reset and email verification.

Dependencies: bcrypt, PyJWT
System role: Authentication building blocks used by the user service
"""

import secrets
import time
from typing import Any

import bcrypt
import jwt
from jwt import InvalidTokenError

from debrid_proxy.configs.auth import AuthSettings
from debrid_proxy.core.exceptions import AuthenticationError, ConfigurationError

RESET_TOKEN_BYTES = 32
VERIFICATION_TOKEN_BYTES = 32


def hash_password(password: str) -> str:
    """Hash a plain password with a fresh bcrypt salt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    """
    Check a plain password against a stored bcrypt hash.

    Returns False for missing or malformed hashes instead of raising.
    """
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def generate_hex_token(num_bytes: int = RESET_TOKEN_BYTES) -> str:
    """Return a cryptographically random hex token (2 chars per byte)."""
    return secrets.token_hex(num_bytes)


def extract_bearer_token(authorization: str | None) -> str:
    """
    Pull the token out of an Authorization header.

    Raises:
        AuthenticationError: If the header is missing or not a Bearer credential
    """
    if not isinstance(authorization, str):
        raise AuthenticationError("Authorization token is required")

    parts = authorization.strip().split()
    if len(parts) < 2 or parts[0].lower() != "bearer" or not parts[1]:
        raise AuthenticationError("Authorization token is required")
    return parts[1]


class TokenIssuer:
    """Issues and verifies HS256 access tokens for users."""

    def __init__(self, settings: AuthSettings) -> None:
        self._settings = settings

    def _secret(self) -> str:
        if not self._settings.secret:
            raise ConfigurationError("JWT secret is not configured")
        return self._settings.secret

    def issue(self, user_id: str, email: str) -> str:
        """
        Sign a token for a user.

        Args:
            user_id: Hex ObjectId of the user (becomes the sub claim)
            email: User email (informational claim)

        Returns:
            str: Encoded JWT
        """
        now = int(time.time())
        payload: dict[str, Any] = {"sub": user_id, "email": email, "iat": now}
        lifetime = self._settings.expires_delta
        if lifetime is not None:
            payload["exp"] = now + int(lifetime.total_seconds())
        return jwt.encode(payload, self._secret(), algorithm=self._settings.algorithm)

    def decode(self, token: str) -> dict[str, Any]:
        """
        Verify signature and expiry of a token.

        Raises:
            AuthenticationError: If the token is invalid or expired
            ConfigurationError: If no secret is configured
        """
        secret = self._secret()
        try:
            return jwt.decode(token, secret, algorithms=[self._settings.algorithm])
        except InvalidTokenError as e:
            raise AuthenticationError("Invalid token", {"reason": type(e).__name__}) from e
