# app/core/security.py
"""
Security module for authentication.
Handles password hashing and the signing/verification of session and
password-reset tokens.
"""
import datetime as dt
import enum
import hashlib
from typing import Any, Callable, Optional

import jwt  # PyJWT
from passlib.context import CryptContext

from app.core.exceptions import ExpiredTokenError, InvalidTokenError

# Password hashing context
# Argon2 is a modern, secure password hashing algorithm
pwd_context = CryptContext(
    schemes=["argon2"],  # Use Argon2 for password hashing
    deprecated="auto",   # Automatically handle deprecated schemes
)


def hash_password(plain: str) -> str:
    """
    Hash a plain text password using Argon2.

    Args:
        plain: Plain text password to hash

    Returns:
        Hashed password string (safe to store in database)

    Note: Never store plain text passwords. User.save() calls this for a staged password.
    """
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    """
    Verify a plain text password against a hashed password.

    Args:
        plain: Plain text password to verify
        hashed: Hashed password from database

    Returns:
        True if password matches, False otherwise (also for unparseable hashes)
    """
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError):
        return False


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class TokenKind(str, enum.Enum):
    SESSION = "session"
    RESET = "reset"


class TokenIssuer:
    """
    Signs and verifies bearer tokens.

    Both kinds carry `sub` (user id), `email` and `isAdmin`. The `kind` claim
    keeps them apart: a session token is never accepted where a reset token is
    expected and vice versa.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        session_ttl_minutes: Optional[int] = None,
        reset_ttl_minutes: int = 11,
        clock: Callable[[], dt.datetime] = utc_now,
    ):
        if not secret:
            raise ValueError("token signing secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm
        self._session_ttl = session_ttl_minutes or None  # 0 disables expiry
        self._reset_ttl = reset_ttl_minutes
        self._clock = clock

    def issue(
        self,
        user: Any,
        kind: TokenKind = TokenKind.SESSION,
        ttl_minutes: Optional[int] = None,
        extra_claims: Optional[dict] = None,
    ) -> str:
        """
        Create a signed token for a user.

        Args:
            user: Object exposing id, email and is_admin
            kind: TokenKind.SESSION or TokenKind.RESET
            ttl_minutes: Override of the configured lifetime for this kind
            extra_claims: Additional claims; cannot override the standard ones

        Returns:
            Encoded JWT string
        """
        kind = TokenKind(kind)
        if ttl_minutes is None:
            ttl_minutes = self._session_ttl if kind is TokenKind.SESSION else self._reset_ttl

        now = self._clock()
        payload = dict(extra_claims or {})
        payload.update({
            "sub": str(user.id),
            "email": user.email,
            "isAdmin": bool(user.is_admin),
            "kind": kind.value,
            "iat": now,
        })
        if ttl_minutes:
            payload["exp"] = now + dt.timedelta(minutes=ttl_minutes)
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str, kind: Optional[TokenKind] = None) -> dict:
        """
        Validate signature and expiry, then return the payload.

        Raises:
            ExpiredTokenError: The token's exp has passed
            InvalidTokenError: Bad signature, malformed input, missing subject
                or a kind other than the one requested
        """
        if not token or not isinstance(token, str):
            raise InvalidTokenError()
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise ExpiredTokenError()
        except jwt.InvalidTokenError:
            raise InvalidTokenError()

        if kind is not None and payload.get("kind") != TokenKind(kind).value:
            raise InvalidTokenError()
        return payload


def secret_fingerprint(password_hash: str) -> str:
    """Short digest of a stored hash, used to bind a reset token to the current password."""
    return hashlib.sha256((password_hash or "").encode("utf-8")).hexdigest()[:16]
