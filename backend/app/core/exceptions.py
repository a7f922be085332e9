# app/core/exceptions.py
"""
Error taxonomy for the account lifecycle.

Services raise these; the exception handlers registered in app.main turn them
into JSON responses using `status_code` and `to_dict()`.
"""
from typing import Any, Optional


class AccountError(Exception):
    """Base exception for all expected account lifecycle failures."""

    status_code: int = 400

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for API responses."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(AccountError):
    """Malformed or missing input."""

    status_code = 400


class ConflictError(AccountError):
    """A unique field is already taken."""

    status_code = 400


class AuthError(AccountError):
    """Bad credentials or bearer token."""

    status_code = 401


class ForbiddenError(AccountError):
    """Authenticated, but not allowed to do this."""

    status_code = 403


class NotFoundError(AccountError):
    """Referenced entity does not exist."""

    status_code = 400


class ExpiredError(AccountError):
    """A time-bounded artifact has lapsed."""

    status_code = 400


class InternalError(AccountError):
    """Storage or transport failure. The message is never shown to callers."""

    status_code = 500

    def __init__(self, message: str = "Server error", code: Optional[str] = None):
        super().__init__(message, code=code or "INTERNAL_ERROR")


# ---- concrete errors ----

class MissingFieldsError(ValidationError):
    def __init__(self, fields: list[str]):
        super().__init__(
            f"Please provide {', '.join(fields)}",
            code="MISSING_FIELDS",
            details={"fields": fields},
        )


class DuplicateEmailError(ConflictError):
    def __init__(self):
        super().__init__("User already exists", code="EMAIL_EXISTS")


class InvalidCredentialsError(AuthError):
    """Same message whether the email is unknown or the password is wrong."""

    def __init__(self):
        super().__init__("invalid credentials", code="AUTH_INVALID_CREDENTIALS")


class InactiveAccountError(AuthError):
    def __init__(self):
        super().__init__("Email address has not been confirmed", code="AUTH_INACTIVE_ACCOUNT")


class UnknownEmailError(NotFoundError):
    def __init__(self):
        super().__init__("Email does not exist", code="EMAIL_NOT_FOUND")


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: Any = None):
        details = {"user_id": str(user_id)} if user_id is not None else None
        super().__init__("invalid user", code="USER_NOT_FOUND", details=details)


class InvalidOrExpiredCodeError(ExpiredError):
    def __init__(self):
        super().__init__("Invalid or expired token", code="INVALID_OR_EXPIRED_TOKEN")


class InvalidTokenError(AuthError):
    """Signature mismatch, malformed token or wrong token kind."""

    def __init__(self, message: str = "unauthorized, invalid token"):
        super().__init__(message, code="AUTH_INVALID_TOKEN")


class ExpiredTokenError(ExpiredError):
    def __init__(self, message: str = "token has expired"):
        super().__init__(message, code="TOKEN_EXPIRED")


class InvalidResetTokenError(ValidationError):
    def __init__(self):
        super().__init__("Invalid or expired token", code="INVALID_RESET_TOKEN")


class AuthRequiredError(AuthError):
    def __init__(self):
        super().__init__("unauthorized, no token", code="AUTH_REQUIRED")


class AdminOnlyError(ForbiddenError):
    def __init__(self):
        super().__init__("admin access required", code="FORBIDDEN_ADMIN_ONLY")


class CannotDeactivateSelfError(ValidationError):
    def __init__(self):
        super().__init__("admins cannot deactivate their own account", code="CANNOT_DEACTIVATE_SELF")
