"""
Pydantic schemas for authentication endpoints.

Request fields are optional on purpose: missing values reach the service and
come back as a 400 MISSING_FIELDS error instead of a 422.
"""
from pydantic import BaseModel


class RegisterIn(BaseModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None


class ConfirmEmailIn(BaseModel):
    token: str | None = None  # The verification code from the email


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class ForgotPasswordIn(BaseModel):
    email: str | None = None


class ResetPasswordIn(BaseModel):
    """Code flow: the code mailed by forgot-password plus the new password."""
    token: str | None = None
    password: str | None = None


class ResetPasswordWithTokenIn(BaseModel):
    password: str | None = None


class ChangePasswordIn(BaseModel):
    newPassword: str | None = None


class UserOut(BaseModel):
    """
    User information returned in authentication responses.
    Contains basic user details without sensitive information.
    """
    id: str
    name: str | None = None
    email: str
    isAdmin: bool = False
    isActive: bool = False

    @classmethod
    def from_user(cls, u) -> "UserOut":
        return cls(id=str(u.id), name=u.username, email=u.email, isAdmin=u.is_admin, isActive=u.is_active)
