# app/api/v1/routers/auth.py
#
# registration flow:
#   register (inactive, code mailed) > confirm-email (code) -> active > login
# reset password flow (canonical):
#   forgot-password (code mailed) > reset-password/{email} (code + new password)
# reset password flow (link variant):
#   forgot-password-link (token link mailed) > reset-password/token/{token} (new password)
from fastapi import APIRouter, Depends, Response, status
from app.api.v1.deps import get_account_service, get_current_user
from app.models.user import User
from app.schemas.auth import (
    ChangePasswordIn,
    ConfirmEmailIn,
    ForgotPasswordIn,
    LoginRequest,
    RegisterIn,
    ResetPasswordIn,
    ResetPasswordWithTokenIn,
    UserOut,
)
from app.services.account_service import AccountService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(body: RegisterIn, accounts: AccountService = Depends(get_account_service)):
    """
    Register a new user account.

    Creates an inactive account and mails a verification code. The account
    becomes active through /confirm-email/{userId}.

    Args:
        body: name, email, password

    Returns:
        dict: success, msg, userId (and verificationCode in dummy mode)

    Error codes (400):
        - MISSING_FIELDS: name, email or password absent
        - EMAIL_EXISTS: email already registered
    """
    result = await accounts.register(body.name, body.email, body.password)
    resp = {"success": True, "msg": "user created, check mail for email confirmation", "userId": result.user_id}
    if result.verification_code:
        resp["verificationCode"] = result.verification_code
    return resp


@router.post("/confirm-email/{user_id}")
async def confirm_email(user_id: str, body: ConfirmEmailIn, accounts: AccountService = Depends(get_account_service)):
    """
    Confirm the user's email using the mailed verification code.

    The code is single-use; a second attempt with the same code fails with
    INVALID_OR_EXPIRED_TOKEN (400) and changes nothing.
    """
    await accounts.confirm_email(user_id, body.token)
    return {"success": True, "msg": "Token verified successfully"}


@router.post("/login")
async def login(payload: LoginRequest, response: Response, accounts: AccountService = Depends(get_account_service)):
    """
    Authenticate user and create a session token.

    The token is returned in the body and also set as an HttpOnly cookie for
    browser-based clients.

    Raises:
        400 MISSING_FIELDS: email or password absent
        401 AUTH_INVALID_CREDENTIALS: unknown email or wrong password (same response)
    """
    result = await accounts.login(payload.email, payload.password)
    response.set_cookie("accessToken", result.token, httponly=True, secure=False, samesite="lax")
    return {"success": True, "msg": "login successfully", "token": result.token,
            "user": UserOut.from_user(result.user).model_dump()}


@router.get("/me")
async def me(user: User = Depends(get_current_user)):
    """Return the user behind the session token."""
    return {"success": True, "data": UserOut.from_user(user).model_dump()}


@router.post("/logout")
async def logout(response: Response):
    """
    Clear the access token cookie.

    Note:
        The token itself stays valid until it expires; sessions are not tracked server-side.
    """
    response.delete_cookie("accessToken")
    return {"success": True}


@router.post("/forgot-password")
async def forgot_password(body: ForgotPasswordIn, accounts: AccountService = Depends(get_account_service)):
    """
    Request a password reset code by email.

    Error codes:
        - EMAIL_NOT_FOUND (400): no account for this email
        - INTERNAL_ERROR (500): the code was stored but the email could not be sent
    """
    result = await accounts.forgot_password(body.email)
    resp = {"success": True, "msg": "Check your email for verification code"}
    if result.verification_code:
        resp["verificationCode"] = result.verification_code
    return resp


@router.post("/forgot-password-link")
async def forgot_password_link(body: ForgotPasswordIn, accounts: AccountService = Depends(get_account_service)):
    """
    Request a password reset link (signed token in the URL) by email.

    The link is always built from PUBLIC_BASE_URL, never from the request Host header.
    """
    result = await accounts.forgot_password_link(body.email)
    resp = {"success": True, "msg": "check email for reset link"}
    if result.reset_link:
        resp["resetLink"] = result.reset_link
    return resp


@router.post("/reset-password/token/{token}")
async def reset_password_with_token(
    token: str,
    body: ResetPasswordWithTokenIn,
    accounts: AccountService = Depends(get_account_service),
):
    """
    Reset the password with the token embedded in a reset link.

    Error codes (400):
        - TOKEN_EXPIRED: link lapsed, request a new one
        - INVALID_RESET_TOKEN: bad, foreign or already used token
    """
    await accounts.reset_password_with_token(token, body.password)
    return {"success": True, "msg": "password reset successful"}


@router.post("/reset-password/{email}")
async def reset_password(email: str, body: ResetPasswordIn, accounts: AccountService = Depends(get_account_service)):
    """
    Reset the password with the code mailed by /forgot-password.

    Error codes (400):
        - MISSING_FIELDS: token or password absent
        - INVALID_OR_EXPIRED_TOKEN: wrong, used or expired code (also for unknown emails)
    """
    await accounts.reset_password(email, body.token, body.password)
    return {"success": True, "msg": "password reset successful"}


@router.post("/change-password")
async def change_password(
    body: ChangePasswordIn,
    user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
):
    """
    Change password for the currently authenticated user.

    Note:
        This endpoint does not require the current password.
    """
    await accounts.change_password(user, body.newPassword)
    return {"success": True, "data": {"ok": True}}
