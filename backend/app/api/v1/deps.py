# app/api/v1/deps.py
from fastapi import Depends, Header, Request
from app.core.exceptions import AdminOnlyError, AuthRequiredError, ExpiredTokenError, InvalidTokenError
from app.models.user import User
from app.services.account_service import AccountService


def get_account_service(request: Request) -> AccountService:
    """
    FastAPI dependency returning the AccountService built at startup.

    The service is created once in app.main (on_startup) and stored on
    app.state; tests install their own instance the same way.
    """
    return request.app.state.accounts


async def get_current_user(
    request: Request,
    authorization: str | None = Header(default=None),
    accounts: AccountService = Depends(get_account_service),
):
    """
    FastAPI dependency to get the current authenticated user.

    This dependency extracts and verifies the session token from either:
    1. Authorization header (Bearer token) - preferred method
    2. HttpOnly cookie (accessToken) - fallback method

    The token signature and expiry are always checked; reset tokens are
    rejected here.

    Raises:
        AuthRequiredError (401): If no token is provided (AUTH_REQUIRED)
        InvalidTokenError (401): If token is invalid, expired, or its user is gone (AUTH_INVALID_TOKEN)
    """
    token = None
    # 1) Prioritize Authorization: Bearer xxx
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
    # 2) Secondly HttpOnly Cookie: accessToken
    if not token:
        token = request.cookies.get("accessToken")

    if not token:
        raise AuthRequiredError()

    try:
        user = await accounts.authenticate(token)
    except ExpiredTokenError:
        # Expired sessions answer 401 like any other bad token
        raise InvalidTokenError("unauthorized, token expired")

    request.state.user = user
    return user

async def require_admin(current: User = Depends(get_current_user)) -> User:
    """
    FastAPI dependency to ensure the current user is an administrator.

    Raises:
        AdminOnlyError (403): If user is not an admin (FORBIDDEN_ADMIN_ONLY)
        AuthRequiredError / InvalidTokenError (401): from get_current_user
    """
    if not current.is_admin:
        raise AdminOnlyError()
    return current
