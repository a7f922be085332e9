# app/api/v1/routers/admin.py
from __future__ import annotations

from fastapi import (
    APIRouter,
    Depends,
    Query,
)

from app.api.v1.deps import get_account_service, require_admin
from app.core.exceptions import CannotDeactivateSelfError, UserNotFoundError
from app.models.user import User
from app.schemas.admin import (
    AdminSetActiveIn,
    AdminUserDetailOut,
    AdminUserListOut,
)
from app.services.account_service import AccountService
from app.services.credential_store import parse_user_id

router = APIRouter(prefix="/admin", tags=["admin"])


def _user_to_dict(u: User) -> dict:
    """
    Convert User model instance to dictionary format for API responses.
    """
    return {
        "id": str(u.id),
        "name": u.username,
        "email": u.email,
        "isAdmin": u.is_admin,
        "isActive": u.is_active,
        "isStaff": u.is_staff,
        "isSuperuser": u.is_superuser,
        "created_at": u.created_at.isoformat() if u.created_at else None,
        "last_login": u.last_login.isoformat() if u.last_login else None,
    }


@router.get(
    "/users",
    response_model=AdminUserListOut,
    dependencies=[Depends(require_admin)],
)
async def list_users(
    offset: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    accounts: AccountService = Depends(get_account_service),
):
    """
    Get paginated list of all users (admin only), newest first.

    Raises:
        AdminOnlyError (403): If user is not an admin
        AuthRequiredError (401): If user is not authenticated
    """
    rows, total = await accounts.store.list_users(offset=offset, limit=limit)
    return {"items": [_user_to_dict(u) for u in rows], "offset": offset, "limit": limit, "total": total}


@router.get(
    "/users/{user_id}",
    response_model=AdminUserDetailOut,
    dependencies=[Depends(require_admin)],
)
async def get_user_detail(user_id: str, accounts: AccountService = Depends(get_account_service)):
    u = await accounts.store.find_by_id(user_id)
    if not u:
        raise UserNotFoundError(user_id)
    return {"user": _user_to_dict(u)}


@router.patch(
    "/users/{user_id}/active",
    response_model=AdminUserDetailOut,
)
async def set_user_active(
    user_id: str,
    body: AdminSetActiveIn,
    current_admin: User = Depends(require_admin),
    accounts: AccountService = Depends(get_account_service),
):
    """
    Activate or deactivate an account without a verification code (admin only).

    Raises:
        CANNOT_DEACTIVATE_SELF (400): Admin tried to deactivate their own account
        USER_NOT_FOUND (400): No such user
    """
    if parse_user_id(user_id) == parse_user_id(current_admin.id) and not body.active:
        raise CannotDeactivateSelfError()
    u = await accounts.store.set_active(user_id, body.active)
    return {"user": _user_to_dict(u)}
