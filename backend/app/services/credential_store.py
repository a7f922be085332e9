"""
Credential Store

Persistence of user identity, hashed secret and status flags. All secret
writes go through User.set_password(), so hashing happens exactly once per
change inside User.save().
"""
import datetime as dt
import uuid
from typing import Any, List, Optional, Tuple

from tortoise.exceptions import IntegrityError

from app.core.exceptions import DuplicateEmailError, MissingFieldsError, UserNotFoundError
from app.models.user import User


def parse_user_id(user_id: Any) -> Optional[uuid.UUID]:
    """Return the UUID for a user id, or None when it is not a valid UUID."""
    if isinstance(user_id, uuid.UUID):
        return user_id
    try:
        return uuid.UUID(str(user_id))
    except (TypeError, ValueError, AttributeError):
        return None


def normalize_email(email: Optional[str]) -> str:
    # Case is preserved: uniqueness is case-sensitive as stored
    return (email or "").strip()


class CredentialStore:

    async def create_user(
        self,
        email: str,
        password: str,
        name: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        is_admin: bool = False,
    ) -> User:
        """
        Create an inactive user with a hashed password.

        Raises:
            MissingFieldsError: email or password empty
            DuplicateEmailError: email already registered
        """
        email = normalize_email(email)
        missing = [f for f, v in (("email", email), ("password", password)) if not v]
        if missing:
            raise MissingFieldsError(missing)

        if await User.filter(email=email).exists():
            raise DuplicateEmailError()

        user = User(
            username=name,
            email=email,
            first_name=first_name,
            last_name=last_name,
            is_admin=is_admin,
            is_active=False,
        )
        user.set_password(password)
        try:
            await user.save()
        except IntegrityError:
            # Lost a race against a concurrent registration for the same email
            raise DuplicateEmailError()

        user.needs_verification_notice = True
        return user

    async def find_by_email(self, email: Optional[str]) -> Optional[User]:
        email = normalize_email(email)
        if not email:
            return None
        return await User.get_or_none(email=email)

    async def find_by_id(self, user_id: Any) -> Optional[User]:
        uid = parse_user_id(user_id)
        if uid is None:
            return None
        return await User.get_or_none(id=uid)

    async def set_active(self, user_id: Any, active: bool) -> User:
        user = await self.find_by_id(user_id)
        if not user:
            raise UserNotFoundError(user_id)
        user.is_active = active
        await user.save(update_fields=["is_active", "updated_at"])
        return user

    async def replace_secret(self, user_id: Any, new_password: str) -> User:
        """Overwrite the password hash. Nothing else on the record is written."""
        if not new_password:
            raise MissingFieldsError(["password"])
        user = await self.find_by_id(user_id)
        if not user:
            raise UserNotFoundError(user_id)
        user.set_password(new_password)
        await user.save(update_fields=["updated_at"])
        return user

    async def touch_last_login(self, user: User) -> None:
        user.last_login = dt.datetime.now(dt.timezone.utc)
        await user.save(update_fields=["last_login"])

    async def list_users(self, offset: int = 0, limit: int = 20) -> Tuple[List[User], int]:
        total = await User.all().count()
        users = await User.all().order_by("-created_at").offset(offset).limit(limit)
        return users, total
