# app/models/user.py
"""
Database models for user accounts, groups and permissions.
Represents a user account in the system, containing authentication credentials,
profile information and role flags.
"""
import uuid
from typing import Optional

from tortoise import fields, models

from app.core.security import hash_password


class Permission(models.Model):
    """Named permission. Carried for future authorization use only."""
    id = fields.IntField(pk=True)
    name = fields.CharField(max_length=128)

    class Meta:
        table = "permissions"


class Group(models.Model):
    """Named group of permissions."""
    id = fields.IntField(pk=True)
    name = fields.CharField(max_length=128, unique=True)
    permissions = fields.ManyToManyField("models.Permission", related_name="groups", through="group_permissions")

    class Meta:
        table = "groups"


class User(models.Model):
    """
    User database model.

    Lifecycle:
    - Created inactive by registration
    - Activated by consuming a verification code
    - last_login stamped on login, password_hash replaced on reset

    Security:
    - Password is stored as a hash (never store plain text passwords)
    - Plain text is staged with set_password() and hashed once by save()
    - Email must be unique across all users (case-sensitive as stored)
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)  # Primary key: unique user identifier
    username = fields.CharField(max_length=256, null=True)  # Display name as given at registration
    email = fields.CharField(max_length=256, unique=True, index=True)  # Login identifier
    password_hash = fields.CharField(max_length=255)  # Argon2 hash, never plain text
    first_name = fields.CharField(max_length=128, null=True)
    last_name = fields.CharField(max_length=128, null=True)

    # Role flags
    is_admin = fields.BooleanField(default=False)
    is_active = fields.BooleanField(default=False)  # True only after email confirmation
    is_staff = fields.BooleanField(default=False)
    is_superuser = fields.BooleanField(default=False)

    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)
    last_login = fields.DatetimeField(null=True)

    groups = fields.ManyToManyField("models.Group", related_name="users", through="user_groups")
    user_permissions = fields.ManyToManyField(
        "models.Permission", related_name="users", through="user_user_permissions"
    )

    # In-memory only. Set on the instance returned by CredentialStore.create_user
    # and cleared once the verification mail has been attempted.
    needs_verification_notice: bool = False

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "users"

    def set_password(self, plain: str) -> None:
        """Stage a new plain text password; it is hashed on the next save()."""
        self._staged_password = plain

    async def save(self, *args, **kwargs) -> None:
        staged: Optional[str] = getattr(self, "_staged_password", None)
        if staged is not None:
            self.password_hash = hash_password(staged)
            self._staged_password = None
            update_fields = kwargs.get("update_fields")
            if update_fields is not None and "password_hash" not in update_fields:
                kwargs["update_fields"] = [*update_fields, "password_hash"]
        await super().save(*args, **kwargs)
