"""
Pydantic schemas for admin user management endpoints.
"""
from pydantic import BaseModel, Field
from typing import List, Optional


class AdminUserBase(BaseModel):
    """
    User model for admin endpoints.
    Carries the role flags; never the password hash.
    """
    id: str
    name: Optional[str] = None
    email: str
    isAdmin: bool
    isActive: bool
    isStaff: bool
    isSuperuser: bool
    createdAt: str = Field(alias="created_at")  # ISO format
    lastLogin: Optional[str] = Field(default=None, alias="last_login")

    class Config:
        """Pydantic configuration: allow both field name and alias for population."""
        populate_by_name = True


class AdminUserListOut(BaseModel):
    items: List[AdminUserBase]
    offset: int
    limit: int
    total: int


class AdminUserDetailOut(BaseModel):
    user: AdminUserBase


class AdminSetActiveIn(BaseModel):
    active: bool
