# app/models/__init__.py
"""
Database models module initialization.
Exports all database models for convenient imports throughout the application.

Models exported:
- User: User account and credential model
- Group / Permission: Storage shape for role data (not evaluated)
- VerificationRecord: One-time verification codes
"""
from .user import User, Group, Permission
from .verification import VerificationRecord
