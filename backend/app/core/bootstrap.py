# app/core/bootstrap.py
"""
Bootstrap module for application initialization.
Creates a default admin account on first startup.
"""
import os
import logging
from app.models.user import User

logger = logging.getLogger("uvicorn.error")

async def ensure_default_admin() -> None:
    """
    If no admin exists in the database, create a default admin based on environment variables.
    Only takes effect under the following conditions:
      - Currently no user with is_admin=True
      - And ADMIN_PASSWORD is set (to avoid using default weak password)
    Environment variables:
      ADMIN_USERNAME (default: "admin")
      ADMIN_EMAIL    (default: "admin@example.com")
      ADMIN_PASSWORD (required, otherwise won't create)

    The bootstrap admin is created active (no email confirmation).
    """
    if await User.filter(is_admin=True).exists():
        return

    admin_password = os.getenv("ADMIN_PASSWORD")
    if not admin_password:
        logger.warning("[bootstrap] No admin present, but ADMIN_PASSWORD not set -> skip creating default admin.")
        return

    admin_username = os.getenv("ADMIN_USERNAME", "admin")
    admin_email = os.getenv("ADMIN_EMAIL", "admin@example.com")

    # A regular account may already use this email: promote it instead of clashing on the unique index.
    # Its own password is kept; ADMIN_PASSWORD only applies to a newly created admin.
    u = await User.get_or_none(email=admin_email)
    if u is None:
        u = User(username=admin_username, email=admin_email)
        u.set_password(admin_password)
    else:
        logger.warning("[bootstrap] Promoting existing account %s to admin; its password is unchanged.", u.email)
    u.is_admin = True
    u.is_staff = True
    u.is_superuser = True
    u.is_active = True
    await u.save()
    logger.warning("[bootstrap] Default admin ready -> email=%s id=%s", u.email, u.id)
