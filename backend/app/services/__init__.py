"""
Services Module

Account lifecycle building blocks:
- Credential store (users and hashed secrets)
- Verification ledger (one-time email codes)
- Account service (registration, confirmation, login, password reset)
- Notifiers (console / SMTP / HTTP mail API)
"""

from .notifier_base import (
    Message,
    NotificationError,
    Notifier,
)
from .notifier_factory import get_notifier
from .notifiers import (
    ConsoleNotifier,
    HttpMailNotifier,
    SmtpNotifier,
)
from .credential_store import CredentialStore
from .verification_ledger import VerificationLedger, generate_code
from .account_service import AccountService, build_account_service

__all__ = [
    # Notification
    "Message",
    "NotificationError",
    "Notifier",
    "get_notifier",
    "ConsoleNotifier",
    "HttpMailNotifier",
    "SmtpNotifier",
    # Lifecycle
    "CredentialStore",
    "VerificationLedger",
    "generate_code",
    "AccountService",
    "build_account_service",
]
