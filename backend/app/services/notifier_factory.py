"""
Notifier Factory

Selects the outbound mail transport from settings.NOTIFIER_BACKEND.
"""
import logging

from .notifier_base import Notifier
from .notifiers import ConsoleNotifier, HttpMailNotifier, SmtpNotifier

logger = logging.getLogger("uvicorn.error")


def get_notifier(settings) -> Notifier:
    """
    Build the configured notifier

    Returns:
    - Notifier: console / smtp / http implementation

    Raises:
    - RuntimeError: unknown backend, or backend selected but not configured
    """
    backend = (settings.notifier_backend or "console").lower()
    if backend == "console":
        notifier: Notifier = ConsoleNotifier()
    elif backend == "smtp":
        notifier = SmtpNotifier(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            sender=settings.mail_from,
        )
    elif backend == "http":
        notifier = HttpMailNotifier(
            api_url=settings.mail_api_url,
            api_key=settings.mail_api_key,
            sender=settings.mail_from,
        )
    else:
        raise RuntimeError(f"Unknown NOTIFIER_BACKEND: {settings.notifier_backend!r}")

    if not notifier.is_available():
        raise RuntimeError(f"{notifier.name} notifier selected but not configured. Check .env")

    logger.info("[mail] Using %s notifier", notifier.name)
    return notifier
