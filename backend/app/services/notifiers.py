"""
Notifier implementations

- ConsoleNotifier: writes messages to the log (development)
- SmtpNotifier: plain SMTP, run in a worker thread
- HttpMailNotifier: JSON POST to a transactional mail API
"""
import asyncio
import logging
import smtplib
from email.mime.text import MIMEText
from typing import Optional

import httpx

from .notifier_base import Message, NotificationError, Notifier

logger = logging.getLogger("uvicorn.error")


class ConsoleNotifier(Notifier):
    """Logs the full message instead of sending it."""

    async def send(self, message: Message) -> None:
        logger.info("[mail:console] to=%s subject=%s\n%s", message.to, message.subject, message.body)

    def is_available(self) -> bool:
        return True

    @property
    def name(self) -> str:
        return "Console"


class SmtpNotifier(Notifier):

    def __init__(
        self,
        host: Optional[str],
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = True,
        sender: str = "noreply@example.com",
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.sender = sender
        self.timeout = timeout

    def _build(self, message: Message) -> MIMEText:
        msg = MIMEText(message.body, "plain", "utf-8")
        msg["Subject"] = message.subject
        msg["From"] = self.sender
        msg["To"] = message.to
        return msg

    def _send_sync(self, message: Message) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if self.use_tls:
                server.starttls()
            if self.username:
                server.login(self.username, self.password or "")
            server.send_message(self._build(message))

    async def send(self, message: Message) -> None:
        if not self.is_available():
            raise NotificationError("SMTP_HOST is not configured")
        # smtplib blocks, run it in the default thread pool
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._send_sync, message)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"SMTP delivery to {message.to} failed: {e}") from e

    def is_available(self) -> bool:
        return bool(self.host)

    @property
    def name(self) -> str:
        return "SMTP"


class HttpMailNotifier(Notifier):
    """
    Sends through an HTTP mail API.

    Request: POST {api_url} with bearer API key and JSON
    {"from", "to", "subject", "text"}; any 2xx response counts as accepted.
    """

    def __init__(
        self,
        api_url: Optional[str],
        api_key: Optional[str],
        sender: str = "noreply@example.com",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.sender = sender
        self.timeout = timeout
        self._transport = transport

    async def send(self, message: Message) -> None:
        if not self.is_available():
            raise NotificationError("MAIL_API_URL / MAIL_API_KEY are not configured")
        headers = {"Authorization": f"Bearer {self.api_key}"}
        payload = {
            "from": self.sender,
            "to": message.to,
            "subject": message.subject,
            "text": message.body,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(self.api_url, json=payload, headers=headers)
                resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NotificationError(
                f"mail API rejected message to {message.to}: HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise NotificationError(f"mail API unreachable: {e}") from e

    def is_available(self) -> bool:
        return bool(self.api_url and self.api_key)

    @property
    def name(self) -> str:
        return "HTTP mail API"
