"""
Notifier Abstract Interface

Provides a unified "send a message to an address" interface for the
different outbound mail transports (console / SMTP / HTTP mail API).
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class Message:
    """Outbound message"""
    to: str
    subject: str
    body: str

    def __repr__(self):
        # Body may contain a verification code, keep it out of logs
        return f"Message(to='{self.to}', subject='{self.subject}')"


class NotificationError(Exception):
    """Raised by a notifier when the transport refused or failed to send."""


class Notifier(ABC):
    """Notifier Abstract Base Class"""

    @abstractmethod
    async def send(self, message: Message) -> None:
        """
        Deliver a message

        Raises:
        - NotificationError: transport failure
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the transport is configured"""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Transport name (e.g., "SMTP")"""
        pass
