"""
Recording email and messenger implementations.

Used when a channel is disabled in settings and by the test suite.
"""
from typing import Optional
import logging

from core.application.interfaces import IEmailSender, IMessenger


logger = logging.getLogger(__name__)


class MockEmailSender(IEmailSender):
    """Logs email instead of sending it."""

    def __init__(self, fail_with: Optional[Exception] = None):
        self.sent = []
        self.fail_with = fail_with

    async def send(self, to: str, subject: str, html: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append({"to": to, "subject": subject, "html": html})
        logger.info(f"📧 EMAIL to {to}: {subject}")


class MockMessenger(IMessenger):
    """Logs messages instead of sending them."""

    def __init__(self, fail_with: Optional[Exception] = None):
        self.messages = []
        self.admin_messages = []
        self.fail_with = fail_with

    async def send_message(self, chat_id: str, text: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.messages.append({"chat_id": chat_id, "text": text})
        logger.info(f"🔔 MESSAGE to {chat_id}: {text}")

    async def send_admin_message(self, text: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.admin_messages.append(text)
        logger.info(f"🔔 ADMIN MESSAGE: {text}")

    def clear(self) -> None:
        self.messages.clear()
        self.admin_messages.clear()
