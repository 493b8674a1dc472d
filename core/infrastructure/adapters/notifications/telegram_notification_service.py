"""
Telegram messenger.

Sends messages via the Telegram Bot API. Failures raise; the notification
fan-out decides what to do with them.
"""
from typing import Optional
import logging
import aiohttp

from core.application.interfaces import IMessenger
from core.settings.modules.integrations_settings import TelegramSettings


logger = logging.getLogger(__name__)


class TelegramDeliveryError(Exception):
    """Telegram refused or did not answer the request."""


class TelegramMessenger(IMessenger):
    """
    Telegram implementation of the messaging channel.

    Customer messages go to the user's ``telegram_id``; administrator
    messages go to ``TELEGRAM_ADMIN_CHAT_ID``.
    """

    def __init__(self, settings: TelegramSettings, session: Optional[aiohttp.ClientSession] = None):
        self.settings = settings
        self.bot_token = settings.token
        self.admin_chat_id = settings.admin_chat_id
        self.prefix = settings.prefix
        self.api_url = f"{settings.api_url.rstrip('/')}/bot{self.bot_token}/sendMessage"
        self._session = session
        logger.info("TelegramMessenger initialized")

    async def send_message(self, chat_id: str, text: str) -> None:
        if not self.bot_token:
            raise TelegramDeliveryError("TELEGRAM_BOT_TOKEN is not configured")
        await self._post({"chat_id": chat_id, "text": text, "parse_mode": "HTML"})
        logger.info(f"Telegram message sent to {chat_id}")

    async def send_admin_message(self, text: str) -> None:
        if not self.admin_chat_id:
            logger.warning("TELEGRAM_ADMIN_CHAT_ID not configured, skipping admin message")
            return
        await self.send_message(self.admin_chat_id, f"{self.prefix} {text}")

    async def _post(self, payload: dict) -> None:
        if self._session is not None:
            await self._send(self._session, payload)
            return
        async with aiohttp.ClientSession() as session:
            await self._send(session, payload)

    async def _send(self, session: aiohttp.ClientSession, payload: dict) -> None:
        try:
            async with session.post(self.api_url, json=payload) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise TelegramDeliveryError(f"Telegram API error: {response.status} - {error_text}")
        except aiohttp.ClientError as e:
            raise TelegramDeliveryError(f"Telegram API unreachable: {e}") from e
