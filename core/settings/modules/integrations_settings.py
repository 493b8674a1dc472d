from __future__ import annotations

from typing import Optional

from pydantic import Field

from core.settings.modules.base_settings import StorefrontBaseSettings


class TelegramSettings(StorefrontBaseSettings):
    """
    Telegram integration settings.
    Loaded from .env file with exact variable name matching.
    """

    enabled: bool = Field(default=False, alias="STOREFRONT_TELEGRAM_ENABLED")
    token: str = Field(default="", alias="TELEGRAM_BOT_TOKEN")
    admin_chat_id: Optional[str] = Field(default=None, alias="TELEGRAM_ADMIN_CHAT_ID")
    prefix: str = Field(default="[STOREFRONT]", alias="STOREFRONT_TELEGRAM_PREFIX")
    api_url: str = Field(default="https://api.telegram.org", alias="TELEGRAM_API_URL")


class EmailSettings(StorefrontBaseSettings):
    """
    SMTP settings for transactional email.
    Loaded from .env file with exact variable name matching.
    """

    enabled: bool = Field(default=False, alias="STOREFRONT_EMAIL_ENABLED")
    smtp_host: str = Field(default="smtp.yandex.ru", alias="EMAIL_SMTP_HOST")
    smtp_port: int = Field(default=465, alias="EMAIL_SMTP_PORT")
    sender: str = Field(default="", alias="EMAIL_FROM")
    password: str = Field(default="", alias="EMAIL_PASSWORD")
    sender_name: str = Field(default="Storefront", alias="EMAIL_SENDER_NAME")
    timeout_seconds: float = Field(default=30.0, gt=0, alias="EMAIL_TIMEOUT_SECONDS")
