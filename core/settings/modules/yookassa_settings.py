from __future__ import annotations

from pydantic import Field

from core.settings.modules.base_settings import StorefrontBaseSettings


class YooKassaSettings(StorefrontBaseSettings):
    """
    YooKassa payment gateway settings.
    Loaded from .env file with exact variable name matching.
    """

    enabled: bool = Field(default=False, alias="YOOKASSA_ENABLED")
    shop_id: str = Field(default="", alias="YOOKASSA_SHOP_ID")
    secret_key: str = Field(default="", alias="YOOKASSA_SECRET_KEY")
    api_url: str = Field(default="https://api.yookassa.ru/v3", alias="YOOKASSA_API_URL")
    return_url: str = Field(default="http://localhost:3000/orders", alias="YOOKASSA_RETURN_URL")
    currency: str = Field(default="RUB", alias="YOOKASSA_CURRENCY")
    timeout_seconds: float = Field(default=10.0, gt=0, alias="YOOKASSA_TIMEOUT_SECONDS")
    verify_notifications: bool = Field(default=True, alias="YOOKASSA_VERIFY_NOTIFICATIONS")
