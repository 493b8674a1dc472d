from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, ConfigDict

from core.settings.modules.auth_settings import AuthSettings
from core.settings.modules.checkout_settings import CheckoutSettings
from core.settings.modules.database_settings import DatabaseSettings
from core.settings.modules.integrations_settings import EmailSettings, TelegramSettings
from core.settings.modules.redis_settings import RedisSettings
from core.settings.modules.yookassa_settings import YooKassaSettings


class IntegrationsSettings(BaseModel):
    """Aggregates notification channel settings as nested objects."""

    model_config = ConfigDict(extra="ignore")

    telegram: TelegramSettings
    email: EmailSettings


class AppSettings(BaseModel):
    """Application settings aggregator."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="ignore")

    yookassa: YooKassaSettings
    auth: AuthSettings
    database: DatabaseSettings
    redis: RedisSettings
    checkout: CheckoutSettings
    integrations: IntegrationsSettings

    @property
    def telegram(self) -> TelegramSettings:
        return self.integrations.telegram

    @property
    def email(self) -> EmailSettings:
        return self.integrations.email


def load_app_settings() -> AppSettings:
    """Read every section from the environment."""
    return AppSettings(
        yookassa=YooKassaSettings(),
        auth=AuthSettings(),
        database=DatabaseSettings(),
        redis=RedisSettings(),
        checkout=CheckoutSettings(),
        integrations=IntegrationsSettings(
            telegram=TelegramSettings(),
            email=EmailSettings(),
        ),
    )


@lru_cache()
def get_app_settings() -> AppSettings:
    return load_app_settings()
