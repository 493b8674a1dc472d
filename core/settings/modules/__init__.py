# Settings modules
from .app_settings import AppSettings, IntegrationsSettings, get_app_settings, load_app_settings
from .auth_settings import AuthSettings
from .checkout_settings import CheckoutSettings
from .database_settings import DatabaseSettings
from .integrations_settings import EmailSettings, TelegramSettings
from .redis_settings import RedisSettings
from .yookassa_settings import YooKassaSettings

__all__ = [
    "AppSettings",
    "AuthSettings",
    "CheckoutSettings",
    "DatabaseSettings",
    "EmailSettings",
    "IntegrationsSettings",
    "RedisSettings",
    "TelegramSettings",
    "YooKassaSettings",
    "get_app_settings",
    "load_app_settings",
]
