from __future__ import annotations

from pydantic import Field

from core.settings.modules.base_settings import StorefrontBaseSettings


class RedisSettings(StorefrontBaseSettings):
    """Redis Streams settings for the reconciliation queue."""

    enabled: bool = Field(default=False, alias="STOREFRONT_REDIS_ENABLED")
    url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")
    reconciliation_stream: str = Field(default="storefront:reconciliation", alias="RECONCILIATION_STREAM")
    reconciliation_group: str = Field(default="storefront-reconciler", alias="RECONCILIATION_GROUP")
    consumer_name: str = Field(default="reconciler-1", alias="RECONCILIATION_CONSUMER")
    retry_seconds: float = Field(default=30.0, gt=0, alias="RECONCILIATION_RETRY_SECONDS")
