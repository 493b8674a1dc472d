from __future__ import annotations

from pydantic import Field

from core.settings.modules.base_settings import StorefrontBaseSettings


class CheckoutSettings(StorefrontBaseSettings):
    """Checkout behaviour knobs."""

    notification_delay_seconds: float = Field(default=1.0, ge=0, alias="CHECKOUT_NOTIFICATION_DELAY_SECONDS")
