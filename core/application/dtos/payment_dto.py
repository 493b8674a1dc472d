"""Application DTOs for payment gateway operations."""

from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from core.application.dtos.base import ApiModel


class PaymentDTO(ApiModel):
    """Gateway payment as seen by the order core."""

    id: str = Field(..., description="Gateway payment id")
    status: str = Field(..., description="Gateway status (pending, succeeded, canceled, ...)")
    paid: bool = Field(default=False, description="Whether the gateway considers it paid")
    amount: Optional[Decimal] = Field(None, description="Payment amount")
    currency: str = Field(default="RUB", description="Currency code")
    confirmation_url: Optional[str] = Field(None, description="Redirect URL for the customer")

    model_config = {"frozen": True}


class ProviderNotification(BaseModel):
    """
    Payment provider webhook payload.

    Only the fields the order core reads are declared; the rest of the
    provider payload is ignored.
    """

    type: str = Field(default="notification")
    event: str = Field(..., description="Event name, e.g. payment.succeeded")
    object: Dict[str, Any] = Field(default_factory=dict, description="Payment or refund object")

    model_config = {"frozen": True, "extra": "ignore"}

    @property
    def payment_id(self) -> Optional[str]:
        if self.event.startswith("refund."):
            return self.object.get("payment_id")
        return self.object.get("id")
