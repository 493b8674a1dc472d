"""
YooKassa payment gateway adapter.

Maps the provider-agnostic IPaymentGateway onto the YooKassa client and
translates SDK errors into the domain's gateway errors.
"""
import logging
from decimal import Decimal
from typing import Any, Dict, Optional

from core.application.dtos.payment_dto import PaymentDTO
from core.application.interfaces import IPaymentGateway
from core.domain.enums import PaymentMethod
from core.domain.exceptions import GatewayRejected, GatewayUnavailable
from core.domain.value_objects import Money
from core.settings.modules.yookassa_settings import YooKassaSettings
from storefront_sdk.yookassa import YooKassaClient, YooKassaConnectionError, YooKassaHTTPError


logger = logging.getLogger(__name__)


# Online methods only; offline ones never reach the gateway.
PAYMENT_METHOD_TYPES: Dict[PaymentMethod, str] = {
    PaymentMethod.CARD: "bank_card",
    PaymentMethod.SBP: "sbp",
}

_missing = [m for m in PaymentMethod if m.requires_online_payment and m not in PAYMENT_METHOD_TYPES]
if _missing:
    raise RuntimeError(f"No YooKassa payment type for online methods: {_missing}")


class YooKassaPaymentGateway(IPaymentGateway):

    def __init__(self, client: YooKassaClient, currency: str = "RUB"):
        self._client = client
        self._currency = currency

    @classmethod
    def from_settings(cls, settings: YooKassaSettings) -> "YooKassaPaymentGateway":
        client = YooKassaClient(
            shop_id=settings.shop_id,
            secret_key=settings.secret_key,
            api_url=settings.api_url,
            timeout_seconds=settings.timeout_seconds,
        )
        return cls(client, currency=settings.currency)

    async def close(self) -> None:
        await self._client.close()

    async def create_payment(
        self,
        amount: Money,
        description: str,
        metadata: Dict[str, Any],
        return_url: str,
        method: PaymentMethod,
    ) -> PaymentDTO:
        payment_type = PAYMENT_METHOD_TYPES.get(method)
        if payment_type is None:
            raise GatewayRejected(f"Payment method {method.value} cannot be paid online")

        body = {
            "amount": {"value": amount.as_gateway_value(), "currency": amount.currency},
            "payment_method_data": {"type": payment_type},
            "confirmation": {"type": "redirect", "return_url": return_url},
            "capture": True,
            "description": description[:128],
            "metadata": metadata,
        }
        data = await self._call("create_payment", self._client.create_payment(body))
        return self._to_dto(data)

    async def get_payment(self, payment_id: str) -> PaymentDTO:
        return self._to_dto(await self._call("get_payment", self._client.get_payment(payment_id)))

    async def capture_payment(self, payment_id: str) -> PaymentDTO:
        return self._to_dto(await self._call("capture_payment", self._client.capture_payment(payment_id)))

    async def cancel_payment(self, payment_id: str) -> PaymentDTO:
        return self._to_dto(await self._call("cancel_payment", self._client.cancel_payment(payment_id)))

    async def refund_payment(self, payment_id: str, amount: Optional[Money] = None) -> str:
        if amount is None:
            payment = await self.get_payment(payment_id)
            amount = Money(payment.amount or Decimal("0"), payment.currency)

        body = {
            "payment_id": payment_id,
            "amount": {"value": amount.as_gateway_value(), "currency": amount.currency},
        }
        data = await self._call("refund_payment", self._client.create_refund(body))
        return data.get("status", "unknown")

    @staticmethod
    async def _call(operation: str, request) -> Dict[str, Any]:
        try:
            return await request
        except YooKassaConnectionError as e:
            logger.error(f"❌ YooKassa {operation} unavailable: {e}")
            raise GatewayUnavailable(f"Payment provider unavailable: {e}") from e
        except YooKassaHTTPError as e:
            logger.error(f"❌ YooKassa {operation} failed: {e}")
            if e.is_retryable:
                raise GatewayUnavailable(str(e)) from e
            raise GatewayRejected(str(e)) from e

    def _to_dto(self, data: Dict[str, Any]) -> PaymentDTO:
        amount = data.get("amount") or {}
        confirmation = data.get("confirmation") or {}
        return PaymentDTO(
            id=data["id"],
            status=data.get("status", "unknown"),
            paid=bool(data.get("paid", False)),
            amount=Decimal(amount["value"]) if "value" in amount else None,
            currency=amount.get("currency", self._currency),
            confirmation_url=confirmation.get("confirmation_url"),
        )
