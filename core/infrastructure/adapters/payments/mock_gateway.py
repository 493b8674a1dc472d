"""
In-process payment gateway.

Used when YooKassa is disabled and by the tests. Payments are kept in a
dict; ``fail_next`` injects a one-shot error for the next call.
"""
import logging
import uuid
from typing import Any, Dict, List, Optional

from core.application.dtos.payment_dto import PaymentDTO
from core.application.interfaces import IPaymentGateway
from core.domain.enums import PaymentMethod
from core.domain.exceptions import GatewayRejected
from core.domain.value_objects import Money


logger = logging.getLogger(__name__)


class MockPaymentGateway(IPaymentGateway):

    def __init__(self, confirmation_base_url: str = "https://pay.example.test/confirm"):
        self.confirmation_base_url = confirmation_base_url
        self.payments: Dict[str, Dict[str, Any]] = {}
        self.calls: List[tuple] = []
        self._fail_next: Optional[Exception] = None

    def fail_next(self, error: Exception) -> None:
        self._fail_next = error

    def mark_paid(self, payment_id: str) -> None:
        """Simulate the customer completing the payment."""
        self.payments[payment_id].update(status="succeeded", paid=True)

    def _record(self, operation: str, *args) -> None:
        self.calls.append((operation, *args))
        if self._fail_next is not None:
            error, self._fail_next = self._fail_next, None
            raise error

    def _get(self, payment_id: str) -> Dict[str, Any]:
        payment = self.payments.get(payment_id)
        if payment is None:
            raise GatewayRejected(f"Payment {payment_id} not found")
        return payment

    @staticmethod
    def _to_dto(payment: Dict[str, Any]) -> PaymentDTO:
        return PaymentDTO(**payment)

    async def create_payment(
        self,
        amount: Money,
        description: str,
        metadata: Dict[str, Any],
        return_url: str,
        method: PaymentMethod,
    ) -> PaymentDTO:
        self._record("create_payment", amount, method, metadata)
        payment_id = str(uuid.uuid4())
        self.payments[payment_id] = {
            "id": payment_id,
            "status": "pending",
            "paid": False,
            "amount": amount.rounded().amount,
            "currency": amount.currency,
            "confirmation_url": f"{self.confirmation_base_url}/{payment_id}",
        }
        logger.info(f"Mock payment {payment_id} created for {amount} ({description})")
        return self._to_dto(self.payments[payment_id])

    async def get_payment(self, payment_id: str) -> PaymentDTO:
        self._record("get_payment", payment_id)
        return self._to_dto(self._get(payment_id))

    async def capture_payment(self, payment_id: str) -> PaymentDTO:
        self._record("capture_payment", payment_id)
        payment = self._get(payment_id)
        payment.update(status="succeeded", paid=True)
        return self._to_dto(payment)

    async def cancel_payment(self, payment_id: str) -> PaymentDTO:
        self._record("cancel_payment", payment_id)
        payment = self._get(payment_id)
        if payment["paid"]:
            raise GatewayRejected(f"Payment {payment_id} is already paid")
        payment.update(status="canceled")
        return self._to_dto(payment)

    async def refund_payment(self, payment_id: str, amount: Optional[Money] = None) -> str:
        self._record("refund_payment", payment_id, amount)
        payment = self._get(payment_id)
        if not payment["paid"]:
            raise GatewayRejected(f"Payment {payment_id} is not paid")
        payment.update(status="refunded")
        return "succeeded"
