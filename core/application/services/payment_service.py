"""
Payment service.

Facade over the payment gateway used by the order orchestrator and the
administrative payment endpoints. Gateway errors are never swallowed here.
"""
import logging
from typing import Optional

from core.application.dtos.payment_dto import PaymentDTO
from core.application.interfaces import IPaymentGateway
from core.domain.entities import Order
from core.domain.value_objects import ExecutionID


logger = logging.getLogger(__name__)


class PaymentService:
    """Order-aware operations on top of ``IPaymentGateway``."""

    def __init__(self, gateway: IPaymentGateway, return_url: str):
        self._gateway = gateway
        self._return_url = return_url

    async def create_for_order(self, order: Order, execution_id: Optional[ExecutionID] = None) -> PaymentDTO:
        """
        Create the gateway payment for an unsaved order.

        Raises:
            GatewayUnavailable: network error or timeout
            GatewayRejected: the provider refused the payment
        """
        prefix = f"[{execution_id.short()}] " if execution_id else ""
        logger.info(
            f"{prefix}Creating payment for {order.order_number}: "
            f"{order.net_amount} via {order.payment_method.value}"
        )
        payment = await self._gateway.create_payment(
            amount=order.net_amount,
            description=f"Заказ №{order.order_number}",
            metadata={"orderId": order.id, "orderNumber": str(order.order_number)},
            return_url=self._return_url,
            method=order.payment_method,
        )
        logger.info(f"{prefix}✅ Payment {payment.id} created ({payment.status})")
        return payment

    async def get_payment(self, payment_id: str) -> PaymentDTO:
        return await self._gateway.get_payment(payment_id)

    async def capture_payment(self, payment_id: str) -> PaymentDTO:
        logger.info(f"Capturing payment {payment_id}")
        return await self._gateway.capture_payment(payment_id)

    async def cancel_payment(self, payment_id: str) -> PaymentDTO:
        logger.info(f"Cancelling payment {payment_id}")
        return await self._gateway.cancel_payment(payment_id)

    async def refund_payment(self, payment_id: str) -> str:
        logger.info(f"Refunding payment {payment_id}")
        return await self._gateway.refund_payment(payment_id)

    async def reverse_for_order(self, order: Order, execution_id: Optional[ExecutionID] = None) -> Optional[str]:
        """
        Undo the order's payment ahead of a cancellation or refund.

        A paid order is refunded; an unpaid one has its pending payment
        cancelled. Orders without a payment id need nothing.

        Returns:
            "refund", "cancel" or None
        """
        if not order.payment_id:
            return None

        prefix = f"[{execution_id.short()}] " if execution_id else ""
        if order.payment_status:
            status = await self.refund_payment(order.payment_id)
            logger.info(f"{prefix}Refund for {order.order_number}: {status}")
            return "refund"

        payment = await self.cancel_payment(order.payment_id)
        logger.info(f"{prefix}Pending payment for {order.order_number} cancelled: {payment.status}")
        return "cancel"
