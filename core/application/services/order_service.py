"""
Order orchestrator.

Coordinates checkout (cart, inventory, payment, persistence, notification)
and drives status transitions coming from administrators and from the
payment gateway webhook. Both producers go through the same transition
table in ``core.domain.state_machine``.
"""
import logging
from typing import List, Optional

from core.application.dtos.order_dto import (
    CheckoutResponse,
    CreateOrderRequest,
    OrderDTO,
    OrderListDTO,
    UpdateOrderStatusRequest,
)
from core.application.dtos.payment_dto import ProviderNotification
from core.application.interfaces import IPaymentGateway, IReconciliationQueue, ITaskScheduler
from core.application.services.cart_service import CartService
from core.application.services.inventory_service import InventoryService
from core.application.services.notification_service import NotificationFanout
from core.application.services.payment_service import PaymentService
from core.domain.entities import Order, OrderOwner
from core.domain.enums import OrderStatus
from core.domain.exceptions import (
    Forbidden,
    InsufficientStock,
    InvalidStatusTransition,
    OrderNotFound,
)
from core.domain.repositories import OrderRepository
from core.domain.state_machine import TransitionSource, check_transition
from core.domain.value_objects import ExecutionID, UserIdentity


logger = logging.getLogger(__name__)


PAYMENT_SUCCEEDED = "payment.succeeded"
PAYMENT_CANCELED = "payment.canceled"
REFUND_SUCCEEDED = "refund.succeeded"


class OrderService:
    """
    The order state machine and checkout coordinator.

    Collaborators are injected; the service holds no module-level state so
    one instance can be shared by every request of the process.
    """

    def __init__(
        self,
        orders: OrderRepository,
        cart_service: CartService,
        inventory: InventoryService,
        payments: PaymentService,
        gateway: IPaymentGateway,
        notifications: NotificationFanout,
        scheduler: ITaskScheduler,
        reconciliation_queue: IReconciliationQueue,
        notification_delay: float = 1.0,
        verify_notifications: bool = True,
        currency: str = "RUB",
    ):
        self._orders = orders
        self._carts = cart_service
        self._inventory = inventory
        self._payments = payments
        self._gateway = gateway
        self._notifications = notifications
        self._scheduler = scheduler
        self._reconciliation_queue = reconciliation_queue
        self._notification_delay = notification_delay
        self._verify_notifications = verify_notifications
        self._currency = currency

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    async def create_order(self, identity: UserIdentity, request: CreateOrderRequest) -> CheckoutResponse:
        """
        Turn the caller's cart into an order.

        Steps up to the payment creation have no side effects and raise
        typed errors. Once the order is persisted the caller always gets
        success; stock or cart failures after that point are logged and
        queued for reconciliation.

        Raises:
            ValidationFailed: bad delivery payload
            EmptyCart: nothing to check out
            InsufficientStock: a line asks for more than is in stock
            GatewayUnavailable / GatewayRejected: payment could not be created
        """
        execution_id = ExecutionID.generate()
        prefix = f"[{execution_id.short()}]"
        logger.info(
            f"{prefix} Checkout started for user {identity.user_id} "
            f"({request.delivery_type.value}, {request.payment_method.value})"
        )

        # 1. Delivery payload
        delivery_info = request.delivery_info.to_domain()
        delivery_info.validate_for(request.delivery_type)

        # 2. Cart
        cart = await self._carts.load_for_checkout(identity.user_id)

        # 3. Pre-flight stock check, nothing is mutated yet
        for item in cart.items:
            if not await self._inventory.check_availability(item.product_id, item.article, item.quantity):
                available = await self._inventory.available_stock(item.product_id, item.article)
                logger.warning(
                    f"{prefix} Insufficient stock for article {item.article}: "
                    f"available={available}, requested={item.quantity}"
                )
                raise InsufficientStock(article=item.article, available=available, requested=item.quantity)

        # 4. Price snapshot
        lines, totals = await self._carts.materialize_for_checkout(cart)

        # 5-6. Unsaved order with its initial status
        order = Order.create(
            owner=OrderOwner(
                user_id=identity.user_id,
                email=identity.email,
                telegram_id=identity.telegram_id,
            ),
            lines=lines,
            delivery_type=request.delivery_type,
            delivery_info=delivery_info,
            payment_method=request.payment_method,
            currency=self._currency,
            execution_id=execution_id,
        )

        # 7. Payment, before anything is persisted
        payment_url: Optional[str] = None
        if order.requires_payment:
            payment = await self._payments.create_for_order(order, execution_id)
            order.attach_payment(payment.id)
            payment_url = payment.confirmation_url

        # 8. Persist; this is the point of no return
        await self._orders.add(order)
        self._log_events(order, prefix)
        logger.info(
            f"{prefix} ✅ Order {order.order_number} created: status={order.status.value}, "
            f"net={order.net_amount}"
        )

        # 9. Administrators
        admin_view = order.snapshot()
        self._scheduler.schedule(
            lambda: self._notifications.notify_order_created(admin_view),
            name=f"notify-admins-{order.order_number}",
        )

        # 10. Inventory
        failures: List[str] = []
        for line in order.items:
            try:
                await self._inventory.decrement_stock(line.product_id, line.article, line.quantity)
            except Exception as e:
                failures.append(f"stock article={line.article}: {e}")
                logger.error(
                    f"{prefix} ❌ RECONCILIATION REQUIRED: stock deduction failed for order "
                    f"{order.order_number}, article {line.article}, qty {line.quantity}: {e!r}",
                    exc_info=True,
                )
                continue

            order.mark_line_deducted(line)
            try:
                await self._inventory.increment_purchase_count(line.product_id, line.article, line.quantity)
            except Exception as e:
                logger.error(
                    f"{prefix} Purchase counter not updated for order {order.order_number}, "
                    f"article {line.article}: {e!r}"
                )

        # 11. Cart
        try:
            await self._carts.clear_after_checkout(cart)
            order.mark_cart_cleared()
        except Exception as e:
            failures.append(f"cart: {e}")
            logger.error(
                f"{prefix} ❌ RECONCILIATION REQUIRED: cart of user {identity.user_id} not cleared "
                f"after order {order.order_number}: {e!r}",
                exc_info=True,
            )

        await self._persist_flags(order, failures, prefix)

        # 12. Customer-facing notifications, detached and delayed
        customer_view = order.snapshot()
        push_status = customer_view.status != OrderStatus.WAITING_FOR_PAYMENT
        self._scheduler.schedule(
            lambda: self._notifications.notify_order_confirmation(customer_view, push_status=push_status),
            name=f"notify-customer-{order.order_number}",
            delay=self._notification_delay,
        )

        # 13.
        return CheckoutResponse(order=OrderDTO.from_entity(order), payment_url=payment_url)

    async def _persist_flags(self, order: Order, failures: List[str], prefix: str) -> None:
        try:
            await self._orders.update_flags(order)
        except Exception as e:
            failures.append(f"flags: {e}")
            logger.error(
                f"{prefix} ❌ RECONCILIATION REQUIRED: flags of order {order.order_number} "
                f"not persisted: {e!r}",
                exc_info=True,
            )

        if not failures:
            return

        reason = "; ".join(failures)
        try:
            await self._reconciliation_queue.publish(order.id, str(order.order_number), reason)
        except Exception as e:
            logger.error(
                f"{prefix} ❌ RECONCILIATION REQUIRED: order {order.order_number} could not be "
                f"queued ({reason}): {e!r}",
                exc_info=True,
            )

    # ------------------------------------------------------------------
    # Administrative status changes
    # ------------------------------------------------------------------

    async def update_status(self, order_id: str, request: UpdateOrderStatusRequest) -> OrderDTO:
        """
        Apply an administrative status change.

        Re-requesting the current status is a no-op that returns the order
        unchanged. Cancelling or refunding reverses the payment first; a
        gateway failure aborts the change.

        Raises:
            OrderNotFound
            InvalidStatusTransition
            GatewayUnavailable / GatewayRejected
        """
        execution_id = ExecutionID.generate()
        prefix = f"[{execution_id.short()}]"

        order = await self._orders.get(order_id)
        if order is None:
            raise OrderNotFound()

        if not check_transition(order.status, request.status, TransitionSource.ADMIN):
            logger.info(f"{prefix} Order {order.order_number} already {order.status.value}, nothing to do")
            return OrderDTO.from_entity(order)

        reversal: Optional[str] = None
        if request.status in (OrderStatus.CANCELLED, OrderStatus.REFUNDED):
            reversal = await self._payments.reverse_for_order(order, execution_id)

        previous = order.status
        order.transition_to(
            request.status,
            reason=request.cancellation_reason,
            delivery_date=request.delivery_date,
            tracking_number=request.tracking_number,
            execution_id=execution_id,
        )

        if not await self._orders.update(order, expected_status=previous):
            current = await self._orders.get(order_id)
            current_status = current.status.value if current else previous.value
            logger.error(
                f"{prefix} Concurrent status change on {order.order_number}: "
                f"expected {previous.value}, found {current_status}"
            )
            if reversal:
                await self._report_orphaned_reversal(order, reversal, current_status, prefix)
            raise InvalidStatusTransition(current_status, request.status.value)

        self._log_events(order, prefix)
        logger.info(f"{prefix} ✅ Order {order.order_number}: {previous.value} → {order.status.value}")

        view = order.snapshot()
        self._scheduler.schedule(
            lambda: self._notifications.notify_order_status_changed(view),
            name=f"notify-status-{order.order_number}",
        )
        return OrderDTO.from_entity(order)

    async def _report_orphaned_reversal(
        self,
        order: Order,
        reversal: str,
        current_status: str,
        prefix: str,
    ) -> None:
        """The gateway already moved money but the status write lost the race."""
        reason = (
            f"payment {order.payment_id} {reversal} applied, but order stayed "
            f"{current_status} after a concurrent status change"
        )
        logger.error(f"{prefix} ❌ RECONCILIATION REQUIRED: order {order.order_number}: {reason}")
        try:
            await self._reconciliation_queue.publish(order.id, str(order.order_number), reason)
        except Exception as e:
            logger.error(
                f"{prefix} ❌ RECONCILIATION REQUIRED: order {order.order_number} could not be "
                f"queued ({reason}): {e!r}",
                exc_info=True,
            )

    # ------------------------------------------------------------------
    # Payment provider webhook
    # ------------------------------------------------------------------

    async def handle_provider_notification(self, notification: ProviderNotification) -> bool:
        """
        Process one provider event.

        Never raises: errors are logged and reported as False, the HTTP
        acknowledgment does not depend on this result.

        Returns:
            True if an order changed state
        """
        execution_id = ExecutionID.generate()
        prefix = f"[{execution_id.short()}]"
        try:
            return await self._handle_notification(notification, execution_id, prefix)
        except Exception as e:
            logger.error(
                f"{prefix} ❌ Webhook processing failed for {notification.event} "
                f"(payment {notification.payment_id}): {e!r}",
                exc_info=True,
            )
            return False

    async def _handle_notification(
        self,
        notification: ProviderNotification,
        execution_id: ExecutionID,
        prefix: str,
    ) -> bool:
        payment_id = notification.payment_id
        logger.info(f"{prefix} Provider event {notification.event} for payment {payment_id}")

        if notification.event in (PAYMENT_CANCELED, REFUND_SUCCEEDED):
            logger.info(f"{prefix} {notification.event} for payment {payment_id} recorded, no transition")
            return False

        if notification.event != PAYMENT_SUCCEEDED:
            logger.warning(f"{prefix} Unhandled provider event: {notification.event}")
            return False

        if not payment_id:
            logger.warning(f"{prefix} payment.succeeded without payment id")
            return False

        order = await self._orders.find_by_payment_id(payment_id)
        if order is None:
            logger.warning(f"{prefix} No order for payment {payment_id}")
            return False

        if order.status != OrderStatus.WAITING_FOR_PAYMENT:
            logger.info(
                f"{prefix} Order {order.order_number} already {order.status.value}, "
                f"duplicate notification ignored"
            )
            return False

        if self._verify_notifications:
            payment = await self._gateway.get_payment(payment_id)
            if payment.status != "succeeded" and not payment.paid:
                logger.warning(
                    f"{prefix} Payment {payment_id} reported as succeeded but gateway says "
                    f"{payment.status}, ignoring"
                )
                return False

        previous = order.status
        if not order.confirm_payment(execution_id):
            return False

        if not await self._orders.update(order, expected_status=previous):
            logger.info(f"{prefix} Order {order.order_number} advanced concurrently, skipping")
            return False

        self._log_events(order, prefix)
        logger.info(f"{prefix} ✅ Payment confirmed for {order.order_number}, status → pending")

        view = order.snapshot()
        self._scheduler.schedule(
            lambda: self._notifications.notify_order_status_changed(view),
            name=f"notify-paid-{order.order_number}",
        )
        return True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_order(self, order_id: str, identity: UserIdentity) -> OrderDTO:
        order = await self._get_accessible(order_id, identity)
        return OrderDTO.from_entity(order)

    async def can_access_order(self, order_id: str, identity: UserIdentity) -> bool:
        """Used by the real-time hub before joining an order room."""
        if identity.is_admin:
            return True
        order = await self._orders.get(order_id)
        return order is not None and order.owner.user_id == identity.user_id

    async def list_my_orders(self, identity: UserIdentity) -> OrderListDTO:
        orders = await self._orders.list_by_owner(identity.user_id)
        return OrderListDTO(orders=[OrderDTO.from_entity(o) for o in orders], total=len(orders))

    async def list_orders(self, limit: int = 50, offset: int = 0) -> OrderListDTO:
        orders = await self._orders.list_all(limit=limit, offset=offset)
        total = await self._orders.count_all()
        return OrderListDTO(
            orders=[OrderDTO.from_entity(o) for o in orders],
            total=total,
            limit=limit,
            offset=offset,
        )

    async def _get_accessible(self, order_id: str, identity: UserIdentity) -> Order:
        order = await self._orders.get(order_id)
        if order is None:
            raise OrderNotFound()
        if not identity.is_admin and order.owner.user_id != identity.user_id:
            raise Forbidden("Нет доступа к этому заказу")
        return order

    @staticmethod
    def _log_events(order: Order, prefix: str) -> None:
        for event in order.get_domain_events():
            logger.debug(f"{prefix} {event.event_type}: {event.to_dict()['data']}")
        order.clear_domain_events()
