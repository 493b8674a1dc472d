"""
Reconciliation of orders left inconsistent by a partial checkout failure.

An order persisted at checkout may still have lines whose stock was never
deducted, or a cart that was never cleared. This service finishes that work
later: from the admin endpoint, from a periodic sweep or from the
reconciliation stream consumer.
"""
import logging

from core.application.dtos.order_dto import ReconciliationReportDTO
from core.application.services.inventory_service import InventoryService
from core.domain.entities import Order
from core.domain.exceptions import OrderNotFound, StorefrontError
from core.domain.repositories import CartRepository, OrderRepository
from core.domain.state_machine import is_terminal


logger = logging.getLogger(__name__)


class ReconciliationService:

    def __init__(self, orders: OrderRepository, carts: CartRepository, inventory: InventoryService):
        self._orders = orders
        self._carts = carts
        self._inventory = inventory

    async def reconcile_order(self, order_id: str) -> bool:
        """
        Retry the unfinished checkout steps of one order.

        Returns:
            True if the order no longer needs reconciliation
        """
        order = await self._orders.get(order_id)
        if order is None:
            raise OrderNotFound()

        if not order.needs_reconciliation:
            return True

        if is_terminal(order.status):
            logger.info(
                f"Order {order.order_number} is {order.status.value}, stock is not deducted "
                f"for reversed orders"
            )
            return False

        await self._deduct_missing_stock(order)
        if not order.cart_cleared:
            await self._remove_ordered_lines_from_cart(order)

        await self._orders.update_flags(order)

        if order.needs_reconciliation:
            logger.warning(f"Order {order.order_number} still needs reconciliation")
            return False

        logger.info(f"✅ Order {order.order_number} reconciled")
        return True

    async def sweep(self) -> ReconciliationReportDTO:
        """Reconcile every order the repository reports as inconsistent."""
        pending = await self._orders.list_needing_reconciliation()
        repaired, still_pending = [], []

        for order in pending:
            try:
                done = await self.reconcile_order(order.id)
            except StorefrontError as e:
                logger.error(f"Reconciliation of {order.order_number} failed: {e.message}")
                done = False
            (repaired if done else still_pending).append(str(order.order_number))

        logger.info(
            f"Reconciliation sweep: checked={len(pending)}, repaired={len(repaired)}, "
            f"pending={len(still_pending)}"
        )
        return ReconciliationReportDTO(
            checked=len(pending),
            repaired=repaired,
            still_pending=still_pending,
        )

    async def _deduct_missing_stock(self, order: Order) -> None:
        for line in order.items:
            if line.stock_deducted:
                continue
            try:
                await self._inventory.decrement_stock(line.product_id, line.article, line.quantity)
            except StorefrontError as e:
                logger.error(
                    f"Order {order.order_number}: article {line.article} still not deducted: {e.message}"
                )
                continue

            order.mark_line_deducted(line)
            await self._inventory.increment_purchase_count(line.product_id, line.article, line.quantity)

    async def _remove_ordered_lines_from_cart(self, order: Order) -> None:
        """
        Take the ordered quantities out of the owner's cart.

        The cart may hold items added after checkout, so it is not cleared
        wholesale.
        """
        cart = await self._carts.get_by_owner(order.owner.user_id)
        if cart is not None:
            for line in order.items:
                item = cart.find(line.product_id, line.article)
                if item is None:
                    continue
                remaining = item.quantity - line.quantity
                if remaining >= 1:
                    cart.set_quantity(line.product_id, line.article, remaining)
                else:
                    cart.remove_item(line.product_id, line.article)
            await self._carts.save(cart)

        order.mark_cart_cleared()
