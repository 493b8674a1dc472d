"""
Notification fan-out.

Dispatches order events to the real-time hub, email and the messenger.
Every channel is best-effort and isolated: a failing channel is logged with
recipient, event and error, and never stops the other channels or reaches
the caller.
"""
import html
import logging
from typing import Any, Awaitable, Dict, List, Optional

from core.application.dtos.request_dto import SupportRequestDTO
from core.application.interfaces import IEmailSender, IMessenger, IRealtimeHub
from core.domain.entities import Order


logger = logging.getLogger(__name__)


ADMIN_ROOM = "admin-room"

EVENT_ORDER_UPDATED = "order-updated"
EVENT_ORDER_UPDATE = "order-update"
EVENT_ORDER_DETAILS_UPDATED = "order-details-updated"


def user_room(user_id: str) -> str:
    return f"user-{user_id}"


def order_room(order_id: str) -> str:
    return f"order-{order_id}"


class NotificationFanout:
    """
    Multi-channel notifier.

    Channels:
    - real-time push to the owner, to ``admin-room`` and to ``order-<id>``
    - transactional email to the owner
    - Telegram direct message to the owner (if linked) and to the admin chat
    """

    def __init__(
        self,
        hub: IRealtimeHub,
        email_sender: Optional[IEmailSender] = None,
        messenger: Optional[IMessenger] = None,
    ):
        self._hub = hub
        self._email = email_sender
        self._messenger = messenger

    # ------------------------------------------------------------------
    # Order events
    # ------------------------------------------------------------------

    async def notify_order_created(self, order: Order) -> None:
        """Tell administrators a new order exists."""
        payload = self._payload(order, event="created")
        await self._guard(
            "realtime", ADMIN_ROOM, "order-created",
            self._hub.emit_to_room(ADMIN_ROOM, EVENT_ORDER_UPDATE, payload),
        )
        if self._messenger:
            await self._guard(
                "telegram", "admin-chat", "order-created",
                self._messenger.send_admin_message(self._admin_order_text(order)),
            )

    async def notify_order_confirmation(self, order: Order, push_status: bool = True) -> None:
        """
        Customer-facing confirmation after checkout.

        ``push_status`` is False while the order still waits for payment;
        the status push then happens when the gateway confirms.
        """
        if push_status:
            await self._push_status(order, "order-confirmation")

        if self._email and order.owner.email:
            await self._guard(
                "email", order.owner.email, "order-confirmation",
                self._email.send(order.owner.email, "Заказ создан", self._confirmation_html(order)),
            )

        if self._messenger and order.owner.telegram_id:
            await self._guard(
                "telegram", str(order.owner.telegram_id), "order-confirmation",
                self._messenger.send_message(str(order.owner.telegram_id), self._confirmation_text(order)),
            )

    async def notify_order_status_changed(self, order: Order) -> None:
        await self._push_status(order, "status-changed")

        if self._email and order.owner.email:
            await self._guard(
                "email", order.owner.email, "status-changed",
                self._email.send(
                    order.owner.email,
                    f"Статус вашего заказа №{order.order_number} изменён",
                    f"<p>Новый статус заказа: <b>{order.status.value}</b></p>",
                ),
            )

        if self._messenger and order.owner.telegram_id:
            await self._guard(
                "telegram", str(order.owner.telegram_id), "status-changed",
                self._messenger.send_message(
                    str(order.owner.telegram_id),
                    f"Статус заказа {order.order_number}: {order.status.value}",
                ),
            )

    async def notify_new_request(self, request: SupportRequestDTO) -> None:
        """Forward a support request to administrators."""
        payload = request.model_dump(by_alias=True)
        await self._guard(
            "realtime", ADMIN_ROOM, "new-request",
            self._hub.emit_to_room(ADMIN_ROOM, "new-request", payload),
        )
        if self._messenger:
            lines = [
                "Новая заявка!",
                f"Имя: {html.escape(request.full_name)}",
                f"Email: {html.escape(request.email)}",
            ]
            if request.phone:
                lines.append(f"Телефон: {html.escape(request.phone)}")
            lines.append(f"Вопрос: {html.escape(request.question)}")
            await self._guard(
                "telegram", "admin-chat", "new-request",
                self._messenger.send_admin_message("\n".join(lines)),
            )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _push_status(self, order: Order, event_name: str) -> None:
        payload = self._payload(order)
        await self._guard(
            "realtime", user_room(order.owner.user_id), event_name,
            self._hub.emit_to_user(order.owner.user_id, EVENT_ORDER_UPDATED, payload),
        )
        await self._guard(
            "realtime", ADMIN_ROOM, event_name,
            self._hub.emit_to_room(ADMIN_ROOM, EVENT_ORDER_UPDATE, payload),
        )
        await self._guard(
            "realtime", order_room(order.id), event_name,
            self._hub.emit_to_room(order_room(order.id), EVENT_ORDER_DETAILS_UPDATED, payload),
        )

    @staticmethod
    async def _guard(channel: str, recipient: str, event: str, dispatch: Awaitable[Any]) -> bool:
        try:
            await dispatch
            return True
        except Exception as e:
            logger.error(
                f"❌ Notification failed: channel={channel} recipient={recipient} "
                f"event={event} error={e!r}",
                exc_info=True,
            )
            return False

    @staticmethod
    def _payload(order: Order, event: Optional[str] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "orderId": order.id,
            "orderNumber": str(order.order_number),
            "ownerId": order.owner.user_id,
            "status": order.status.value,
            "paymentStatus": order.payment_status,
        }
        if order.tracking_number:
            payload["trackingNumber"] = order.tracking_number
        if event:
            payload["event"] = event
        return payload

    @staticmethod
    def _item_lines(order: Order) -> List[str]:
        return [
            f"{html.escape(line.title)} — {line.quantity} шт. × {line.unit_price.amount} ₽ = {line.total.amount} ₽"
            for line in order.items
        ]

    def _totals_lines(self, order: Order) -> List[str]:
        return [
            f"Общее количество: {order.total_products}",
            f"Цена без скидки: {order.gross_amount.amount} ₽",
            f"Скидка: {order.discount_amount.amount} ₽",
            f"Итого: {order.net_amount.amount} ₽",
        ]

    def _confirmation_text(self, order: Order) -> str:
        return "\n".join(
            [f"Заказ {order.order_number} создан!"]
            + self._item_lines(order)
            + [""]
            + self._totals_lines(order)
        )

    def _admin_order_text(self, order: Order) -> str:
        info = order.delivery_info
        return "\n".join(
            [
                f"🛒 Новый заказ {order.order_number}",
                f"Статус: {order.status.value}",
                f"Оплата: {order.payment_method.value}",
                f"Доставка: {order.delivery_type.value}",
                f"Телефон: {html.escape(info.phone)}",
            ]
            + self._item_lines(order)
            + [""]
            + self._totals_lines(order)
        )

    def _confirmation_html(self, order: Order) -> str:
        items = "".join(
            "<div style=\"margin-bottom:10px;\">"
            f"<div><b>{html.escape(line.title)}</b></div>"
            f"<div>Цена: {line.unit_price.amount} ₽</div>"
            f"<div>Количество: {line.quantity}</div>"
            f"<div>Сумма: {line.total.amount} ₽</div>"
            "</div>"
            for line in order.items
        )
        totals = "".join(f"<div>{html.escape(text)}</div>" for text in self._totals_lines(order))
        return f"<h2>Заказ {order.order_number} создан!</h2>{items}<hr/>{totals}"
