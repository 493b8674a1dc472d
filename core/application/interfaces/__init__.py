"""Application layer interfaces."""
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Optional

from core.application.dtos.payment_dto import PaymentDTO
from core.domain.enums import PaymentMethod
from core.domain.value_objects import Money


class IPaymentGateway(ABC):
    """
    Provider-agnostic payment gateway.

    Every operation raises GatewayUnavailable on network errors and
    timeouts, and GatewayRejected when the provider refuses the request.
    """

    @abstractmethod
    async def create_payment(
        self,
        amount: Money,
        description: str,
        metadata: Dict[str, Any],
        return_url: str,
        method: PaymentMethod,
    ) -> PaymentDTO:
        """
        Create a remote payment.

        Returns:
            PaymentDTO with the gateway id and, for redirect flows, the
            confirmation URL the customer must visit
        """
        pass

    @abstractmethod
    async def get_payment(self, payment_id: str) -> PaymentDTO:
        pass

    @abstractmethod
    async def capture_payment(self, payment_id: str) -> PaymentDTO:
        pass

    @abstractmethod
    async def cancel_payment(self, payment_id: str) -> PaymentDTO:
        pass

    @abstractmethod
    async def refund_payment(self, payment_id: str, amount: Optional[Money] = None) -> str:
        """
        Refund a captured payment.

        Args:
            payment_id: gateway payment id
            amount: amount to refund; the full payment amount when omitted

        Returns:
            Refund status reported by the gateway
        """
        pass


class IRealtimeHub(ABC):
    """
    Push channel to connected clients.

    Delivery is at-most-once: events for clients that are not connected are
    dropped.
    """

    @abstractmethod
    async def emit_to_user(self, user_id: str, event: str, payload: Dict[str, Any]) -> bool:
        """Returns True if at least one connection of the user received the event."""
        pass

    @abstractmethod
    async def emit_to_room(self, room: str, event: str, payload: Dict[str, Any]) -> int:
        """Returns the number of connections the event was delivered to."""
        pass

    @abstractmethod
    def is_online(self, user_id: str) -> bool:
        pass


class IEmailSender(ABC):
    """Transactional email sink."""

    @abstractmethod
    async def send(self, to: str, subject: str, html: str) -> None:
        pass


class IMessenger(ABC):
    """
    Messaging channel (Telegram) sink.

    Text is sent as Telegram HTML; callers escape user-supplied values.
    """

    @abstractmethod
    async def send_message(self, chat_id: str, text: str) -> None:
        pass

    @abstractmethod
    async def send_admin_message(self, text: str) -> None:
        """Send to the configured administrators chat."""
        pass


class ITaskScheduler(ABC):
    """
    Runs detached work outside the request that triggered it.

    Implementations own the error boundary: a failing task is logged and
    never reaches the caller of ``schedule``.
    """

    @abstractmethod
    def schedule(
        self,
        task: Callable[[], Awaitable[None]],
        *,
        name: str,
        delay: float = 0.0,
    ) -> None:
        pass


class IReconciliationQueue(ABC):
    """Durable record of orders left inconsistent by a partial checkout failure."""

    @abstractmethod
    async def publish(self, order_id: str, order_number: str, reason: str) -> None:
        pass


__all__ = [
    "IEmailSender",
    "IMessenger",
    "IPaymentGateway",
    "IRealtimeHub",
    "IReconciliationQueue",
    "ITaskScheduler",
]
