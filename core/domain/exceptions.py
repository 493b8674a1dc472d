"""
Domain error taxonomy.

Every error that crosses the application boundary is a StorefrontError with
a stable ``code`` and a human-readable ``message``. The HTTP layer maps
``status_code`` directly onto the response.

CRITICAL: This file must contain ZERO imports from:
- sqlalchemy
- pydantic
- fastapi
"""
from typing import Any, Dict, List, Optional


class StorefrontError(Exception):
    """Base class for typed, user-facing errors."""

    code = "INTERNAL_SERVER_ERROR"
    status_code = 500
    default_message = "Внутренняя ошибка сервера"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        errors: Optional[List[Dict[str, Any]]] = None,
    ):
        self.message = message or self.default_message
        self.errors = errors or []
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "success": False,
            "code": self.code,
            "message": self.message,
        }
        if self.errors:
            payload["errors"] = self.errors
        return payload


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class ValidationFailed(StorefrontError):
    code = "VALIDATION_ERROR"
    status_code = 400
    default_message = "Ошибка валидации"


# ---------------------------------------------------------------------------
# Conflict / availability
# ---------------------------------------------------------------------------

class EmptyCart(StorefrontError):
    code = "EMPTY_CART"
    status_code = 400
    default_message = "Корзина пуста"


class InsufficientStock(StorefrontError):
    code = "INSUFFICIENT_STOCK"
    status_code = 409

    def __init__(self, article: int, available: int, requested: int, title: str = ""):
        self.article = article
        self.available = available
        self.requested = requested
        name = title or f"артикул {article}"
        super().__init__(
            f"Недостаточно товара {name} на складе. "
            f"Доступно: {available}, запрошено: {requested}",
            errors=[{
                "article": article,
                "available": available,
                "requested": requested,
            }],
        )


class ProductNotFound(StorefrontError):
    code = "PRODUCT_NOT_FOUND"
    status_code = 404
    default_message = "Товар не найден"


class CartItemNotFound(StorefrontError):
    code = "CART_ITEM_NOT_FOUND"
    status_code = 404
    default_message = "Товар не найден в корзине"


class OrderNotFound(StorefrontError):
    code = "ORDER_NOT_FOUND"
    status_code = 404
    default_message = "Заказ не найден"


class InvalidStatusTransition(StorefrontError):
    code = "INVALID_STATUS_TRANSITION"
    status_code = 409

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(
            f"Недопустимый переход статуса заказа: {current} → {requested}"
        )


# ---------------------------------------------------------------------------
# Payment gateway
# ---------------------------------------------------------------------------

class GatewayError(StorefrontError):
    """Base for payment gateway failures."""


class GatewayUnavailable(GatewayError):
    code = "GATEWAY_UNAVAILABLE"
    status_code = 503
    default_message = "Платёжный сервис недоступен"


class GatewayRejected(GatewayError):
    code = "GATEWAY_REJECTED"
    status_code = 502
    default_message = "Платёжный сервис отклонил операцию"


# ---------------------------------------------------------------------------
# Access
# ---------------------------------------------------------------------------

class Unauthorized(StorefrontError):
    code = "UNAUTHORIZED"
    status_code = 401
    default_message = "Пользователь не авторизован"


class Forbidden(StorefrontError):
    code = "FORBIDDEN"
    status_code = 403
    default_message = "У вас недостаточно прав доступа чтобы выполнить данное действие!"
