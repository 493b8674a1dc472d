"""Delivery information value object."""
import re
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

from ..enums import DeliveryType
from ..exceptions import ValidationFailed


PHONE_PATTERN = re.compile(r"^\+?[0-9\s\-()]{10,}$")


@dataclass(frozen=True)
class DeliveryInfo:
    """Recipient and address data captured at checkout."""
    phone: str
    city: str = ""
    address: str = ""
    recipient_name: str = ""
    postal_code: Optional[str] = None
    comment: Optional[str] = None

    def validate_for(self, delivery_type: DeliveryType) -> None:
        """
        Check the payload shape for the chosen delivery type.

        Phone is always mandatory. City, address and recipient name are
        mandatory for everything except pickup.

        Raises:
            ValidationFailed: with one entry per offending field
        """
        errors: List[Dict[str, str]] = []

        if not self.phone or not PHONE_PATTERN.match(self.phone.strip()):
            errors.append({"field": "phone", "message": "Некорректный номер телефона получателя"})

        if delivery_type != DeliveryType.PICKUP:
            # (attribute, field name reported to the client, message)
            for attribute, field_name, message in (
                ("city", "city", "Для доставки обязателен город"),
                ("address", "address", "Для доставки обязателен адрес"),
                ("recipient_name", "recipientName", "Для доставки обязательно ФИО получателя"),
            ):
                if not (getattr(self, attribute) or "").strip():
                    errors.append({"field": field_name, "message": message})

        if errors:
            raise ValidationFailed("Некорректные данные доставки", errors=errors)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
