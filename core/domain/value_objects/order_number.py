"""Order number value object."""
import random
import re
import time
from dataclasses import dataclass


_ORDER_NUMBER_PATTERN = re.compile(r"^ORD-\d{13}-\d{3}$")


@dataclass(frozen=True)
class OrderNumber:
    """
    Human-legible order number.

    Format: ORD-<unix time in ms>-<3 random digits>
    Examples:
    - ORD-1760870400123-042
    - ORD-1760870455901-907

    Numbers sort roughly by creation time. Uniqueness is enforced by the
    order repository, not by this value object.
    """
    value: str

    def __post_init__(self):
        if not self.value:
            raise ValueError("Order number cannot be empty")

        if not _ORDER_NUMBER_PATTERN.match(self.value):
            raise ValueError(
                f"Invalid order number format (expected ORD-<13 digits>-<3 digits>): {self.value}"
            )

    @classmethod
    def generate(cls) -> "OrderNumber":
        """Generate a fresh order number from the current clock."""
        millis = int(time.time() * 1000)
        return cls(f"ORD-{millis:013d}-{random.randint(0, 999):03d}")

    def tail(self, length: int = 8) -> str:
        """Last ``length`` characters, used in tracking numbers."""
        return self.value[-length:]

    def __str__(self) -> str:
        return self.value
