"""Domain value objects - pure Python immutable types."""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from uuid import UUID, uuid4


CENT = Decimal("0.01")


@dataclass(frozen=True)
class Money:
    """
    Immutable monetary value with currency.

    Amounts are always kept as Decimal and rounded to kopecks (two places)
    whenever a derived value is produced.

    CRITICAL: Always use Decimal, never float!
    """
    amount: Decimal
    currency: str = "RUB"

    def __post_init__(self):
        # Convert to Decimal if needed
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', Decimal(str(self.amount)))

        # Validate currency code (3 letters)
        if not isinstance(self.currency, str) or len(self.currency) != 3:
            raise ValueError(
                f"Currency must be 3-letter ISO code, got: {self.currency}"
            )

    @classmethod
    def zero(cls, currency: str = "RUB") -> 'Money':
        """Zero amount in the given currency."""
        return cls(amount=Decimal("0.00"), currency=currency)

    def __str__(self) -> str:
        return f"{self.amount} {self.currency}"

    def __add__(self, other: 'Money') -> 'Money':
        """Add two Money objects (must have same currency)."""
        if self.currency != other.currency:
            raise ValueError(
                f"Cannot add different currencies: {self.currency} vs {other.currency}"
            )
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def __sub__(self, other: 'Money') -> 'Money':
        """Subtract two Money objects (must have same currency)."""
        if self.currency != other.currency:
            raise ValueError(
                f"Cannot subtract different currencies: {self.currency} vs {other.currency}"
            )
        return Money(amount=self.amount - other.amount, currency=self.currency)

    def times(self, quantity: int) -> 'Money':
        """Multiply by an item quantity."""
        return Money(amount=self.amount * quantity, currency=self.currency)

    def percent(self, percent: Decimal) -> 'Money':
        """Return ``percent`` percent of this amount, rounded to kopecks."""
        value = (self.amount * Decimal(str(percent)) / Decimal("100"))
        return Money(amount=value, currency=self.currency).rounded()

    def rounded(self) -> 'Money':
        """Round half-up to two decimal places."""
        return Money(
            amount=self.amount.quantize(CENT, rounding=ROUND_HALF_UP),
            currency=self.currency,
        )

    def is_positive(self) -> bool:
        """Check if amount is positive."""
        return self.amount > 0

    def is_zero(self) -> bool:
        """Check if amount is zero."""
        return self.amount == 0

    def as_gateway_value(self) -> str:
        """Amount formatted the way payment providers expect it ("200.00")."""
        return str(self.rounded().amount)


@dataclass(frozen=True)
class ExecutionID:
    """Unique identifier for workflow execution tracing."""

    value: UUID

    @classmethod
    def generate(cls) -> "ExecutionID":
        """Generate a new ExecutionID."""
        return cls(value=uuid4())

    def short(self) -> str:
        """First block of the UUID, used as a log prefix."""
        return str(self.value).split("-")[0]

    def __str__(self) -> str:
        """Return string representation."""
        return str(self.value)
