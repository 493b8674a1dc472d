"""
Base Domain Event.

All domain events inherit from this base class. Aggregates record events
while they change; the application layer reads them after persisting the
aggregate to decide which side effects to dispatch.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional, Dict, Any
import uuid


_META_FIELDS = (
    'event_id', 'event_type', 'aggregate_id', 'execution_id', 'occurred_at',
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class DomainEvent:
    """
    Base class for all domain events.

    Events are immutable records of things that have happened.
    """

    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    event_type: str = field(init=False)

    # Aggregate information
    aggregate_id: str = field(default="")

    # Execution context
    execution_id: Optional[str] = None

    occurred_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        """Set event type from class name."""
        object.__setattr__(self, 'event_type', self.__class__.__name__)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert event to dictionary for logging and queue payloads.

        Returns:
            Dictionary representation of event
        """
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "aggregate_id": self.aggregate_id,
            "execution_id": self.execution_id,
            "occurred_at": self.occurred_at.isoformat(),
            "data": self._get_event_data(),
        }

    def _get_event_data(self) -> Dict[str, Any]:
        data = {}

        for key, value in self.__dict__.items():
            if key in _META_FIELDS:
                continue
            if isinstance(value, Decimal):
                data[key] = str(value)
            elif isinstance(value, Enum):
                data[key] = value.value
            elif isinstance(value, datetime):
                data[key] = value.isoformat()
            else:
                data[key] = value

        return data
