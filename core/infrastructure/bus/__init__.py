"""Message bus infrastructure - Redis Streams integration."""
from .redis_stream_publisher import (
    LoggingReconciliationQueue,
    RedisStreamPublisher,
)
from .redis_stream_consumer import (
    RedisStreamConsumer,
    reconcile_from_message,
    start_reconciliation_worker,
)

__all__ = [
    "LoggingReconciliationQueue",
    "RedisStreamPublisher",
    "RedisStreamConsumer",
    "reconcile_from_message",
    "start_reconciliation_worker",
]
