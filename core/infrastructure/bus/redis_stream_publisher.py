"""
Redis Streams publisher for the reconciliation queue.

Orders left inconsistent by a partial checkout failure are appended to a
stream; the reconciliation worker consumes it.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import redis.asyncio as aioredis

from core.application.interfaces import IReconciliationQueue


logger = logging.getLogger(__name__)


class RedisStreamPublisher(IReconciliationQueue):
    """
    Publishes reconciliation records to a Redis Stream.

    Message format: {
        "event_type": "OrderReconciliationRequired",
        "order_id": str,
        "order_number": str,
        "reason": str,
        "timestamp": str,  # ISO format
    }
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        stream_name: str = "storefront:reconciliation",
        client: Optional[aioredis.Redis] = None,
    ):
        """
        Args:
            redis_url: Redis connection URL
            stream_name: Redis Stream name
            client: already configured client (tests inject one)
        """
        self.redis_url = redis_url
        self.stream_name = stream_name
        self._redis_client: Optional[aioredis.Redis] = client

    async def connect(self) -> None:
        """Establish Redis connection."""
        if self._redis_client is None:
            self._redis_client = aioredis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            await self._redis_client.ping()
            logger.info(f"✅ Connected to Redis: {self.redis_url}")

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self._redis_client:
            await self._redis_client.aclose()
            self._redis_client = None
            logger.info("✅ Disconnected from Redis")

    async def publish(self, order_id: str, order_number: str, reason: str) -> None:
        if self._redis_client is None:
            await self.connect()

        message: Dict[str, Any] = {
            "event_type": "OrderReconciliationRequired",
            "order_id": order_id,
            "order_number": order_number,
            "reason": reason,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        try:
            msg_id = await self._redis_client.xadd(
                self.stream_name,
                message,
                maxlen=10000,  # Keep last 10k messages
            )
        except Exception as e:
            logger.error(f"Failed to publish to Redis Stream: {e}", exc_info=True)
            raise

        logger.info(
            f"✅ Reconciliation queued: order={order_number}, msg_id={msg_id}"
        )

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()


class LoggingReconciliationQueue(IReconciliationQueue):
    """Used when Redis is disabled: the ERROR log line is the only record."""

    def __init__(self):
        self.published = []

    async def publish(self, order_id: str, order_number: str, reason: str) -> None:
        self.published.append({"order_id": order_id, "order_number": order_number, "reason": reason})
        logger.error(
            f"RECONCILIATION REQUIRED (no queue configured): order={order_number} "
            f"id={order_id} reason={reason}"
        )
