"""
Redis Streams consumer for the reconciliation queue.

Reads OrderReconciliationRequired records and runs the per-order
reconciliation. A message is acknowledged only when the order is fully
reconciled (or no longer exists); otherwise it stays in this consumer's
pending list and is read again, from id ``0``, once ``retry_interval`` has
passed. The pending list is also re-read on the first poll after a restart.
"""
import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

import redis.asyncio as aioredis

from core.application.services.reconciliation_service import ReconciliationService
from core.domain.exceptions import OrderNotFound
from core.domain.value_objects import ExecutionID


logger = logging.getLogger(__name__)


class RedisStreamConsumer:
    """
    Consumes events from a Redis Stream through a consumer group.

    Features:
    - Consumer groups for load balancing
    - Message acknowledgment (ACK) after successful processing
    - Unacknowledged messages are re-delivered every ``retry_interval`` seconds
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        stream_name: str = "storefront:reconciliation",
        consumer_group: str = "storefront-reconciler",
        consumer_name: str = "reconciler-1",
        client: Optional[aioredis.Redis] = None,
        retry_interval: float = 30.0,
    ):
        self.redis_url = redis_url
        self.stream_name = stream_name
        self.consumer_group = consumer_group
        self.consumer_name = consumer_name
        self._redis_client: Optional[aioredis.Redis] = client
        self._group_ready = False
        self.retry_interval = retry_interval
        self._last_retry: Optional[float] = None

    async def connect(self) -> None:
        """Establish Redis connection and create consumer group."""
        if self._redis_client is None:
            self._redis_client = aioredis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            await self._redis_client.ping()
            logger.info(f"✅ Connected to Redis: {self.redis_url}")

        if not self._group_ready:
            try:
                await self._redis_client.xgroup_create(
                    name=self.stream_name,
                    groupname=self.consumer_group,
                    id="0",  # Start from beginning
                    mkstream=True,
                )
                logger.info(f"✅ Created consumer group: {self.consumer_group}")
            except aioredis.ResponseError as e:
                if "BUSYGROUP" not in str(e):
                    raise
                logger.info(f"Consumer group {self.consumer_group} already exists")
            self._group_ready = True

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self._redis_client:
            await self._redis_client.aclose()
            self._redis_client = None
            self._group_ready = False
            logger.info("✅ Disconnected from Redis")

    async def consume_messages(self, batch_size: int = 10, block_ms: int = 1000) -> List[Dict[str, Any]]:
        """
        Read messages from Redis Stream.

        Returns:
            List of message dictionaries with 'id' and 'data' keys
        """
        await self.connect()

        result: List[Dict[str, Any]] = []
        if self._retry_due():
            # "0" re-reads this consumer's delivered but unacknowledged entries
            result.extend(await self._read("0", batch_size, block_ms=None))
            if result:
                logger.info(f"🔁 Retrying {len(result)} pending message(s)")

        # ">" means new messages; do not block when retries are waiting
        result.extend(await self._read(">", batch_size, block_ms=None if result else block_ms))
        return result

    def _retry_due(self) -> bool:
        now = time.monotonic()
        if self._last_retry is not None and now - self._last_retry < self.retry_interval:
            return False
        self._last_retry = now
        return True

    async def _read(self, last_id: str, count: int, block_ms: Optional[int]) -> List[Dict[str, Any]]:
        messages = await self._redis_client.xreadgroup(
            groupname=self.consumer_group,
            consumername=self.consumer_name,
            streams={self.stream_name: last_id},
            count=count,
            block=block_ms,
        )

        result = []
        for _stream, stream_messages in messages or []:
            for msg_id, msg_data in stream_messages:
                # Trimmed entries come back with no fields
                result.append({"id": msg_id, "data": msg_data or {}})
        return result

    async def acknowledge_message(self, message_id: str) -> None:
        await self.connect()
        await self._redis_client.xack(self.stream_name, self.consumer_group, message_id)
        logger.debug(f"✅ Acknowledged message: {message_id}")


async def reconcile_from_message(
    message: Dict[str, Any],
    consumer: RedisStreamConsumer,
    reconciliation: ReconciliationService,
) -> bool:
    """
    Reconcile the order named in one stream message.

    Returns:
        True if the message was acknowledged
    """
    message_id = message["id"]
    data = message["data"]
    order_id = data.get("order_id")
    execution_id = ExecutionID.generate()

    logger.info(
        f"[{execution_id.short()}] Reconciling order {data.get('order_number')} "
        f"(msg_id={message_id}, reason={data.get('reason')})"
    )

    try:
        done = await reconciliation.reconcile_order(order_id)
    except OrderNotFound:
        logger.warning(f"[{execution_id.short()}] Order {order_id} not found, dropping message")
        done = True

    if done:
        await consumer.acknowledge_message(message_id)
        logger.info(f"[{execution_id.short()}] ✅ Message {message_id} acknowledged")
    else:
        logger.warning(f"[{execution_id.short()}] Order {order_id} still inconsistent, message left pending")
    return done


async def start_reconciliation_worker(
    consumer: RedisStreamConsumer,
    reconciliation: ReconciliationService,
    poll_interval: float = 1.0,
) -> None:
    """
    Long-running loop; cancel the task to stop it.
    """
    logger.info("🚀 Starting reconciliation worker...")
    logger.info(f"   Stream: {consumer.stream_name}")
    logger.info(f"   Consumer Group: {consumer.consumer_group}")
    logger.info(f"   Consumer Name: {consumer.consumer_name}")

    try:
        while True:
            try:
                messages = await consumer.consume_messages(batch_size=10, block_ms=1000)
                if not messages:
                    await asyncio.sleep(poll_interval)
                    continue

                logger.info(f"📨 Received {len(messages)} message(s) from Redis Stream")
                for message in messages:
                    try:
                        await reconcile_from_message(message, consumer, reconciliation)
                    except Exception as e:
                        logger.error(f"Failed to process message {message['id']}: {e}", exc_info=True)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Worker error: {e}", exc_info=True)
                await asyncio.sleep(poll_interval)
    finally:
        await consumer.disconnect()
        logger.info("✅ Reconciliation worker stopped")
