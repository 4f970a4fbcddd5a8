"""
Queue strategies using Strategy Pattern.
Allows switching between different queue backends (Redis Streams, In-Memory).
"""

import json
import logging
import socket
from abc import ABC, abstractmethod
from collections import deque
from typing import Dict, List

from .models import AccessLogRecord

logger = logging.getLogger(__name__)


class QueueStrategy(ABC):
    """
    Abstract base class for queue strategies.

    Lets the access-log dispatcher and worker run against Redis Streams in
    production and an in-process deque in development/tests.
    """

    @abstractmethod
    async def publish(self, queue_name: str, message: AccessLogRecord) -> bool:
        """
        Publish a message to the queue.

        Args:
            queue_name: Name of the queue
            message: AccessLogRecord to publish

        Returns:
            True if successful, False otherwise
        """
        pass

    @abstractmethod
    async def consume(
        self,
        queue_name: str,
        batch_size: int = 1,
        block_time: int = 1000
    ) -> List[AccessLogRecord]:
        """
        Consume messages from the queue.

        Args:
            queue_name: Name of the queue
            batch_size: Maximum number of messages to retrieve
            block_time: Time to wait for messages (milliseconds)

        Returns:
            List of AccessLogRecord messages
        """
        pass

    @abstractmethod
    async def ack(self, queue_name: str, message_ids: List[str]) -> bool:
        """Acknowledge messages (mark as processed)."""
        pass

    @abstractmethod
    async def get_queue_length(self, queue_name: str) -> int:
        pass

    async def consume_batch(self, queue_name: str, batch_size: int = 100, block_time: int = 1000) -> List[AccessLogRecord]:
        return await self.consume(queue_name, batch_size, block_time)

    async def requeue(self, queue_name: str, messages: List[AccessLogRecord]) -> None:
        """
        Return unprocessed messages to the queue.

        Backends that keep unacknowledged messages pending (Redis Streams)
        need nothing here: consume reclaims them once they have been idle.
        """
        return None


class RedisStreamQueue(QueueStrategy):
    """
    Redis Streams implementation for message queue.

    1. Producer publishes messages using XADD
    2. Consumer reads messages using XREADGROUP
    3. Consumer acknowledges messages using XACK after a successful insert
    4. Unacknowledged messages stay pending and are reclaimed with XAUTOCLAIM
       once idle for claim_idle_ms
    """

    def __init__(
        self,
        redis_client,
        consumer_group: str = "access_log_workers",
        claim_idle_ms: int = 60000,
    ):
        self.redis = redis_client
        self.consumer_group = consumer_group
        self.claim_idle_ms = claim_idle_ms
        self.consumer_name = f"worker-{socket.gethostname()}-{id(self)}"
        self._initialized_streams = set()

    async def _ensure_stream_exists(self, queue_name: str):
        if queue_name in self._initialized_streams:
            return

        try:
            # MKSTREAM creates the stream along with the group
            self.redis.xgroup_create(
                name=queue_name,
                groupname=self.consumer_group,
                id='0',
                mkstream=True
            )
            logger.info("Created Redis stream %s", queue_name)
        except Exception as e:
            if "BUSYGROUP" not in str(e):
                logger.warning("Stream creation warning: %s", e)

        self._initialized_streams.add(queue_name)

    async def publish(self, queue_name: str, message: AccessLogRecord) -> bool:
        try:
            await self._ensure_stream_exists(queue_name)
            self.redis.xadd(queue_name, {'data': message.model_dump_json()})
            return True
        except Exception as e:
            logger.error("Redis publish error: %s", e)
            return False

    async def consume(
        self,
        queue_name: str,
        batch_size: int = 1,
        block_time: int = 1000
    ) -> List[AccessLogRecord]:
        """
        Reclaim entries left pending longer than claim_idle_ms (a failed
        batch, or a consumer that died), otherwise read new ones.
        """
        try:
            await self._ensure_stream_exists(queue_name)

            claimed = self.redis.xautoclaim(
                queue_name,
                self.consumer_group,
                self.consumer_name,
                min_idle_time=self.claim_idle_ms,
                start_id='0-0',
                count=batch_size,
            )
            stream_messages = claimed[1] if claimed else []
            if stream_messages:
                logger.info("Reclaimed %d pending messages from %s", len(stream_messages), queue_name)
                return await self._parse(queue_name, stream_messages)

            # '>' means "messages never delivered to other consumers"
            messages = self.redis.xreadgroup(
                groupname=self.consumer_group,
                consumername=self.consumer_name,
                streams={queue_name: '>'},
                count=batch_size,
                block=block_time
            )

            if not messages:
                return []

            records = []
            for _stream_name, stream_messages in messages:
                records.extend(await self._parse(queue_name, stream_messages))
            return records

        except Exception as e:
            logger.error("Redis consume error: %s", e)
            return []

    async def _parse(self, queue_name: str, stream_messages) -> List[AccessLogRecord]:
        """Decode stream entries; unreadable ones are acked so they are not retried forever."""
        records = []
        dead = []
        for message_id, message_data in stream_messages:
            if isinstance(message_id, bytes):
                message_id = message_id.decode('utf-8')
            try:
                data = json.loads(message_data[b'data'].decode('utf-8'))
                record = AccessLogRecord(**data)
            except Exception as e:
                logger.warning("Dropping unparsable message %s: %s", message_id, e)
                dead.append(message_id)
                continue
            record.message_id = message_id
            records.append(record)

        if dead:
            await self.ack(queue_name, dead)
        return records

    async def ack(self, queue_name: str, message_ids: List[str]) -> bool:
        try:
            if not message_ids:
                return True
            self.redis.xack(queue_name, self.consumer_group, *message_ids)
            return True
        except Exception as e:
            logger.error("Redis ack error: %s", e)
            return False

    async def get_queue_length(self, queue_name: str) -> int:
        try:
            info = self.redis.xinfo_stream(queue_name)
            return info['length']
        except Exception:
            return 0


class InMemoryQueue(QueueStrategy):
    """
    In-memory queue implementation using Python deque.

    Not persistent and not shared between processes; used in development
    and tests. Messages are removed on consume, so ack is a no-op.
    """

    def __init__(self):
        self._queues: Dict[str, deque] = {}

    def _get_queue(self, queue_name: str) -> deque:
        if queue_name not in self._queues:
            self._queues[queue_name] = deque()
        return self._queues[queue_name]

    async def publish(self, queue_name: str, message: AccessLogRecord) -> bool:
        self._get_queue(queue_name).append(message)
        return True

    async def consume(
        self,
        queue_name: str,
        batch_size: int = 1,
        block_time: int = 1000
    ) -> List[AccessLogRecord]:
        """block_time is ignored (no blocking in this simple implementation)"""
        queue = self._get_queue(queue_name)
        messages = []
        while queue and len(messages) < batch_size:
            messages.append(queue.popleft())
        return messages

    async def requeue(self, queue_name: str, messages: List[AccessLogRecord]) -> None:
        """Put unprocessed messages back at the head of the queue."""
        self._get_queue(queue_name).extendleft(reversed(messages))

    async def ack(self, queue_name: str, message_ids: List[str]) -> bool:
        return True

    async def get_queue_length(self, queue_name: str) -> int:
        return len(self._get_queue(queue_name))
