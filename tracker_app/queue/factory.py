"""
Factory for creating queue instances.
"""

import logging
from enum import Enum

from .strategies import InMemoryQueue, QueueStrategy, RedisStreamQueue
from tracker_app.config import settings

logger = logging.getLogger(__name__)


class QueueBackend(Enum):
    """Available queue backends"""
    REDIS_STREAMS = "redis_streams"
    MEMORY = "memory"


class QueueFactory:
    """
    Factory for queue instances with singleton caching.

    Gets configuration from settings (not passed as parameters).
    """

    _instance: QueueStrategy = None

    @classmethod
    def create(cls, backend: QueueBackend) -> QueueStrategy:
        if cls._instance is not None:
            return cls._instance

        if backend == QueueBackend.REDIS_STREAMS:
            import redis

            try:
                redis_client = redis.from_url(
                    settings.redis_url,
                    decode_responses=False,
                    socket_connect_timeout=2,
                    socket_timeout=2,
                )
                redis_client.ping()

                cls._instance = RedisStreamQueue(
                    redis_client,
                    settings.queue_consumer_group,
                    claim_idle_ms=settings.queue_claim_idle_ms,
                )
                logger.info("Redis queue initialized")

            except Exception as e:
                logger.warning("Redis connection failed (%s); falling back to in-memory queue", e)
                cls._instance = InMemoryQueue()

        elif backend == QueueBackend.MEMORY:
            cls._instance = InMemoryQueue()
            logger.info("In-memory queue initialized")

        else:
            raise ValueError(f"Unknown queue backend: {backend}")

        return cls._instance

    @classmethod
    def clear_instance(cls):
        """Clear cached instance (for testing)"""
        cls._instance = None
