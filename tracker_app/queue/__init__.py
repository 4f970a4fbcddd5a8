"""
Access-log queue.
Strategy Pattern over Redis Streams and an in-memory deque.
"""

from .strategies import QueueStrategy, RedisStreamQueue, InMemoryQueue
from .factory import QueueFactory, QueueBackend
from .models import AccessLogRecord

__all__ = [
    "QueueStrategy",
    "RedisStreamQueue",
    "InMemoryQueue",
    "QueueFactory",
    "QueueBackend",
    "AccessLogRecord",
]
