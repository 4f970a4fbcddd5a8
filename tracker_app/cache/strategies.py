"""
Cache strategies using Strategy Pattern.
Allows switching between different cache backends (Redis, In-Memory, Null).

Values are raw bytes (rendered PNGs).
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class CacheStrategy(ABC):
    """
    Abstract base class for cache strategies.

    All methods are async because cache operations involve I/O (network for Redis).
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """
        Get value from cache.

        Returns:
            Cached value or None if not found
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: bytes, ttl: int = 3600) -> bool:
        """
        Set value in cache with TTL (Time To Live).

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time to live in seconds (default: 1 hour)

        Returns:
            True if successful, False otherwise
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        pass

    @abstractmethod
    async def clear(self) -> bool:
        pass


class RedisCache(CacheStrategy):
    """
    Redis cache implementation.

    Shared between app instances; entries expire through SETEX.
    Every error is logged and reported as a miss.
    """

    def __init__(self, redis_client):
        self.redis = redis_client

    async def get(self, key: str) -> Optional[bytes]:
        try:
            return self.redis.get(key)
        except Exception as e:
            logger.warning("Redis get error: %s", e)
            return None

    async def set(self, key: str, value: bytes, ttl: int = 3600) -> bool:
        try:
            return bool(self.redis.setex(key, ttl, value))
        except Exception as e:
            logger.warning("Redis set error: %s", e)
            return False

    async def delete(self, key: str) -> bool:
        try:
            return bool(self.redis.delete(key))
        except Exception as e:
            logger.warning("Redis delete error: %s", e)
            return False

    async def exists(self, key: str) -> bool:
        try:
            return bool(self.redis.exists(key))
        except Exception as e:
            logger.warning("Redis exists error: %s", e)
            return False

    async def clear(self) -> bool:
        """Clear all Redis keys (use with caution!)"""
        try:
            self.redis.flushdb()
            return True
        except Exception as e:
            logger.warning("Redis clear error: %s", e)
            return False


class InMemoryCache(CacheStrategy):
    """
    In-memory cache implementation using a Python dict.

    Per-process and lost on restart; used in development/testing.
    TTL is checked on read, and the oldest entry is evicted once
    max_entries is reached so rendered images cannot grow without bound.
    """

    def __init__(self, max_entries: int = 512):
        self.max_entries = max_entries
        self._cache: Dict[str, Tuple[bytes, float]] = {}

    async def get(self, key: str) -> Optional[bytes]:
        entry = self._cache.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at < time.monotonic():
            del self._cache[key]
            return None
        return value

    async def set(self, key: str, value: bytes, ttl: int = 3600) -> bool:
        if key not in self._cache and len(self._cache) >= self.max_entries:
            # dicts keep insertion order
            del self._cache[next(iter(self._cache))]
        self._cache[key] = (value, time.monotonic() + ttl)
        return True

    async def delete(self, key: str) -> bool:
        if key in self._cache:
            del self._cache[key]
            return True
        return False

    async def exists(self, key: str) -> bool:
        return await self.get(key) is not None

    async def clear(self) -> bool:
        self._cache.clear()
        return True


class NullCache(CacheStrategy):
    """
    Null Object Pattern - cache that does nothing.

    Every read is a miss; used to disable caching.
    """

    async def get(self, key: str) -> Optional[bytes]:
        return None

    async def set(self, key: str, value: bytes, ttl: int = 3600) -> bool:
        return True

    async def delete(self, key: str) -> bool:
        return True

    async def exists(self, key: str) -> bool:
        return False

    async def clear(self) -> bool:
        return True
