"""Key-value store backing the answer cache and the OAuth token cache.

Contract:
- get(key) -> str | None
- put(key, value, ttl_seconds=...)

The store is treated as eventually consistent with no transactional
guarantees. Two implementations:
- RedisKVStore: redis.asyncio client, used when REDIS_URL is configured
- InMemoryKVStore: process-local TTL map for local development and tests
"""

import time
from abc import ABC, abstractmethod
from collections.abc import Callable

import redis.asyncio as redis

from askgate.config import Settings
from askgate.logging import get_logger

logger = get_logger(__name__)

SWEEP_EVERY_WRITES = 256


class KVStore(ABC):
    """Abstract key-value store with per-entry TTL."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the stored value, or None if absent or expired."""

    @abstractmethod
    async def put(self, key: str, value: str, *, ttl_seconds: int) -> None:
        """Store value under key, expiring after ttl_seconds."""

    async def close(self) -> None:
        """Release any underlying connections."""


class InMemoryKVStore(KVStore):
    """Process-local TTL store.

    Expired entries are dropped on read and swept from the whole map every
    ``sweep_every`` writes.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sweep_every: int = SWEEP_EVERY_WRITES,
    ):
        self._clock = clock
        self._sweep_every = sweep_every
        self._writes = 0
        self._entries: dict[str, tuple[str, float]] = {}

    async def get(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def put(self, key: str, value: str, *, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._entries[key] = (value, self._clock() + ttl_seconds)

        self._writes += 1
        if self._writes >= self._sweep_every:
            self._writes = 0
            self.sweep()

    def sweep(self) -> int:
        """Drop every expired entry. Returns the number removed."""
        now = self._clock()
        expired = [key for key, (_, expires_at) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)


class RedisKVStore(KVStore):
    """Redis-backed store using SET with EX for expiry."""

    def __init__(self, client: redis.Redis):
        self._redis = client

    @classmethod
    def from_url(cls, url: str) -> "RedisKVStore":
        client = redis.from_url(
            url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        return cls(client)

    async def get(self, key: str) -> str | None:
        value = await self._redis.get(key)
        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def put(self, key: str, value: str, *, ttl_seconds: int) -> None:
        await self._redis.set(key, value, ex=ttl_seconds)

    async def close(self) -> None:
        await self._redis.aclose()


def create_kv_store(settings: Settings) -> KVStore:
    """Build the store selected by configuration."""
    if settings.redis_url:
        logger.info("kv_store_initialized", backend="redis")
        return RedisKVStore.from_url(settings.redis_url)

    logger.info("kv_store_initialized", backend="memory")
    return InMemoryKVStore()
