"""Redis key/value store — live rating keys and user snapshots.

Learn: The connection pool is process-wide (initialized in lifespan)
and also used directly by the rate-limit middleware. Services talk to
it through KeyValueStore, which only exposes the handful of operations
the app needs and wraps every redis error in BackingStoreError.
"""

from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from tapboard.exceptions import BackingStoreError

# Global Redis connection pool (initialized in lifespan)
_redis: Optional[aioredis.Redis] = None


async def init_redis(url: str) -> aioredis.Redis:
    """Initialize the Redis connection pool."""
    global _redis
    _redis = aioredis.from_url(
        url,
        encoding="utf-8",
        decode_responses=True,
    )
    # Verify connection
    await _redis.ping()
    return _redis


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _redis
    if _redis:
        await _redis.aclose()
        _redis = None


def get_redis() -> aioredis.Redis:
    """Get the Redis connection (must be initialized first)."""
    if _redis is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis


class KeyValueStore:
    """Thin async facade over a redis client."""

    def __init__(self, client: aioredis.Redis):
        self.client = client

    async def keys(self, pattern: str) -> list[str]:
        """All keys matching a glob pattern (SCAN, not KEYS)."""
        try:
            return [key async for key in self.client.scan_iter(match=pattern)]
        except RedisError as e:
            raise BackingStoreError(f"scan {pattern!r} failed: {e}", store="redis") from e

    async def mget(self, keys: list[str]) -> list[Optional[str]]:
        if not keys:
            return []
        try:
            return await self.client.mget(keys)
        except RedisError as e:
            raise BackingStoreError(f"mget failed: {e}", store="redis") from e

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self.client.get(key)
        except RedisError as e:
            raise BackingStoreError(f"get {key!r} failed: {e}", store="redis") from e

    async def set(self, key: str, value: str) -> None:
        try:
            await self.client.set(key, value)
        except RedisError as e:
            raise BackingStoreError(f"set {key!r} failed: {e}", store="redis") from e

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except RedisError as e:
            raise BackingStoreError(f"ping failed: {e}", store="redis") from e
