"""
Redis cache store for the Blog service.

The store is a thin key-value adapter: it raises whatever the Redis client
raises. Deciding that cache failures are soft is the job of ``CacheAside``.
"""

from typing import Any, Dict, List, Optional, Protocol, Union

import redis.asyncio as redis

from shared.logging import get_logger

Payload = Union[str, bytes]


class CacheStore(Protocol):
    """Key-value operations the cache layer depends on."""

    async def get(self, key: str) -> Optional[Payload]: ...

    async def set(self, key: str, payload: Payload, ttl_seconds: int) -> None: ...

    async def delete(self, *keys: str) -> int: ...

    async def delete_pattern(self, pattern: str) -> int: ...

    async def exists(self, key: str) -> bool: ...


class RedisCacheStore:
    """Redis-backed implementation of ``CacheStore``."""

    def __init__(self, redis_url: str, socket_timeout: float = 5.0):
        self.redis_url = redis_url
        self.socket_timeout = socket_timeout
        self.logger = get_logger("blog.cache.store")
        self.redis: Optional[redis.Redis] = None

    def _client(self) -> redis.Redis:
        if self.redis is None:
            self.redis = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=self.socket_timeout,
                socket_timeout=self.socket_timeout,
                retry_on_timeout=True,
                health_check_interval=30
            )
        return self.redis

    async def start(self):
        """Connect to Redis.

        An unreachable Redis does not block startup: every cache call then
        fails softly and reads go straight to the data source.
        """
        try:
            await self._client().ping()
            self.logger.info("Redis cache store started", redis_url=self.redis_url)
        except Exception as e:
            self.logger.warning("Redis unreachable at startup, serving uncached", error=str(e))

    async def stop(self):
        """Close the Redis connection."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            self.logger.info("Redis cache store stopped")

    async def get(self, key: str) -> Optional[Payload]:
        return await self._client().get(key)

    async def set(self, key: str, payload: Payload, ttl_seconds: int) -> None:
        await self._client().set(key, payload, ex=ttl_seconds)

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return await self._client().delete(*keys)

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern (KEYS + DEL)."""
        client = self._client()
        keys: List[str] = await client.keys(pattern)
        if not keys:
            return 0
        return await client.delete(*keys)

    async def exists(self, key: str) -> bool:
        return bool(await self._client().exists(key))

    async def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        try:
            info = await self._client().info()
            return {
                "redis_version": info.get("redis_version"),
                "used_memory": info.get("used_memory_human"),
                "connected_clients": info.get("connected_clients"),
                "keyspace_hits": info.get("keyspace_hits"),
                "keyspace_misses": info.get("keyspace_misses"),
                "hit_rate": self._calculate_hit_rate(info)
            }
        except Exception as e:
            self.logger.error("Error getting cache stats", error=str(e))
            return {}

    def _calculate_hit_rate(self, info: Dict[str, Any]) -> float:
        """Calculate cache hit rate."""
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        total = hits + misses

        if total == 0:
            return 0.0

        return hits / total

    async def health_check(self) -> bool:
        """Check Redis health."""
        try:
            await self._client().ping()
            return True
        except Exception:
            return False
