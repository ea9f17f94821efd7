"""
Generic cache-aside layer for repository interfaces.

``CacheAside`` holds the whole policy:

- reads: look the key up, return the decoded entry on a hit; on any cache
  failure (absent, unreachable, undecodable) query the data source, then
  populate the cache best-effort with the configured TTL;
- writes: run the data source write first and, only if it succeeded, delete
  the affected keys and key patterns best-effort.

Cache failures are logged and counted, never raised. Data source errors
always reach the caller untouched. Task cancellation is never absorbed.

``cached_read`` and ``invalidates`` bind that policy to repository methods
together with the entity-specific key builders.
"""

import functools
from typing import Any, Awaitable, Callable, Generic, Iterable, Optional, Sequence, TypeVar

from pydantic import TypeAdapter

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from .keys import namespace_of
from .store import CacheStore, Payload

T = TypeVar("T")


class Codec(Generic[T]):
    """JSON serializer for one result shape, backed by a pydantic TypeAdapter."""

    def __init__(self, result_type: Any):
        self.adapter: TypeAdapter = TypeAdapter(result_type)

    def encode(self, value: T) -> bytes:
        return self.adapter.dump_json(value, by_alias=True)

    def decode(self, payload: Payload) -> T:
        return self.adapter.validate_json(payload)


class CacheAside:
    """Read-through / invalidate-on-write policy over a ``CacheStore``."""

    def __init__(self, store: CacheStore, ttl_seconds: int = 300,
                 metrics: Optional[MetricsCollector] = None):
        self.store = store
        self.ttl_seconds = ttl_seconds
        self.metrics = metrics
        self.logger = get_logger("blog.cache.aside")

    async def read_through(self, key: str, loader: Callable[[], Awaitable[T]], codec: Codec[T]) -> T:
        """Return the cached result for ``key`` or load, cache and return it."""
        namespace = namespace_of(key)

        payload = await self._get(key)
        if payload is not None:
            try:
                value = codec.decode(payload)
            except Exception as e:
                self.logger.warning("Cache payload undecodable, treating as miss", key=key, error=str(e))
                self._count("cache_errors_total", operation="decode")
            else:
                self.logger.debug("Cache hit", key=key)
                self._count("cache_requests_total", namespace=namespace, result="hit")
                return value

        self.logger.debug("Cache miss", key=key)
        self._count("cache_requests_total", namespace=namespace, result="miss")

        value = await loader()

        await self._set(key, value, codec)
        return value

    async def invalidate(self, *keys: str, patterns: Sequence[str] = ()) -> None:
        """Delete ``keys`` and every key matching ``patterns``, best-effort."""
        if keys:
            try:
                await self.store.delete(*keys)
                for key in keys:
                    self._count("cache_invalidations_total", namespace=namespace_of(key))
            except Exception as e:
                self.logger.warning("Cache delete failed", keys=list(keys), error=str(e))
                self._count("cache_errors_total", operation="delete")

        for pattern in patterns:
            try:
                deleted = await self.store.delete_pattern(pattern)
                self._count("cache_invalidations_total", namespace=namespace_of(pattern))
                self.logger.debug("Cache pattern invalidated", pattern=pattern, count=deleted)
            except Exception as e:
                self.logger.warning("Cache pattern delete failed", pattern=pattern, error=str(e))
                self._count("cache_errors_total", operation="delete_pattern")

        self.logger.info("Cache invalidate", keys=list(keys), patterns=list(patterns))

    async def _get(self, key: str) -> Optional[Payload]:
        try:
            return await self.store.get(key)
        except Exception as e:
            self.logger.warning("Cache get failed, falling back to data source", key=key, error=str(e))
            self._count("cache_errors_total", operation="get")
            return None

    async def _set(self, key: str, value: Any, codec: Codec) -> None:
        try:
            payload = codec.encode(value)
        except Exception as e:
            self.logger.warning("Cache payload unencodable, skipping set", key=key, error=str(e))
            self._count("cache_errors_total", operation="encode")
            return

        try:
            await self.store.set(key, payload, self.ttl_seconds)
            self.logger.debug("Cache set", key=key, ttl=self.ttl_seconds)
        except Exception as e:
            self.logger.warning("Cache set failed", key=key, error=str(e))
            self._count("cache_errors_total", operation="set")

    def _count(self, metric_name: str, **labels):
        if self.metrics:
            self.metrics.increment_counter(metric_name, **labels)


def cached_read(key_builder: Callable[..., str], codec: Codec):
    """Cache a repository read method.

    The decorated method's owner must expose a ``cache`` attribute holding a
    ``CacheAside``. ``key_builder`` receives the method's arguments (without
    ``self``).
    """
    def decorator(method: Callable[..., Awaitable[Any]]):
        @functools.wraps(method)
        async def wrapper(self, *args, **kwargs):
            key = key_builder(*args, **kwargs)
            return await self.cache.read_through(key, lambda: method(self, *args, **kwargs), codec)
        return wrapper
    return decorator


def invalidates(keys_builder: Optional[Callable[..., Iterable[str]]] = None,
                patterns: Sequence[str] = ()):
    """Invalidate cache entries after a successful repository write.

    ``keys_builder`` receives the method's arguments (without ``self``) and
    returns the keys to delete. A write that raises invalidates nothing.
    """
    def decorator(method: Callable[..., Awaitable[Any]]):
        @functools.wraps(method)
        async def wrapper(self, *args, **kwargs):
            result = await method(self, *args, **kwargs)
            keys = list(keys_builder(*args, **kwargs)) if keys_builder else []
            await self.cache.invalidate(*keys, patterns=patterns)
            return result
        return wrapper
    return decorator
