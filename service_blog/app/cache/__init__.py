"""
Cache package for the Blog service.

Provides a Redis-backed key-value store, a generic cache-aside policy
(read-through with TTL, invalidate-on-write) and the user/post repository
wrappers that apply it.
"""

from .store import CacheStore, RedisCacheStore
from .decorator import CacheAside, Codec, cached_read, invalidates
from .repositories import CachedUserRepository, CachedPostRepository

__all__ = [
    "CacheStore", "RedisCacheStore", "CacheAside", "Codec", "cached_read",
    "invalidates", "CachedUserRepository", "CachedPostRepository",
]
