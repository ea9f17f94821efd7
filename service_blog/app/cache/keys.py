"""
Cache key derivation for the Blog service.

A key is ``namespace[:part...][:name=value...]``. Positional parts carry the
scalar discriminator (id, slug); named params carry pagination. Free-form
text is escaped so that a slug can never forge the delimiter and collide with
another query's key. For ordinary slugs and numbers the escaping is a no-op,
so the keys below match the namespaces already present in a warm cache.
"""

from typing import Any

DELIMITER = ":"

USER_NAMESPACE = "user"
USERS_ALL_KEY = "users:all"
POST_NAMESPACE = "post"
POST_SLUG_NAMESPACE = "post:slug"
POSTS_ALL_NAMESPACE = "posts:all"
POSTS_CATEGORY_NAMESPACE = "posts:category"
POSTS_TAG_NAMESPACE = "posts:tag"
POSTS_FEATURED_NAMESPACE = "posts:featured"
POSTS_TOTAL_COUNT_KEY = "posts:totalcount"

# Every post listing/aggregate key lives under this wildcard
POSTS_PATTERN = "posts:*"


def _escape(value: Any) -> str:
    text = str(value)
    return text.replace("%", "%25").replace(":", "%3A").replace("=", "%3D")


def derive_key(namespace: str, *parts: Any, **params: Any) -> str:
    """Build a deterministic cache key.

    Params are rendered in call order, so callers must always pass them in
    the same order for the same query kind.
    """
    segments = [namespace]
    segments.extend(_escape(part) for part in parts)
    segments.extend(f"{name}={_escape(value)}" for name, value in params.items())
    return DELIMITER.join(segments)


def namespace_of(key: str) -> str:
    """Return the leading namespace segment of a key or pattern (``user``, ``posts``)."""
    return key.split(DELIMITER, 1)[0]


def user_key(user_id: int) -> str:
    return derive_key(USER_NAMESPACE, user_id)


def post_key(post_id: int) -> str:
    return derive_key(POST_NAMESPACE, post_id)


def post_slug_key(slug: str) -> str:
    return derive_key(POST_SLUG_NAMESPACE, slug)


def posts_all_key(limit: int, offset: int) -> str:
    return derive_key(POSTS_ALL_NAMESPACE, limit=limit, offset=offset)


def posts_category_key(category_slug: str, limit: int, offset: int) -> str:
    return derive_key(POSTS_CATEGORY_NAMESPACE, category_slug, limit=limit, offset=offset)


def posts_tag_key(tag_slug: str, limit: int, offset: int) -> str:
    return derive_key(POSTS_TAG_NAMESPACE, tag_slug, limit=limit, offset=offset)


def posts_featured_key(limit: int) -> str:
    return derive_key(POSTS_FEATURED_NAMESPACE, limit=limit)
