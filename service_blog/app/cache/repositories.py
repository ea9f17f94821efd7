"""
Cache-aside wrappers for the Blog repositories.

Each wrapper implements the same protocol as the repository it wraps; the
only entity-specific knowledge here is which key a read uses and which keys
a write invalidates.
"""

from typing import List

from ..domain.models import User, PostWithDetails
from ..domain.repositories import UserRepository, PostRepository
from . import keys
from .decorator import CacheAside, Codec, cached_read, invalidates

USER = Codec(User)
USER_LIST = Codec(List[User])
POST_DETAIL = Codec(PostWithDetails)
POST_LIST = Codec(List[PostWithDetails])
COUNT = Codec(int)


class CachedUserRepository:
    """User repository with read-through caching.

    Invalidation set: create drops ``users:all``; update and delete drop
    ``user:{id}`` and ``users:all``.
    """

    def __init__(self, base: UserRepository, cache: CacheAside):
        self.base = base
        self.cache = cache

    @cached_read(lambda: keys.USERS_ALL_KEY, USER_LIST)
    async def find_all(self) -> List[User]:
        return await self.base.find_all()

    @cached_read(keys.user_key, USER)
    async def find_by_id(self, user_id: int) -> User:
        return await self.base.find_by_id(user_id)

    @invalidates(lambda user: [keys.USERS_ALL_KEY])
    async def create(self, user: User) -> User:
        return await self.base.create(user)

    @invalidates(lambda user: [keys.user_key(user.id), keys.USERS_ALL_KEY])
    async def update(self, user: User) -> User:
        return await self.base.update(user)

    @invalidates(lambda user_id: [keys.user_key(user_id), keys.USERS_ALL_KEY])
    async def delete(self, user_id: int) -> None:
        return await self.base.delete(user_id)


class CachedPostRepository:
    """Post repository with read-through caching.

    Paginated listings are keyed by (limit, offset); there is no per-page
    invalidation, so a view count bump wipes every ``posts:*`` key together
    with ``post:{id}``. Slug-keyed details are left to expire by TTL.
    """

    def __init__(self, base: PostRepository, cache: CacheAside):
        self.base = base
        self.cache = cache

    @cached_read(keys.posts_all_key, POST_LIST)
    async def find_all_with_details(self, limit: int, offset: int) -> List[PostWithDetails]:
        return await self.base.find_all_with_details(limit, offset)

    @cached_read(keys.post_key, POST_DETAIL)
    async def find_by_id_with_details(self, post_id: int) -> PostWithDetails:
        return await self.base.find_by_id_with_details(post_id)

    @cached_read(keys.post_slug_key, POST_DETAIL)
    async def find_by_slug_with_details(self, slug: str) -> PostWithDetails:
        return await self.base.find_by_slug_with_details(slug)

    @cached_read(keys.posts_category_key, POST_LIST)
    async def find_by_category_with_details(
        self, category_slug: str, limit: int, offset: int
    ) -> List[PostWithDetails]:
        return await self.base.find_by_category_with_details(category_slug, limit, offset)

    @cached_read(keys.posts_tag_key, POST_LIST)
    async def find_by_tag_with_details(
        self, tag_slug: str, limit: int, offset: int
    ) -> List[PostWithDetails]:
        return await self.base.find_by_tag_with_details(tag_slug, limit, offset)

    @cached_read(keys.posts_featured_key, POST_LIST)
    async def find_featured_with_details(self, limit: int) -> List[PostWithDetails]:
        return await self.base.find_featured_with_details(limit)

    @cached_read(lambda: keys.POSTS_TOTAL_COUNT_KEY, COUNT)
    async def get_total_count(self) -> int:
        return await self.base.get_total_count()

    @invalidates(lambda post_id: [keys.post_key(post_id)], patterns=[keys.POSTS_PATTERN])
    async def increment_view_count(self, post_id: int) -> None:
        return await self.base.increment_view_count(post_id)
