"""
Data access contracts for the Blog service.

Both the PostgreSQL data source and the cache-aside wrappers implement these
protocols, so usecases cannot tell whether a cache sits in the path.
Missing records are signalled with ``shared.errors.NotFoundError``.
"""

from typing import List, Protocol

from .models import User, PostWithDetails, UserDetail


class UserRepository(Protocol):
    """User data operations."""

    async def find_all(self) -> List[User]: ...

    async def find_by_id(self, user_id: int) -> User: ...

    async def create(self, user: User) -> User: ...

    async def update(self, user: User) -> User: ...

    async def delete(self, user_id: int) -> None: ...


class PostRepository(Protocol):
    """Published post queries, each returning fully joined records."""

    async def find_all_with_details(self, limit: int, offset: int) -> List[PostWithDetails]: ...

    async def find_by_id_with_details(self, post_id: int) -> PostWithDetails: ...

    async def find_by_slug_with_details(self, slug: str) -> PostWithDetails: ...

    async def find_by_category_with_details(
        self, category_slug: str, limit: int, offset: int
    ) -> List[PostWithDetails]: ...

    async def find_by_tag_with_details(
        self, tag_slug: str, limit: int, offset: int
    ) -> List[PostWithDetails]: ...

    async def find_featured_with_details(self, limit: int) -> List[PostWithDetails]: ...

    async def get_total_count(self) -> int: ...

    async def increment_view_count(self, post_id: int) -> None: ...


class UserDetailRepository(Protocol):
    """Aggregated user detail queries."""

    async def find_detail_by_id(self, user_id: int) -> UserDetail: ...

    async def find_detail_by_username(self, username: str) -> UserDetail: ...
