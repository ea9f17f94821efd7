"""
Unit tests for the cached user and post repositories.
"""

import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from shared.errors import NotFoundError, DataSourceError
from shared.test_helpers import (
    FakeCacheStore, FakeClock, InMemoryUserRepository, InMemoryPostRepository, TestDataFactory
)
from service_blog.app.cache import CacheAside, CachedUserRepository, CachedPostRepository
from service_blog.app.cache.repositories import USER, POST_LIST


class TestCachedUserRepository:
    """Test cases for CachedUserRepository."""

    @pytest.fixture
    def store(self):
        """Create an in-memory cache store."""
        return FakeCacheStore(FakeClock())

    @pytest.fixture
    def base(self):
        """Create the underlying user repository."""
        return InMemoryUserRepository([TestDataFactory.create_test_user(1, "A")])

    @pytest.fixture
    def repository(self, base, store):
        """Create CachedUserRepository instance."""
        return CachedUserRepository(base, CacheAside(store, ttl_seconds=300))

    @pytest.mark.asyncio
    async def test_update_is_visible_on_next_read(self, repository, store):
        """Test a cached user reflects an update immediately."""
        cached = await repository.find_by_id(1)
        assert cached.name == "A"
        assert USER.decode(store.entries["user:1"][0]).name == "A"

        await repository.update(cached.model_copy(update={"name": "B"}))

        user = await repository.find_by_id(1)
        assert user.id == 1
        assert user.name == "B"

    @pytest.mark.asyncio
    async def test_find_all_cached_under_users_all(self, repository, base):
        """Test the user listing is served from cache on repeat."""
        await repository.find_all()
        users = await repository.find_all()

        assert [user.name for user in users] == ["A"]
        assert base.calls["find_all"] == 1

    @pytest.mark.asyncio
    async def test_create_invalidates_listing(self, repository, base, store):
        """Test a new user shows up in the listing."""
        await repository.find_all()
        assert "users:all" in store.entries

        created = await repository.create(TestDataFactory.create_test_user(0, "C", "c@example.com"))

        assert "users:all" not in store.entries
        users = await repository.find_all()
        assert [user.id for user in users] == [1, created.id]
        assert base.calls["find_all"] == 2

    @pytest.mark.asyncio
    async def test_delete_invalidates_user_and_listing(self, repository, store):
        """Test a deleted user is no longer served from cache."""
        await repository.find_by_id(1)
        await repository.find_all()

        await repository.delete(1)

        assert store.entries == {}
        with pytest.raises(NotFoundError):
            await repository.find_by_id(1)

    @pytest.mark.asyncio
    async def test_failed_update_keeps_cache(self, repository, base, store):
        """Test a data source error on update invalidates nothing."""
        user = await repository.find_by_id(1)
        base.failing = True

        with pytest.raises(DataSourceError):
            await repository.update(user.model_copy(update={"name": "B"}))

        assert "user:1" in store.entries
        assert store.calls["delete"] == 0

    @pytest.mark.asyncio
    async def test_not_found_is_not_cached(self, repository, base, store):
        """Test a missing user is looked up every time."""
        for _ in range(2):
            with pytest.raises(NotFoundError):
                await repository.find_by_id(99)

        assert base.calls["find_by_id"] == 2
        assert "user:99" not in store.entries


class TestCachedPostRepository:
    """Test cases for CachedPostRepository."""

    @pytest.fixture
    def store(self):
        """Create an in-memory cache store."""
        return FakeCacheStore(FakeClock())

    @pytest.fixture
    def base(self):
        """Create the underlying post repository."""
        return InMemoryPostRepository([
            TestDataFactory.create_test_post(1, tag_slugs=("python",), is_featured=True, hours_ago=1),
            TestDataFactory.create_test_post(2, category_slug="life", hours_ago=2),
            TestDataFactory.create_test_post(3, tag_slugs=("python", "go"), hours_ago=3),
            TestDataFactory.create_test_post(4, status="draft"),
        ])

    @pytest.fixture
    def repository(self, base, store):
        """Create CachedPostRepository instance."""
        return CachedPostRepository(base, CacheAside(store, ttl_seconds=300))

    @pytest.mark.asyncio
    async def test_listing_with_unreachable_store(self, repository, store):
        """Test a listing is complete and correct while the store is down."""
        store.available = False

        posts = await repository.find_all_with_details(5, 0)

        assert [post.id for post in posts] == [1, 2, 3]
        assert store.entries == {}

    @pytest.mark.asyncio
    async def test_listing_pages_are_cached_separately(self, repository, base, store):
        """Test each limit/offset pair has its own entry."""
        first = await repository.find_all_with_details(2, 0)
        second = await repository.find_all_with_details(2, 2)

        assert [post.id for post in first] == [1, 2]
        assert [post.id for post in second] == [3]
        assert "posts:all:limit=2:offset=0" in store.entries
        assert "posts:all:limit=2:offset=2" in store.entries
        assert POST_LIST.decode(store.entries["posts:all:limit=2:offset=0"][0]) == first

    @pytest.mark.asyncio
    async def test_reads_are_served_from_cache(self, repository, base):
        """Test repeated reads of every kind reach the data source once."""
        for _ in range(2):
            await repository.find_by_id_with_details(1)
            await repository.find_by_slug_with_details("post-2")
            await repository.find_by_category_with_details("tech", 20, 0)
            await repository.find_by_tag_with_details("python", 20, 0)
            await repository.find_featured_with_details(10)
            await repository.get_total_count()

        assert set(base.calls.values()) == {1}
        assert len(base.calls) == 6

    @pytest.mark.asyncio
    async def test_filters_and_count(self, repository):
        """Test filtered listings and the published count."""
        by_category = await repository.find_by_category_with_details("life", 20, 0)
        by_tag = await repository.find_by_tag_with_details("python", 20, 0)
        featured = await repository.find_featured_with_details(10)

        assert [post.id for post in by_category] == [2]
        assert [post.id for post in by_tag] == [1, 3]
        assert [post.id for post in featured] == [1]
        assert await repository.get_total_count() == 3

    @pytest.mark.asyncio
    async def test_view_increment_invalidates_post_and_listings(self, repository, base, store):
        """Test a view count bump drops the post and every listing key."""
        await repository.find_by_id_with_details(1)
        await repository.find_by_slug_with_details("post-1")
        await repository.find_all_with_details(20, 0)
        await repository.find_featured_with_details(10)
        await repository.get_total_count()

        await repository.increment_view_count(1)

        assert list(store.entries) == ["post:slug:post-1"]
        post = await repository.find_by_id_with_details(1)
        assert post.view_count == 1
        assert base.calls["find_by_id_with_details"] == 2
