"""
Unit tests for the Blog usecases.
"""

import pytest
from unittest.mock import MagicMock

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from shared.errors import NotFoundError, ValidationError
from shared.test_helpers import (
    InMemoryUserRepository, InMemoryPostRepository, InMemoryUserDetailRepository, TestDataFactory
)
from service_blog.app.usecase import UserUsecase, PostUsecase, UserDetailUsecase
from service_blog.app.usecase.posts import normalize_page, page_offset


class TestPagination:
    """Test cases for page normalisation."""

    @pytest.mark.parametrize("page,page_size,expected", [
        (1, 20, (1, 20)),
        (3, 50, (3, 50)),
        (0, 20, (1, 20)),
        (-4, 20, (1, 20)),
        (2, 0, (2, 20)),
        (2, 100, (2, 100)),
        (2, 101, (2, 20)),
        (2, -1, (2, 20)),
    ])
    def test_normalize_page(self, page, page_size, expected):
        """Test out-of-range pages and sizes fall back to defaults."""
        assert normalize_page(page, page_size) == expected

    def test_page_offset(self):
        """Test offset derivation."""
        assert page_offset(1, 20) == 0
        assert page_offset(3, 20) == 40


class TestUserUsecase:
    """Test cases for UserUsecase."""

    @pytest.fixture
    def repository(self):
        """Create user repository."""
        return InMemoryUserRepository([TestDataFactory.create_test_user(1, "A")])

    @pytest.fixture
    def usecase(self, repository):
        """Create UserUsecase instance."""
        return UserUsecase(repository)

    @pytest.mark.asyncio
    async def test_create_user(self, usecase):
        """Test user creation assigns an id."""
        user = await usecase.create_user("C", "c@example.com", 30)

        assert user.id == 2
        assert user.name == "C"
        assert user.age == 30

    @pytest.mark.asyncio
    async def test_update_user_applies_given_fields(self, usecase):
        """Test partial update keeps fields that were not given."""
        user = await usecase.update_user(1, name="B")

        assert user.name == "B"
        assert user.email == "a@example.com"

    @pytest.mark.asyncio
    async def test_update_missing_user(self, usecase, repository):
        """Test update of an unknown user raises and writes nothing."""
        with pytest.raises(NotFoundError):
            await usecase.update_user(99, name="B")

        assert repository.calls["update"] == 0

    @pytest.mark.asyncio
    async def test_delete_user(self, usecase):
        """Test user deletion."""
        await usecase.delete_user(1)

        assert await usecase.get_all_users() == []


class TestPostUsecase:
    """Test cases for PostUsecase."""

    @pytest.fixture
    def repository(self):
        """Create post repository."""
        posts = [
            TestDataFactory.create_test_post(i, is_featured=i % 2 == 0, hours_ago=i)
            for i in range(1, 31)
        ]
        return InMemoryPostRepository(posts)

    @pytest.fixture
    def view_counter(self):
        """Mock view count recorder."""
        return MagicMock()

    @pytest.fixture
    def usecase(self, repository, view_counter):
        """Create PostUsecase instance."""
        return PostUsecase(repository, view_counter)

    @pytest.mark.asyncio
    async def test_get_posts_returns_page_and_total(self, usecase):
        """Test a page of posts with the overall total."""
        result = await usecase.get_posts(2, 10)

        assert [post.id for post in result.posts] == list(range(11, 21))
        assert result.total == 30
        assert (result.page, result.page_size) == (2, 10)

    @pytest.mark.asyncio
    async def test_get_posts_normalizes_paging(self, usecase):
        """Test invalid paging falls back to page 1 of 20 and reports it."""
        result = await usecase.get_posts(0, 500)

        assert [post.id for post in result.posts] == list(range(1, 21))
        assert (result.page, result.page_size) == (1, 20)

    @pytest.mark.asyncio
    async def test_get_post_by_id_schedules_view(self, usecase, view_counter):
        """Test a detail read schedules one view increment."""
        post = await usecase.get_post_by_id(5)

        assert post.id == 5
        view_counter.schedule.assert_called_once_with(5)

    @pytest.mark.asyncio
    async def test_get_post_by_slug_schedules_view(self, usecase, view_counter):
        """Test a slug read schedules an increment for the post id."""
        post = await usecase.get_post_by_slug("post-7")

        assert post.id == 7
        view_counter.schedule.assert_called_once_with(7)

    @pytest.mark.asyncio
    async def test_missing_post_schedules_nothing(self, usecase, view_counter):
        """Test a failed read does not count a view."""
        with pytest.raises(NotFoundError):
            await usecase.get_post_by_id(999)

        view_counter.schedule.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("post_id", [0, -1])
    async def test_invalid_post_id(self, usecase, repository, post_id):
        """Test non-positive ids are rejected before the data source."""
        with pytest.raises(ValidationError):
            await usecase.get_post_by_id(post_id)

        assert repository.calls["find_by_id_with_details"] == 0

    @pytest.mark.asyncio
    async def test_empty_slugs_rejected(self, usecase):
        """Test empty slugs are validation errors."""
        with pytest.raises(ValidationError):
            await usecase.get_post_by_slug("")
        with pytest.raises(ValidationError):
            await usecase.get_posts_by_category("", 1, 20)
        with pytest.raises(ValidationError):
            await usecase.get_posts_by_tag("", 1, 20)

    @pytest.mark.asyncio
    async def test_get_posts_by_category(self, usecase):
        """Test category listing paging."""
        posts = await usecase.get_posts_by_category("tech", 3, 10)

        assert [post.id for post in posts] == list(range(21, 31))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit,expected", [(3, 3), (0, 10), (51, 10), (50, 15)])
    async def test_featured_limit(self, usecase, limit, expected):
        """Test featured limit is clamped to the default when out of range."""
        posts = await usecase.get_featured_posts(limit)

        assert len(posts) == expected
        assert all(post.is_featured for post in posts)


class TestUserDetailUsecase:
    """Test cases for UserDetailUsecase."""

    @pytest.fixture
    def usecase(self):
        """Create UserDetailUsecase instance."""
        return UserDetailUsecase(InMemoryUserDetailRepository([TestDataFactory.create_test_user_detail()]))

    @pytest.mark.asyncio
    async def test_get_by_id_and_username(self, usecase):
        """Test both lookups return the same aggregate."""
        by_id = await usecase.get_user_detail_by_id(1)
        by_username = await usecase.get_user_detail_by_username("alice")

        assert by_id == by_username
        assert by_id.follow_stats.follower_count == 3

    @pytest.mark.asyncio
    async def test_unknown_username(self, usecase):
        """Test an unknown username raises not found."""
        with pytest.raises(NotFoundError):
            await usecase.get_user_detail_by_username("nobody")
