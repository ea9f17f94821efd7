"""
Unit tests for the PostgreSQL data source.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

import asyncpg

from shared.errors import DataSourceError, NotFoundError, ServiceError
from shared.metrics import MetricsCollector
from shared.test_helpers import BASE_TIME, TestDataFactory
from service_blog.app.persistence import (
    PostgreSQLDatabase, PostgresUserRepository, PostgresPostRepository, PostgresUserDetailRepository
)
from service_blog.app.persistence.postgres import SCHEMA_STATEMENTS
from service_blog.app.persistence.users import PLACEHOLDER_PASSWORD_HASH


def post_row(post_id: int, **overrides):
    """Joined post row as returned by the post queries."""
    row = {
        "id": post_id, "user_id": 1, "category_id": 1, "title": f"Post {post_id}",
        "slug": f"post-{post_id}", "content": "Body", "excerpt": None, "status": "published",
        "published_at": BASE_TIME, "view_count": 3, "like_count": 0, "comment_count": 1,
        "is_featured": False, "created_at": BASE_TIME, "updated_at": BASE_TIME,
        "author_username": "alice", "author_display_name": "Alice", "author_avatar_url": None,
        "category_name": "Tech", "category_slug": "tech",
    }
    row.update(overrides)
    return row


def tag_row(post_id: int, tag_id: int, slug: str):
    """Tag row joined with its post id."""
    return {
        "post_id": post_id, "id": tag_id, "name": slug.title(), "slug": slug,
        "description": None, "usage_count": 1, "created_at": BASE_TIME, "updated_at": BASE_TIME,
    }


class TestPostgreSQLDatabase:
    """Test cases for PostgreSQLDatabase."""

    @pytest.fixture
    def connection(self):
        """Mock asyncpg connection."""
        return AsyncMock()

    @pytest.fixture
    def pool(self, connection):
        """Mock asyncpg pool."""
        pool = MagicMock()
        pool.acquire.return_value.__aenter__.return_value = connection
        pool.close = AsyncMock()
        return pool

    @pytest.fixture
    def metrics(self):
        """Create an isolated metrics collector."""
        return MetricsCollector("blog")

    @pytest.fixture
    def database(self, pool, metrics):
        """Create PostgreSQLDatabase instance with a mocked pool."""
        database = PostgreSQLDatabase("postgresql://localhost/blog", metrics=metrics)
        database.pool = pool
        return database

    @pytest.mark.asyncio
    async def test_fetch_times_query(self, database, connection, metrics):
        """Test queries are recorded per operation."""
        connection.fetch.return_value = [{"id": 1}]

        rows = await database.fetch("find_users", "SELECT 1")

        assert rows == [{"id": 1}]
        assert metrics.registry.get_sample_value(
            "data_source_duration_seconds_count", {"operation": "find_users"}
        ) == 1

    @pytest.mark.asyncio
    async def test_driver_errors_are_wrapped(self, database, connection):
        """Test connection failures surface as DataSourceError."""
        connection.fetchrow.side_effect = OSError("connection reset")

        with pytest.raises(DataSourceError) as exc_info:
            await database.fetchrow("find_user", "SELECT 1")

        assert exc_info.value.details == {"operation": "find_user"}
        assert isinstance(exc_info.value.__cause__, OSError)

    @pytest.mark.asyncio
    async def test_interface_errors_are_wrapped(self, database, connection):
        """Test pool/driver interface failures surface as DataSourceError."""
        connection.execute.side_effect = asyncpg.InterfaceError("pool is closing")

        with pytest.raises(DataSourceError):
            await database.execute("delete_user", "DELETE FROM users")

    @pytest.mark.asyncio
    async def test_query_without_pool(self):
        """Test queries before start fail with DataSourceError."""
        database = PostgreSQLDatabase("postgresql://localhost/blog")

        with pytest.raises(DataSourceError):
            await database.fetchval("count_posts", "SELECT 1")

    @pytest.mark.asyncio
    async def test_start_creates_schema(self, pool, connection):
        """Test start creates the pool and every table."""
        database = PostgreSQLDatabase("postgresql://localhost/blog")

        with patch("service_blog.app.persistence.postgres.asyncpg.create_pool",
                   new=AsyncMock(return_value=pool)):
            await database.start(retries=1)

        assert database.pool is pool
        assert connection.execute.await_count == len(SCHEMA_STATEMENTS)

    @pytest.mark.asyncio
    async def test_start_retries_then_fails(self):
        """Test start waits between attempts and gives up after the last."""
        database = PostgreSQLDatabase("postgresql://localhost/blog")

        with patch("service_blog.app.persistence.postgres.asyncpg.create_pool",
                   new=AsyncMock(side_effect=OSError("connection refused"))) as mock_create, \
                patch("service_blog.app.persistence.postgres.asyncio.sleep", new=AsyncMock()) as mock_sleep:
            with pytest.raises(ServiceError):
                await database.start(retries=3, retry_delay=0.5)

        assert mock_create.await_count == 3
        assert mock_sleep.await_count == 2
        mock_sleep.assert_awaited_with(0.5)

    @pytest.mark.asyncio
    async def test_health_check(self, database, connection):
        """Test health check runs a trivial query."""
        assert await database.health_check() is True

        connection.fetchval.side_effect = OSError("down")
        assert await database.health_check() is False

    @pytest.mark.asyncio
    async def test_stop(self, database, pool):
        """Test stop closes the pool."""
        await database.stop()

        pool.close.assert_awaited_once()
        assert database.pool is None


class TestPostgresUserRepository:
    """Test cases for PostgresUserRepository."""

    @pytest.fixture
    def db(self):
        """Mock database."""
        return AsyncMock()

    @pytest.fixture
    def repository(self, db):
        """Create PostgresUserRepository instance."""
        return PostgresUserRepository(db)

    @pytest.mark.asyncio
    async def test_find_by_id(self, repository, db):
        """Test lookup maps the username column to name."""
        db.fetchrow.return_value = {
            "id": 1, "name": "alice", "email": "alice@example.com",
            "created_at": BASE_TIME, "updated_at": BASE_TIME
        }

        user = await repository.find_by_id(1)

        assert user.name == "alice"
        assert user.age is None

    @pytest.mark.asyncio
    async def test_find_by_id_missing(self, repository, db):
        """Test missing row raises not found."""
        db.fetchrow.return_value = None

        with pytest.raises(NotFoundError):
            await repository.find_by_id(1)

    @pytest.mark.asyncio
    async def test_create(self, repository, db):
        """Test create returns the generated id and timestamps."""
        db.fetchrow.return_value = {"id": 7, "created_at": BASE_TIME, "updated_at": BASE_TIME}

        user = await repository.create(TestDataFactory.create_test_user(0, "carol", "carol@example.com"))

        assert user.id == 7
        assert user.name == "carol"
        args = db.fetchrow.await_args.args
        assert args[2:] == ("carol", "carol@example.com", PLACEHOLDER_PASSWORD_HASH)

    @pytest.mark.asyncio
    async def test_update_missing(self, repository, db):
        """Test updating a missing row raises not found."""
        db.fetchrow.return_value = None

        with pytest.raises(NotFoundError):
            await repository.update(TestDataFactory.create_test_user(9))

    @pytest.mark.asyncio
    async def test_delete(self, repository, db):
        """Test delete checks the affected row count."""
        db.execute.return_value = "DELETE 1"
        await repository.delete(1)

        db.execute.return_value = "DELETE 0"
        with pytest.raises(NotFoundError):
            await repository.delete(2)


class TestPostgresPostRepository:
    """Test cases for PostgresPostRepository."""

    @pytest.fixture
    def db(self):
        """Mock database."""
        return AsyncMock()

    @pytest.fixture
    def repository(self, db):
        """Create PostgresPostRepository instance."""
        return PostgresPostRepository(db)

    @pytest.mark.asyncio
    async def test_listing_attaches_tags(self, repository, db):
        """Test tags are batch-loaded and attached per post."""
        db.fetch.side_effect = [
            [post_row(1), post_row(2)],
            [tag_row(1, 10, "go"), tag_row(1, 11, "python"), tag_row(2, 11, "python")],
        ]

        posts = await repository.find_all_with_details(20, 0)

        assert [post.id for post in posts] == [1, 2]
        assert [tag.slug for tag in posts[0].tags] == ["go", "python"]
        assert [tag.slug for tag in posts[1].tags] == ["python"]
        assert db.fetch.await_args_list[1].args[2] == [1, 2]

    @pytest.mark.asyncio
    async def test_empty_listing_skips_tag_query(self, repository, db):
        """Test an empty page issues a single query."""
        db.fetch.return_value = []

        assert await repository.find_by_tag_with_details("python", 20, 0) == []
        assert db.fetch.await_count == 1

    @pytest.mark.asyncio
    async def test_detail_attaches_comments(self, repository, db):
        """Test a detail read attaches tags and latest comments."""
        db.fetchrow.return_value = post_row(1)
        db.fetch.side_effect = [
            [tag_row(1, 10, "go")],
            [{
                "id": 5, "post_id": 1, "user_id": 2, "parent_id": None, "content": "Nice",
                "status": "approved", "like_count": 0, "is_edited": False,
                "created_at": BASE_TIME, "updated_at": BASE_TIME,
                "author_username": "bob", "author_display_name": None, "author_avatar_url": None
            }],
        ]

        post = await repository.find_by_slug_with_details("post-1")

        assert post.tags[0].slug == "go"
        assert post.latest_comments[0].author_username == "bob"

    @pytest.mark.asyncio
    async def test_detail_missing(self, repository, db):
        """Test a missing post raises not found."""
        db.fetchrow.return_value = None

        with pytest.raises(NotFoundError):
            await repository.find_by_id_with_details(1)

    @pytest.mark.asyncio
    async def test_total_count_and_increment(self, repository, db):
        """Test the count and the view increment statement."""
        db.fetchval.return_value = 12

        assert await repository.get_total_count() == 12

        await repository.increment_view_count(4)
        assert db.execute.await_args.args[0] == "increment_view_count"
        assert db.execute.await_args.args[2] == 4


class TestPostgresUserDetailRepository:
    """Test cases for PostgresUserDetailRepository."""

    @pytest.fixture
    def db(self):
        """Mock database."""
        return AsyncMock()

    @pytest.fixture
    def repository(self, db):
        """Create PostgresUserDetailRepository instance."""
        return PostgresUserDetailRepository(db)

    def user_row(self, with_profile: bool):
        row = {
            "id": 1, "username": "alice", "email": "alice@example.com", "status": "active",
            "email_verified": True, "last_login_at": None,
            "created_at": BASE_TIME, "updated_at": BASE_TIME,
            "profile_user_id": 1 if with_profile else None,
            "first_name": "Alice" if with_profile else None, "last_name": None,
            "display_name": "Alice" if with_profile else None, "bio": None, "avatar_url": None,
            "birth_date": "1990-05-01" if with_profile else None, "gender": None,
            "country_code": None, "timezone": None, "language": None,
            "phone_number": None, "website_url": None,
        }
        return row

    @pytest.mark.asyncio
    async def test_detail_aggregates(self, repository, db):
        """Test the aggregate combines profile, stats and activity."""
        db.fetchrow.side_effect = [
            self.user_row(with_profile=True),
            {"follower_count": 4, "following_count": 2},
            {"post_count": 3, "total_views": 90, "total_likes": 5, "comment_count": 7},
        ]
        db.fetch.side_effect = [[], [], []]

        detail = await repository.find_detail_by_id(1)

        assert detail.profile.birth_date == "1990-05-01"
        assert detail.follow_stats.follower_count == 4
        assert detail.stats.total_views == 90
        assert detail.recent_posts == []

    @pytest.mark.asyncio
    async def test_detail_without_profile(self, repository, db):
        """Test a user without a profile row has no profile."""
        db.fetchrow.side_effect = [
            self.user_row(with_profile=False),
            {"follower_count": 0, "following_count": 0},
            {"post_count": 0, "total_views": 0, "total_likes": 0, "comment_count": 0},
        ]
        db.fetch.side_effect = [[], [], []]

        detail = await repository.find_detail_by_id(1)

        assert detail.profile is None

    @pytest.mark.asyncio
    async def test_unknown_username(self, repository, db):
        """Test an unknown username raises not found."""
        db.fetchval.return_value = None

        with pytest.raises(NotFoundError):
            await repository.find_detail_by_username("nobody")
