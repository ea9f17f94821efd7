"""
PostgreSQL connection management for the Blog service.
"""

import asyncio
from contextlib import contextmanager, nullcontext
from typing import Any, List, Optional

import asyncpg

from shared.logging import get_logger
from shared.errors import DataSourceError, ServiceError
from shared.metrics import MetricsCollector

SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS users (
        id BIGSERIAL PRIMARY KEY,
        username VARCHAR(50) NOT NULL UNIQUE,
        email VARCHAR(255) NOT NULL UNIQUE,
        password_hash VARCHAR(255) NOT NULL,
        status VARCHAR(20) NOT NULL DEFAULT 'active'
            CHECK (status IN ('active', 'inactive', 'suspended', 'deleted')),
        email_verified BOOLEAN NOT NULL DEFAULT FALSE,
        last_login_at TIMESTAMPTZ,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS user_profiles (
        id BIGSERIAL PRIMARY KEY,
        user_id BIGINT NOT NULL UNIQUE REFERENCES users(id) ON DELETE CASCADE,
        first_name VARCHAR(50),
        last_name VARCHAR(50),
        display_name VARCHAR(100),
        bio TEXT,
        avatar_url VARCHAR(500),
        birth_date DATE,
        gender VARCHAR(20),
        country_code CHAR(2),
        timezone VARCHAR(50) DEFAULT 'UTC',
        language_code CHAR(2) DEFAULT 'en',
        phone_number VARCHAR(20),
        website_url VARCHAR(500),
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS categories (
        id BIGSERIAL PRIMARY KEY,
        name VARCHAR(100) NOT NULL UNIQUE,
        slug VARCHAR(100) NOT NULL UNIQUE,
        description TEXT,
        parent_id BIGINT REFERENCES categories(id) ON DELETE SET NULL,
        display_order INTEGER NOT NULL DEFAULT 0,
        is_active BOOLEAN NOT NULL DEFAULT TRUE,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS posts (
        id BIGSERIAL PRIMARY KEY,
        user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        category_id BIGINT REFERENCES categories(id) ON DELETE SET NULL,
        title VARCHAR(255) NOT NULL,
        slug VARCHAR(255) NOT NULL UNIQUE,
        content TEXT NOT NULL,
        excerpt VARCHAR(500),
        status VARCHAR(20) NOT NULL DEFAULT 'draft'
            CHECK (status IN ('draft', 'published', 'archived', 'deleted')),
        published_at TIMESTAMPTZ,
        view_count INTEGER NOT NULL DEFAULT 0,
        like_count INTEGER NOT NULL DEFAULT 0,
        comment_count INTEGER NOT NULL DEFAULT 0,
        is_featured BOOLEAN NOT NULL DEFAULT FALSE,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tags (
        id BIGSERIAL PRIMARY KEY,
        name VARCHAR(50) NOT NULL UNIQUE,
        slug VARCHAR(50) NOT NULL UNIQUE,
        description VARCHAR(255),
        usage_count INTEGER NOT NULL DEFAULT 0,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS post_tags (
        post_id BIGINT NOT NULL REFERENCES posts(id) ON DELETE CASCADE,
        tag_id BIGINT NOT NULL REFERENCES tags(id) ON DELETE CASCADE,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        PRIMARY KEY (post_id, tag_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS comments (
        id BIGSERIAL PRIMARY KEY,
        post_id BIGINT NOT NULL REFERENCES posts(id) ON DELETE CASCADE,
        user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        parent_id BIGINT REFERENCES comments(id) ON DELETE CASCADE,
        content TEXT NOT NULL,
        status VARCHAR(20) NOT NULL DEFAULT 'pending'
            CHECK (status IN ('pending', 'approved', 'rejected', 'spam')),
        like_count INTEGER NOT NULL DEFAULT 0,
        is_edited BOOLEAN NOT NULL DEFAULT FALSE,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS user_follows (
        follower_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        following_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        PRIMARY KEY (follower_id, following_id),
        CHECK (follower_id <> following_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS likes (
        id BIGSERIAL PRIMARY KEY,
        user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        likeable_type VARCHAR(10) NOT NULL CHECK (likeable_type IN ('post', 'comment')),
        likeable_id BIGINT NOT NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        UNIQUE (user_id, likeable_type, likeable_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS notifications (
        id BIGSERIAL PRIMARY KEY,
        user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        type VARCHAR(30) NOT NULL,
        title VARCHAR(255) NOT NULL,
        message TEXT NOT NULL,
        link_url VARCHAR(500),
        is_read BOOLEAN NOT NULL DEFAULT FALSE,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        read_at TIMESTAMPTZ
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_posts_status_published ON posts(status, published_at DESC)",
    "CREATE INDEX IF NOT EXISTS idx_posts_category ON posts(category_id)",
    "CREATE INDEX IF NOT EXISTS idx_posts_featured ON posts(is_featured)",
    "CREATE INDEX IF NOT EXISTS idx_post_tags_tag ON post_tags(tag_id)",
    "CREATE INDEX IF NOT EXISTS idx_comments_post ON comments(post_id, created_at DESC)",
    "CREATE INDEX IF NOT EXISTS idx_comments_user ON comments(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_follows_following ON user_follows(following_id)",
    "CREATE INDEX IF NOT EXISTS idx_notifications_user ON notifications(user_id, is_read)",
]

DRIVER_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


class PostgreSQLDatabase:
    """asyncpg pool with query helpers that translate driver failures."""

    def __init__(self, dsn: str, min_size: int = 2, max_size: int = 25,
                 metrics: Optional[MetricsCollector] = None):
        self.dsn = dsn
        self.min_size = min_size
        self.max_size = max_size
        self.metrics = metrics
        self.logger = get_logger("blog.persistence.postgres")
        self.pool: Optional[asyncpg.Pool] = None

    async def start(self, retries: int = 30, retry_delay: float = 2.0):
        """Create the pool, waiting for the database to come up."""
        last_error: Optional[Exception] = None
        for attempt in range(1, retries + 1):
            try:
                self.pool = await asyncpg.create_pool(
                    self.dsn,
                    min_size=self.min_size,
                    max_size=self.max_size,
                    command_timeout=30
                )
                break
            except DRIVER_ERRORS as e:
                last_error = e
                self.logger.warning(
                    "Waiting for database connection",
                    attempt=attempt,
                    retries=retries,
                    error=str(e)
                )
                if attempt < retries:
                    await asyncio.sleep(retry_delay)

        if self.pool is None:
            self.logger.error("Failed to start PostgreSQL", error=str(last_error))
            raise ServiceError("Failed to connect to PostgreSQL", {"error": str(last_error)})

        await self._create_tables()
        self.logger.info("PostgreSQL started")

    async def stop(self):
        """Close the pool."""
        if self.pool:
            await self.pool.close()
            self.pool = None
            self.logger.info("PostgreSQL stopped")

    async def _create_tables(self):
        async with self.pool.acquire() as conn:
            for statement in SCHEMA_STATEMENTS:
                await conn.execute(statement)

    async def health_check(self) -> bool:
        """Check PostgreSQL health."""
        if not self.pool:
            return False
        try:
            async with self.pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
            return True
        except Exception:
            return False

    async def fetch(self, operation: str, query: str, *args: Any) -> List[asyncpg.Record]:
        with self._query(operation):
            async with self.pool.acquire() as conn:
                return await conn.fetch(query, *args)

    async def fetchrow(self, operation: str, query: str, *args: Any) -> Optional[asyncpg.Record]:
        with self._query(operation):
            async with self.pool.acquire() as conn:
                return await conn.fetchrow(query, *args)

    async def fetchval(self, operation: str, query: str, *args: Any) -> Any:
        with self._query(operation):
            async with self.pool.acquire() as conn:
                return await conn.fetchval(query, *args)

    async def execute(self, operation: str, query: str, *args: Any) -> str:
        with self._query(operation):
            async with self.pool.acquire() as conn:
                return await conn.execute(query, *args)

    @contextmanager
    def _query(self, operation: str):
        """Time a query and wrap driver errors into ``DataSourceError``."""
        if self.pool is None:
            raise DataSourceError("Database is not connected", {"operation": operation})

        if self.metrics:
            timer = self.metrics.time_operation("data_source_duration_seconds", operation=operation)
        else:
            timer = nullcontext()

        with timer:
            try:
                yield
            except DRIVER_ERRORS as e:
                self.logger.error("Query failed", operation=operation, error=str(e))
                raise DataSourceError(f"Failed to {operation.replace('_', ' ')}",
                                      {"operation": operation}) from e
