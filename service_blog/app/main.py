"""
Blog service: users and posts over PostgreSQL with a Redis cache-aside layer.
"""

from typing import List, Optional

from fastapi import Query, Response

from shared.base_service import BaseService
from shared.config import ServiceConfig

from .domain.models import (
    User, PostWithDetails, UserDetail, CreateUserRequest, UpdateUserRequest, PostListResponse
)
from .domain.repositories import UserRepository, PostRepository, UserDetailRepository
from .persistence import (
    PostgreSQLDatabase, PostgresUserRepository, PostgresPostRepository, PostgresUserDetailRepository
)
from .cache import CacheStore, RedisCacheStore, CacheAside, CachedUserRepository, CachedPostRepository
from .background import ViewCountRecorder
from .usecase import UserUsecase, PostUsecase, UserDetailUsecase, UsecasePair, parse_no_cache
from .usecase.posts import DEFAULT_PAGE_SIZE, DEFAULT_FEATURED_LIMIT

NO_CACHE_DESCRIPTION = 'Bypass the cache for this read ("true" or "1")'


class BlogService(BaseService):
    """Blog service implementation.

    Every repository is wired twice: wrapped by the cache-aside layer and
    raw. Reads pick one per request from the ``no_cache`` query parameter;
    writes always go through the cached repository so invalidation runs.
    """

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        database: Optional[PostgreSQLDatabase] = None,
        cache_store: Optional[CacheStore] = None,
        user_repository: Optional[UserRepository] = None,
        post_repository: Optional[PostRepository] = None,
        user_detail_repository: Optional[UserDetailRepository] = None,
    ):
        super().__init__("blog", 8080, config)

        self.database = database if database is not None else PostgreSQLDatabase(
            self.config.postgres_dsn,
            min_size=self.config.postgres_min_pool,
            max_size=self.config.postgres_max_pool,
            metrics=self.metrics
        )
        self.cache_store = cache_store if cache_store is not None else RedisCacheStore(
            self.config.redis_url,
            socket_timeout=self.config.redis_socket_timeout
        )
        self.cache = CacheAside(self.cache_store, self.config.cache_ttl_seconds, self.metrics)

        users = user_repository if user_repository is not None else PostgresUserRepository(self.database)
        posts = post_repository if post_repository is not None else PostgresPostRepository(self.database)
        user_details = (
            user_detail_repository if user_detail_repository is not None
            else PostgresUserDetailRepository(self.database)
        )

        cached_users = CachedUserRepository(users, self.cache)
        cached_posts = CachedPostRepository(posts, self.cache)

        self.view_counter = ViewCountRecorder(
            cached_posts,
            queue_size=self.config.view_count_queue_size,
            metrics=self.metrics
        )

        self.users = UsecasePair(cached=UserUsecase(cached_users), direct=UserUsecase(users))
        self.posts = UsecasePair(
            cached=PostUsecase(cached_posts, self.view_counter),
            direct=PostUsecase(posts, self.view_counter)
        )
        self.user_details = UserDetailUsecase(user_details)

        self._setup_blog_routes()

    def _setup_blog_routes(self):
        """Set up blog-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "blog",
                "message": "Blog API - Blog Service",
                "version": "1.0.0",
                "capabilities": ["users", "posts", "caching", "cache_bypass"]
            }

        @self.app.get("/users", response_model=List[User])
        async def get_users(no_cache: Optional[str] = Query(None, description=NO_CACHE_DESCRIPTION)):
            """List all users."""
            return await self.users.select(parse_no_cache(no_cache)).get_all_users()

        @self.app.get("/users/{user_id}", response_model=User)
        async def get_user(
            user_id: int,
            no_cache: Optional[str] = Query(None, description=NO_CACHE_DESCRIPTION)
        ):
            """Get a user by ID."""
            return await self.users.select(parse_no_cache(no_cache)).get_user_by_id(user_id)

        @self.app.post("/users", response_model=User, status_code=201)
        async def create_user(request: CreateUserRequest):
            """Create a user."""
            return await self.users.cached.create_user(request.name, request.email, request.age)

        @self.app.put("/users/{user_id}", response_model=User)
        async def update_user(user_id: int, request: UpdateUserRequest):
            """Update a user."""
            return await self.users.cached.update_user(
                user_id, name=request.name, email=request.email, age=request.age
            )

        @self.app.delete("/users/{user_id}", status_code=204)
        async def delete_user(user_id: int):
            """Delete a user."""
            await self.users.cached.delete_user(user_id)
            return Response(status_code=204)

        @self.app.get("/users/{user_id}/detail", response_model=UserDetail)
        async def get_user_detail(user_id: int):
            """Get a user with profile, stats and recent activity."""
            return await self.user_details.get_user_detail_by_id(user_id)

        @self.app.get("/users/username/{username}/detail", response_model=UserDetail)
        async def get_user_detail_by_username(username: str):
            """Get a user detail by username."""
            return await self.user_details.get_user_detail_by_username(username)

        @self.app.get("/posts", response_model=PostListResponse)
        async def get_posts(
            page: int = Query(1, description="Page number"),
            page_size: int = Query(DEFAULT_PAGE_SIZE, alias="pageSize", description="Items per page"),
            no_cache: Optional[str] = Query(None, description=NO_CACHE_DESCRIPTION)
        ):
            """List published posts."""
            return await self.posts.select(parse_no_cache(no_cache)).get_posts(page, page_size)

        @self.app.get("/posts/featured", response_model=List[PostWithDetails])
        async def get_featured_posts(
            limit: int = Query(DEFAULT_FEATURED_LIMIT, description="Number of posts"),
            no_cache: Optional[str] = Query(None, description=NO_CACHE_DESCRIPTION)
        ):
            """List featured posts."""
            return await self.posts.select(parse_no_cache(no_cache)).get_featured_posts(limit)

        @self.app.get("/posts/slug/{slug}", response_model=PostWithDetails)
        async def get_post_by_slug(
            slug: str,
            no_cache: Optional[str] = Query(None, description=NO_CACHE_DESCRIPTION)
        ):
            """Get a post by slug."""
            return await self.posts.select(parse_no_cache(no_cache)).get_post_by_slug(slug)

        @self.app.get("/posts/category/{slug}", response_model=List[PostWithDetails])
        async def get_posts_by_category(
            slug: str,
            page: int = Query(1, description="Page number"),
            page_size: int = Query(DEFAULT_PAGE_SIZE, alias="pageSize", description="Items per page"),
            no_cache: Optional[str] = Query(None, description=NO_CACHE_DESCRIPTION)
        ):
            """List posts in a category."""
            usecase = self.posts.select(parse_no_cache(no_cache))
            return await usecase.get_posts_by_category(slug, page, page_size)

        @self.app.get("/posts/tag/{slug}", response_model=List[PostWithDetails])
        async def get_posts_by_tag(
            slug: str,
            page: int = Query(1, description="Page number"),
            page_size: int = Query(DEFAULT_PAGE_SIZE, alias="pageSize", description="Items per page"),
            no_cache: Optional[str] = Query(None, description=NO_CACHE_DESCRIPTION)
        ):
            """List posts with a tag."""
            usecase = self.posts.select(parse_no_cache(no_cache))
            return await usecase.get_posts_by_tag(slug, page, page_size)

        @self.app.get("/posts/{post_id}", response_model=PostWithDetails)
        async def get_post(
            post_id: int,
            no_cache: Optional[str] = Query(None, description=NO_CACHE_DESCRIPTION)
        ):
            """Get a post by ID."""
            return await self.posts.select(parse_no_cache(no_cache)).get_post_by_id(post_id)

    async def _check_dependencies(self):
        """Check blog service dependencies."""
        dependencies = {}

        try:
            dependencies["redis"] = "ok" if await self.cache_store.health_check() else "error"
        except Exception:
            dependencies["redis"] = "error"

        try:
            dependencies["postgres"] = "ok" if await self.database.health_check() else "error"
        except Exception:
            dependencies["postgres"] = "error"

        return dependencies

    async def start(self):
        """Start blog service components."""
        await self.database.start(
            retries=self.config.connect_retries,
            retry_delay=self.config.connect_retry_delay
        )
        await self.cache_store.start()
        await self.view_counter.start()

        self.logger.info("Blog service started", cache_ttl_seconds=self.config.cache_ttl_seconds)

    async def stop(self):
        """Stop blog service components."""
        await self.view_counter.stop()
        await self.cache_store.stop()
        await self.database.stop()

        self.logger.info("Blog service stopped")


def create_app():
    """Create blog service application."""
    service = BlogService()
    return service.app


if __name__ == "__main__":
    service = BlogService()
    service.run()
