"""
Post usecases: pagination normalisation and view counting on detail reads.
"""

from typing import List, Tuple

from shared.errors import ValidationError
from ..domain.models import PostWithDetails, PostListResponse
from ..domain.repositories import PostRepository
from ..background import ViewCountRecorder

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
DEFAULT_FEATURED_LIMIT = 10
MAX_FEATURED_LIMIT = 50


def normalize_page(page: int, page_size: int) -> Tuple[int, int]:
    """Clamp page to >= 1 and reset page sizes outside 1..100 to the default."""
    if page < 1:
        page = 1
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        page_size = DEFAULT_PAGE_SIZE
    return page, page_size


def page_offset(page: int, page_size: int) -> int:
    return (page - 1) * page_size


class PostUsecase:
    """Post reads over a post repository (cached or direct)."""

    def __init__(self, repository: PostRepository, view_counter: ViewCountRecorder):
        self.repository = repository
        self.view_counter = view_counter

    async def get_posts(self, page: int, page_size: int) -> PostListResponse:
        """One page of published posts, echoing the page and size actually used."""
        page, page_size = normalize_page(page, page_size)
        posts = await self.repository.find_all_with_details(page_size, page_offset(page, page_size))
        total = await self.repository.get_total_count()
        return PostListResponse(posts=posts, total=total, page=page, page_size=page_size)

    async def get_post_by_id(self, post_id: int) -> PostWithDetails:
        if post_id <= 0:
            raise ValidationError(f"Invalid post ID: {post_id}", {"post_id": post_id})

        post = await self.repository.find_by_id_with_details(post_id)
        self.view_counter.schedule(post_id)
        return post

    async def get_post_by_slug(self, slug: str) -> PostWithDetails:
        if not slug:
            raise ValidationError("Slug cannot be empty")

        post = await self.repository.find_by_slug_with_details(slug)
        self.view_counter.schedule(post.id)
        return post

    async def get_posts_by_category(self, category_slug: str, page: int, page_size: int) -> List[PostWithDetails]:
        if not category_slug:
            raise ValidationError("Category slug cannot be empty")

        page, page_size = normalize_page(page, page_size)
        return await self.repository.find_by_category_with_details(
            category_slug, page_size, page_offset(page, page_size)
        )

    async def get_posts_by_tag(self, tag_slug: str, page: int, page_size: int) -> List[PostWithDetails]:
        if not tag_slug:
            raise ValidationError("Tag slug cannot be empty")

        page, page_size = normalize_page(page, page_size)
        return await self.repository.find_by_tag_with_details(
            tag_slug, page_size, page_offset(page, page_size)
        )

    async def get_featured_posts(self, limit: int) -> List[PostWithDetails]:
        if limit < 1 or limit > MAX_FEATURED_LIMIT:
            limit = DEFAULT_FEATURED_LIMIT
        return await self.repository.find_featured_with_details(limit)
