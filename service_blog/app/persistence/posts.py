"""
PostgreSQL post repository.

Every read joins posts with their author, author profile and category, then
attaches tags (batch-loaded for listings). Detail reads also attach the
latest approved comments.
"""

from collections import defaultdict
from typing import Dict, List

import asyncpg

from shared.errors import NotFoundError
from ..domain.models import PostWithDetails, Tag, CommentWithAuthor
from .postgres import PostgreSQLDatabase

LATEST_COMMENTS_LIMIT = 5

POST_SELECT = """
    SELECT
        p.id, p.user_id, p.category_id, p.title, p.slug, p.content, p.excerpt,
        p.status, p.published_at, p.view_count, p.like_count, p.comment_count,
        p.is_featured, p.created_at, p.updated_at,
        u.username AS author_username,
        up.display_name AS author_display_name,
        up.avatar_url AS author_avatar_url,
        c.name AS category_name,
        c.slug AS category_slug
    FROM posts p
    INNER JOIN users u ON p.user_id = u.id
    LEFT JOIN user_profiles up ON u.id = up.user_id
"""

PUBLISHED = "p.status = 'published' AND p.published_at IS NOT NULL"

TAG_COLUMNS = "t.id, t.name, t.slug, t.description, t.usage_count, t.created_at, t.updated_at"


class PostgresPostRepository:
    """Published-post queries against the normalized blog schema."""

    def __init__(self, db: PostgreSQLDatabase):
        self.db = db

    async def find_all_with_details(self, limit: int, offset: int) -> List[PostWithDetails]:
        rows = await self.db.fetch(
            "find_posts",
            f"""{POST_SELECT}
            LEFT JOIN categories c ON p.category_id = c.id
            WHERE {PUBLISHED}
            ORDER BY p.published_at DESC
            LIMIT $1 OFFSET $2
            """,
            limit, offset
        )
        return await self._with_tags(rows)

    async def find_by_id_with_details(self, post_id: int) -> PostWithDetails:
        row = await self.db.fetchrow(
            "find_post",
            f"""{POST_SELECT}
            LEFT JOIN categories c ON p.category_id = c.id
            WHERE p.id = $1 AND p.status = 'published'
            """,
            post_id
        )
        if row is None:
            raise NotFoundError("Post not found", {"post_id": post_id})
        return await self._with_details(row)

    async def find_by_slug_with_details(self, slug: str) -> PostWithDetails:
        row = await self.db.fetchrow(
            "find_post_by_slug",
            f"""{POST_SELECT}
            LEFT JOIN categories c ON p.category_id = c.id
            WHERE p.slug = $1 AND p.status = 'published'
            """,
            slug
        )
        if row is None:
            raise NotFoundError("Post not found", {"slug": slug})
        return await self._with_details(row)

    async def find_by_category_with_details(
        self, category_slug: str, limit: int, offset: int
    ) -> List[PostWithDetails]:
        rows = await self.db.fetch(
            "find_posts_by_category",
            f"""{POST_SELECT}
            INNER JOIN categories c ON p.category_id = c.id
            WHERE c.slug = $1 AND {PUBLISHED}
            ORDER BY p.published_at DESC
            LIMIT $2 OFFSET $3
            """,
            category_slug, limit, offset
        )
        return await self._with_tags(rows)

    async def find_by_tag_with_details(
        self, tag_slug: str, limit: int, offset: int
    ) -> List[PostWithDetails]:
        rows = await self.db.fetch(
            "find_posts_by_tag",
            f"""{POST_SELECT}
            LEFT JOIN categories c ON p.category_id = c.id
            WHERE {PUBLISHED} AND EXISTS (
                SELECT 1 FROM post_tags pt
                INNER JOIN tags t ON pt.tag_id = t.id
                WHERE pt.post_id = p.id AND t.slug = $1
            )
            ORDER BY p.published_at DESC
            LIMIT $2 OFFSET $3
            """,
            tag_slug, limit, offset
        )
        return await self._with_tags(rows)

    async def find_featured_with_details(self, limit: int) -> List[PostWithDetails]:
        rows = await self.db.fetch(
            "find_featured_posts",
            f"""{POST_SELECT}
            LEFT JOIN categories c ON p.category_id = c.id
            WHERE p.is_featured = TRUE AND {PUBLISHED}
            ORDER BY p.published_at DESC
            LIMIT $1
            """,
            limit
        )
        return await self._with_tags(rows)

    async def get_total_count(self) -> int:
        count = await self.db.fetchval(
            "count_posts",
            f"SELECT COUNT(*) FROM posts p WHERE {PUBLISHED}"
        )
        return int(count)

    async def increment_view_count(self, post_id: int) -> None:
        await self.db.execute(
            "increment_view_count",
            "UPDATE posts SET view_count = view_count + 1 WHERE id = $1",
            post_id
        )

    async def _with_tags(self, rows: List[asyncpg.Record]) -> List[PostWithDetails]:
        posts = [PostWithDetails.model_validate(dict(row)) for row in rows]
        if not posts:
            return posts

        tags_by_post = await self._load_tags([post.id for post in posts])
        for post in posts:
            post.tags = tags_by_post.get(post.id, [])
        return posts

    async def _with_details(self, row: asyncpg.Record) -> PostWithDetails:
        post = PostWithDetails.model_validate(dict(row))
        tags_by_post = await self._load_tags([post.id])
        post.tags = tags_by_post.get(post.id, [])
        post.latest_comments = await self._load_latest_comments(post.id, LATEST_COMMENTS_LIMIT)
        return post

    async def _load_tags(self, post_ids: List[int]) -> Dict[int, List[Tag]]:
        rows = await self.db.fetch(
            "load_post_tags",
            f"""
            SELECT pt.post_id, {TAG_COLUMNS}
            FROM post_tags pt
            INNER JOIN tags t ON pt.tag_id = t.id
            WHERE pt.post_id = ANY($1::bigint[])
            ORDER BY t.name
            """,
            post_ids
        )
        tags: Dict[int, List[Tag]] = defaultdict(list)
        for row in rows:
            record = dict(row)
            post_id = record.pop("post_id")
            tags[post_id].append(Tag.model_validate(record))
        return tags

    async def _load_latest_comments(self, post_id: int, limit: int) -> List[CommentWithAuthor]:
        rows = await self.db.fetch(
            "load_post_comments",
            """
            SELECT
                c.id, c.post_id, c.user_id, c.parent_id, c.content, c.status,
                c.like_count, c.is_edited, c.created_at, c.updated_at,
                u.username AS author_username,
                up.display_name AS author_display_name,
                up.avatar_url AS author_avatar_url
            FROM comments c
            INNER JOIN users u ON c.user_id = u.id
            LEFT JOIN user_profiles up ON u.id = up.user_id
            WHERE c.post_id = $1 AND c.status = 'approved'
            ORDER BY c.created_at DESC
            LIMIT $2
            """,
            post_id, limit
        )
        return [CommentWithAuthor.model_validate(dict(row)) for row in rows]
