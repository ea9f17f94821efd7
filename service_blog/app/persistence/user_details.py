"""
PostgreSQL user detail repository: a user with profile, social counts,
activity statistics and recent activity, assembled from several queries.
"""

from shared.errors import NotFoundError
from ..domain.models import (
    UserDetail, UserProfile, FollowStats, UserStats, UserPost, UserComment, UserNotification
)
from .postgres import PostgreSQLDatabase

RECENT_POSTS_LIMIT = 5
RECENT_COMMENTS_LIMIT = 5
UNREAD_NOTIFICATIONS_LIMIT = 10

PROFILE_FIELDS = (
    "first_name", "last_name", "display_name", "bio", "avatar_url", "birth_date",
    "gender", "country_code", "timezone", "language", "phone_number", "website_url",
)


class PostgresUserDetailRepository:
    """Aggregated read model over users, profiles, follows, posts, comments, notifications."""

    def __init__(self, db: PostgreSQLDatabase):
        self.db = db

    async def find_detail_by_username(self, username: str) -> UserDetail:
        user_id = await self.db.fetchval(
            "find_user_id_by_username",
            "SELECT id FROM users WHERE username = $1",
            username
        )
        if user_id is None:
            raise NotFoundError("User not found", {"username": username})
        return await self.find_detail_by_id(user_id)

    async def find_detail_by_id(self, user_id: int) -> UserDetail:
        row = await self.db.fetchrow(
            "find_user_detail",
            """
            SELECT
                u.id, u.username, u.email, u.status, u.email_verified, u.last_login_at,
                u.created_at, u.updated_at,
                p.user_id AS profile_user_id,
                p.first_name, p.last_name, p.display_name, p.bio, p.avatar_url,
                p.birth_date::text AS birth_date, p.gender, p.country_code, p.timezone,
                p.language_code AS language, p.phone_number, p.website_url
            FROM users u
            LEFT JOIN user_profiles p ON u.id = p.user_id
            WHERE u.id = $1
            """,
            user_id
        )
        if row is None:
            raise NotFoundError("User not found", {"user_id": user_id})

        record = dict(row)
        profile_values = {name: record.pop(name) for name in PROFILE_FIELDS}
        has_profile = record.pop("profile_user_id") is not None

        detail = UserDetail.model_validate(record)
        detail.profile = UserProfile.model_validate(profile_values) if has_profile else None
        detail.follow_stats = await self._follow_stats(user_id)
        detail.stats = await self._user_stats(user_id)
        detail.recent_posts = await self._recent_posts(user_id)
        detail.recent_comments = await self._recent_comments(user_id)
        detail.unread_notifications = await self._unread_notifications(user_id)
        return detail

    async def _follow_stats(self, user_id: int) -> FollowStats:
        row = await self.db.fetchrow(
            "count_follows",
            """
            SELECT
                (SELECT COUNT(*) FROM user_follows WHERE following_id = $1) AS follower_count,
                (SELECT COUNT(*) FROM user_follows WHERE follower_id = $1) AS following_count
            """,
            user_id
        )
        return FollowStats.model_validate(dict(row))

    async def _user_stats(self, user_id: int) -> UserStats:
        row = await self.db.fetchrow(
            "aggregate_user_stats",
            """
            SELECT
                COUNT(*) AS post_count,
                COALESCE(SUM(view_count), 0) AS total_views,
                COALESCE(SUM(like_count), 0) AS total_likes,
                (SELECT COUNT(*) FROM comments
                 WHERE user_id = $1 AND status = 'approved') AS comment_count
            FROM posts
            WHERE user_id = $1 AND status = 'published'
            """,
            user_id
        )
        return UserStats.model_validate(dict(row))

    async def _recent_posts(self, user_id: int):
        rows = await self.db.fetch(
            "find_recent_posts",
            """
            SELECT id, title, slug, excerpt, status, published_at,
                   view_count, like_count, comment_count, is_featured, created_at
            FROM posts
            WHERE user_id = $1
            ORDER BY created_at DESC
            LIMIT $2
            """,
            user_id, RECENT_POSTS_LIMIT
        )
        return [UserPost.model_validate(dict(row)) for row in rows]

    async def _recent_comments(self, user_id: int):
        rows = await self.db.fetch(
            "find_recent_comments",
            """
            SELECT c.id, c.post_id, p.title AS post_title, c.content, c.status,
                   c.like_count, c.created_at
            FROM comments c
            INNER JOIN posts p ON c.post_id = p.id
            WHERE c.user_id = $1
            ORDER BY c.created_at DESC
            LIMIT $2
            """,
            user_id, RECENT_COMMENTS_LIMIT
        )
        return [UserComment.model_validate(dict(row)) for row in rows]

    async def _unread_notifications(self, user_id: int):
        rows = await self.db.fetch(
            "find_unread_notifications",
            """
            SELECT id, type, title, message, link_url, is_read, created_at, read_at
            FROM notifications
            WHERE user_id = $1 AND is_read = FALSE
            ORDER BY created_at DESC
            LIMIT $2
            """,
            user_id, UNREAD_NOTIFICATIONS_LIMIT
        )
        return [UserNotification.model_validate(dict(row)) for row in rows]
