"""
Domain layer for the Blog service: record models and repository contracts.
"""

from .models import (
    User, Tag, Category, Comment, CommentWithAuthor, Post, PostWithDetails,
    UserProfile, UserPost, UserComment, FollowStats, UserStats,
    UserNotification, UserDetail,
)
from .repositories import UserRepository, PostRepository, UserDetailRepository

__all__ = [
    "User", "Tag", "Category", "Comment", "CommentWithAuthor", "Post",
    "PostWithDetails", "UserProfile", "UserPost", "UserComment", "FollowStats",
    "UserStats", "UserNotification", "UserDetail",
    "UserRepository", "PostRepository", "UserDetailRepository",
]
