"""
Domain models for the Blog service.

Records are returned fully materialized by the data source. JSON field names
are camelCase on the wire (HTTP responses and cache payloads alike).
"""

from typing import List, Optional
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DomainModel(BaseModel):
    """Base for domain records: camelCase aliases, population by name."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class User(DomainModel):
    """Basic user account."""
    id: int = 0
    name: str
    email: str
    age: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Tag(DomainModel):
    """Post tag."""
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    usage_count: int = 0
    created_at: datetime
    updated_at: datetime


class Category(DomainModel):
    """Post category."""
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    parent_id: Optional[int] = None
    display_order: int = 0
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


class Comment(DomainModel):
    """Comment on a post."""
    id: int
    post_id: int
    user_id: int
    parent_id: Optional[int] = None
    content: str
    status: str
    like_count: int = 0
    is_edited: bool = False
    created_at: datetime
    updated_at: datetime


class CommentWithAuthor(Comment):
    """Comment joined with its author."""
    author_username: str
    author_display_name: Optional[str] = None
    author_avatar_url: Optional[str] = None


class Post(DomainModel):
    """Blog post."""
    id: int
    user_id: int
    category_id: Optional[int] = None
    title: str
    slug: str
    content: str
    excerpt: Optional[str] = None
    status: str
    published_at: Optional[datetime] = None
    view_count: int = 0
    like_count: int = 0
    comment_count: int = 0
    is_featured: bool = False
    created_at: datetime
    updated_at: datetime


class PostWithDetails(Post):
    """Post joined with author, category, tags and latest comments."""
    author_username: str
    author_display_name: Optional[str] = None
    author_avatar_url: Optional[str] = None
    category_name: Optional[str] = None
    category_slug: Optional[str] = None
    tags: List[Tag] = Field(default_factory=list)
    latest_comments: List[CommentWithAuthor] = Field(default_factory=list)


class UserProfile(DomainModel):
    """Extended profile of a user."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    display_name: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    birth_date: Optional[str] = None
    gender: Optional[str] = None
    country_code: Optional[str] = None
    timezone: Optional[str] = None
    language: Optional[str] = None
    phone_number: Optional[str] = None
    website_url: Optional[str] = None


class UserPost(DomainModel):
    id: int
    title: str
    slug: str
    excerpt: Optional[str] = None
    status: str
    published_at: Optional[datetime] = None
    view_count: int = 0
    like_count: int = 0
    comment_count: int = 0
    is_featured: bool = False
    created_at: datetime


class UserComment(DomainModel):
    id: int
    post_id: int
    post_title: str
    content: str
    status: str
    like_count: int = 0
    created_at: datetime


class FollowStats(DomainModel):
    follower_count: int = 0
    following_count: int = 0


class UserStats(DomainModel):
    post_count: int = 0
    comment_count: int = 0
    total_likes: int = 0
    total_views: int = 0


class UserNotification(DomainModel):
    id: int
    type: str
    title: str
    message: str
    link_url: Optional[str] = None
    is_read: bool = False
    created_at: datetime
    read_at: Optional[datetime] = None


class UserDetail(DomainModel):
    """User with profile, social stats and recent activity."""
    id: int
    username: str
    email: str
    status: str
    email_verified: bool = False
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    profile: Optional[UserProfile] = None
    follow_stats: FollowStats = Field(default_factory=FollowStats)
    stats: UserStats = Field(default_factory=UserStats)
    recent_posts: List[UserPost] = Field(default_factory=list)
    recent_comments: List[UserComment] = Field(default_factory=list)
    unread_notifications: List[UserNotification] = Field(default_factory=list)


class CreateUserRequest(BaseModel):
    """Request model for user creation."""
    name: str = Field(..., min_length=1, max_length=50, description="User name")
    email: str = Field(..., min_length=3, max_length=255, description="Email address")
    age: Optional[int] = Field(None, ge=0, description="Age")


class UpdateUserRequest(BaseModel):
    """Request model for user update."""
    name: Optional[str] = Field(None, min_length=1, max_length=50, description="User name")
    email: Optional[str] = Field(None, min_length=3, max_length=255, description="Email address")
    age: Optional[int] = Field(None, ge=0, description="Age")


class PostListResponse(BaseModel):
    """Paginated post listing."""
    model_config = ConfigDict(populate_by_name=True)

    posts: List[PostWithDetails]
    total: int
    page: int
    page_size: int = Field(..., alias="pageSize")
