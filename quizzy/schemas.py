"""
Request and response bodies for the blog API.

Field names on the wire are camelCase, matching what the web client reads.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from quizzy.db.models import Author, Blog


class AuthorSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    name: str
    picture: Optional[str] = None

    @classmethod
    def from_author(cls, author: Author) -> "AuthorSummary":
        return cls(id=author.id, name=author.name, picture=author.picture)


class BlogIn(BaseModel):
    """Create/update payload. Required fields are enforced by the service on create."""
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    slug: Optional[str] = None
    excerpt: Optional[str] = None
    content: Optional[str] = None
    image: Optional[str] = None
    tags: Optional[list[str]] = None
    is_published: Optional[bool] = Field(default=None, alias="isPublished")


class BlogOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    title: str
    slug: str
    excerpt: str
    content: str
    image: str
    tags: list[str]
    author: Optional[AuthorSummary] = None
    is_published: bool = Field(alias="isPublished")
    published_at: Optional[datetime] = Field(default=None, alias="publishedAt")
    views: int
    read_time: str = Field(alias="readTime")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    @field_serializer("published_at", "created_at", "updated_at")
    def serialize_utc(self, value: Optional[datetime]) -> Optional[str]:
        # Columns hold naive UTC
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()

    @classmethod
    def from_blog(cls, blog: Blog) -> "BlogOut":
        return cls(
            id=blog.id,
            title=blog.title,
            slug=blog.slug,
            excerpt=blog.excerpt,
            content=blog.content,
            image=blog.image,
            tags=list(blog.tags or []),
            author=AuthorSummary.from_author(blog.author) if blog.author else None,
            is_published=blog.is_published,
            published_at=blog.published_at,
            views=blog.views,
            read_time=blog.read_time,
            created_at=blog.created_at,
            updated_at=blog.updated_at,
        )


class MessageOut(BaseModel):
    message: str


class LoginIn(BaseModel):
    email: str
    password: str


class TokenOut(BaseModel):
    token: str
