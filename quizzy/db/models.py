"""
SQLAlchemy models for the Quizzy blog.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from quizzy.db.database import Base

ADMIN_ROLES = ("admin", "moderator")


def utcnow() -> datetime:
    """Naive UTC timestamp, the form SQLite stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return uuid.uuid4().hex


class Author(Base):
    """
    Read-only view of a user account.
    Accounts are managed by the user service; the blog only joins against them.
    """
    __tablename__ = "authors"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(200), nullable=False)
    email = Column(String(320), unique=True, nullable=False, index=True)
    picture = Column(String(500))
    role = Column(String(20), default="user", nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    banned = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        CheckConstraint(
            "role IN ('user', 'admin', 'moderator')",
            name="check_author_role"
        ),
    )

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    def __repr__(self):
        return f"<Author {self.email}>"


class Blog(Base):
    """Blog post model."""
    __tablename__ = "blogs"

    id = Column(String(32), primary_key=True, default=new_id)
    slug = Column(String(200), unique=True, nullable=False, index=True)
    title = Column(String(500), nullable=False)
    excerpt = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    image = Column(String(500), nullable=False)
    tags = Column(JSON, default=list, nullable=False)
    author_id = Column(String(32), ForeignKey("authors.id"), nullable=False)
    is_published = Column(Boolean, default=False, nullable=False)
    published_at = Column(DateTime)
    views = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    author = relationship("Author")

    __table_args__ = (
        CheckConstraint("views >= 0", name="check_blog_views"),
        # Latest published posts
        Index("idx_blogs_published", "is_published", "published_at"),
        Index("idx_blogs_views", "views"),
    )

    @property
    def reading_time(self) -> int:
        """Calculate reading time in minutes (~200 words/min)."""
        if not self.content:
            return 1
        word_count = len(self.content.split())
        return max(1, round(word_count / 200))

    @property
    def read_time(self) -> str:
        return f"{self.reading_time} min read"

    def __repr__(self):
        return f"<Blog {self.slug}>"
