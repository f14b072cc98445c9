"""
Blog service for Quizzy.
CRUD operations, publication state and view counting.
"""

import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Mapping, Optional

from sqlalchemy.orm import Session, joinedload

from quizzy.config import VIEW_MARKER_PREFIX
from quizzy.db.models import Author, Blog, utcnow
from quizzy.errors import (
    ConflictError,
    EntityValidationError,
    MalformedIdentifierError,
    NotFoundError,
)
from quizzy.schemas import BlogIn

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("title", "slug", "excerpt", "content", "image", "author_id")
SLUG_CONFLICT_MESSAGE = "Blog with this slug already exists"
SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")
SLUG_FORMAT_MESSAGE = "Path `slug` may only contain lowercase letters, numbers and hyphens."


@dataclass
class ViewResult:
    """Outcome of a read through the view gate.

    ``marker`` is the cookie name the client should store, or None when the
    view was a duplicate and nothing needs to be set.
    """
    blog: Blog
    marker: Optional[str] = None

    @property
    def counted(self) -> bool:
        return self.marker is not None


def parse_blog_id(value: str) -> str:
    """Normalize an id from the URL, rejecting anything that isn't one."""
    try:
        return uuid.UUID(value).hex
    except (TypeError, ValueError, AttributeError):
        raise MalformedIdentifierError(value)


def normalize_tags(tags: Optional[Iterable[str]]) -> list[str]:
    """Strip tags and drop duplicates, keeping first-seen order."""
    result = []
    for tag in tags or []:
        tag = tag.strip()
        if tag and tag not in result:
            result.append(tag)
    return result


def validate_blog(blog: Blog) -> None:
    errors = {}
    for field in REQUIRED_FIELDS:
        value = getattr(blog, field)
        if value is None or (isinstance(value, str) and not value.strip()):
            name = "author" if field == "author_id" else field
            errors[name] = f"Path `{name}` is required."
    if "slug" not in errors and not SLUG_PATTERN.fullmatch(blog.slug):
        errors["slug"] = SLUG_FORMAT_MESSAGE
    if errors:
        raise EntityValidationError(errors)


# =============================================================================
# READ OPERATIONS
# =============================================================================

def get_blog(db: Session, blog_id: str) -> Optional[Blog]:
    """Get a blog by ID, author joined."""
    return (
        db.query(Blog)
        .options(joinedload(Blog.author))
        .filter(Blog.id == parse_blog_id(blog_id))
        .first()
    )


def get_blog_by_slug(db: Session, slug: str) -> Optional[Blog]:
    """Get a blog by slug, author joined."""
    return (
        db.query(Blog)
        .options(joinedload(Blog.author))
        .filter(Blog.slug == slug)
        .first()
    )


def list_published_blogs(db: Session) -> list[Blog]:
    """Published blogs, newest publication first."""
    return (
        db.query(Blog)
        .options(joinedload(Blog.author))
        .filter(Blog.is_published.is_(True))
        .order_by(Blog.published_at.desc())
        .all()
    )


def list_all_blogs(db: Session) -> list[Blog]:
    """Every blog including drafts, most viewed first."""
    return (
        db.query(Blog)
        .options(joinedload(Blog.author))
        .order_by(Blog.views.desc(), Blog.created_at.desc())
        .all()
    )


# =============================================================================
# VIEW COUNTING
# =============================================================================

def view_marker_name(blog_id: str) -> str:
    return f"{VIEW_MARKER_PREFIX}{blog_id}"


def increment_views(db: Session, blog_id: str) -> None:
    """Add one view in a single UPDATE so concurrent readers never lose counts."""
    db.query(Blog).filter(Blog.id == blog_id).update(
        # Views are not edits; keep the modification time as it was
        {Blog.views: Blog.views + 1, Blog.updated_at: Blog.updated_at},
        synchronize_session=False,
    )
    db.commit()


def record_view(db: Session, slug: str, markers: Mapping[str, str]) -> ViewResult:
    """Read a blog by slug, counting the view unless the client already has a marker.

    Args:
        db: Database session
        slug: Slug of the requested blog
        markers: Cookies presented by the client

    Returns:
        ViewResult with the blog as persisted after any increment.
    """
    blog = get_blog_by_slug(db, slug)
    if not blog:
        raise NotFoundError("Blog not found")

    marker = view_marker_name(blog.id)
    if marker in markers:
        return ViewResult(blog=blog)

    increment_views(db, blog.id)
    db.refresh(blog)
    logger.debug(f"Counted view for {blog.slug}: {blog.views}")
    return ViewResult(blog=blog, marker=marker)


# =============================================================================
# WRITE OPERATIONS
# =============================================================================

def ensure_slug_available(db: Session, slug: str, exclude_id: Optional[str] = None) -> None:
    query = db.query(Blog.id).filter(Blog.slug == slug)
    if exclude_id is not None:
        query = query.filter(Blog.id != exclude_id)
    if query.first() is not None:
        logger.warning(f"Rejected write: slug '{slug}' already in use")
        raise ConflictError(SLUG_CONFLICT_MESSAGE)


def apply_publication(blog: Blog, is_published: Optional[bool], now: Optional[datetime] = None) -> None:
    """Move a blog between draft and published.

    ``published_at`` records the first publication and is never cleared,
    so republishing or unpublishing leaves it alone.
    """
    if is_published is None:
        return
    if is_published and not blog.is_published and blog.published_at is None:
        blog.published_at = now or utcnow()
    blog.is_published = is_published


def create_blog(db: Session, author: Author, data: BlogIn) -> Blog:
    """Create a new blog."""
    blog = Blog(
        title=data.title,
        slug=data.slug,
        excerpt=data.excerpt,
        content=data.content,
        image=data.image,
        tags=normalize_tags(data.tags),
        author_id=author.id,
        is_published=False,
        views=0,
    )
    validate_blog(blog)
    ensure_slug_available(db, blog.slug)
    apply_publication(blog, bool(data.is_published))

    db.add(blog)
    db.commit()
    logger.info(f"Created blog {blog.slug} ({blog.id}) by {author.email}")

    return get_blog(db, blog.id)


def update_blog(db: Session, blog: Blog, data: BlogIn) -> Blog:
    """Partially update a blog; empty values keep what is already stored."""
    if data.slug and data.slug != blog.slug:
        if not SLUG_PATTERN.fullmatch(data.slug):
            raise EntityValidationError({"slug": SLUG_FORMAT_MESSAGE})
        ensure_slug_available(db, data.slug, exclude_id=blog.id)

    blog.title = data.title or blog.title
    blog.slug = data.slug or blog.slug
    blog.excerpt = data.excerpt or blog.excerpt
    blog.content = data.content or blog.content
    blog.image = data.image or blog.image
    if data.tags:
        blog.tags = normalize_tags(data.tags)

    apply_publication(blog, data.is_published)

    db.commit()
    logger.info(f"Updated blog {blog.slug} ({blog.id})")

    return get_blog(db, blog.id)


def delete_blog(db: Session, blog: Blog) -> None:
    """Delete a blog."""
    slug, blog_id = blog.slug, blog.id
    db.delete(blog)
    db.commit()
    logger.info(f"Deleted blog {slug} ({blog_id})")
