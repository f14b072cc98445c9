"""
Blog API routes for Quizzy.
Public reads plus admin-only writes.
"""

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from quizzy import config
from quizzy.db.database import get_db
from quizzy.db.models import Author
from quizzy.errors import NotFoundError
from quizzy.routes.auth import require_admin
from quizzy.schemas import BlogIn, BlogOut, MessageOut
from quizzy.services import blogs as blogs_service

router = APIRouter(prefix="/api/blogs", tags=["blogs"])


@router.get("", response_model=list[BlogOut])
async def list_blogs(db: Session = Depends(get_db)):
    """Published blogs, newest first."""
    blogs = blogs_service.list_published_blogs(db)
    return [BlogOut.from_blog(blog) for blog in blogs]


@router.get("/admin/all", response_model=list[BlogOut])
async def admin_list_blogs(
    db: Session = Depends(get_db),
    admin: Author = Depends(require_admin)
):
    """All blogs including drafts, most viewed first."""
    blogs = blogs_service.list_all_blogs(db)
    return [BlogOut.from_blog(blog) for blog in blogs]


@router.get("/{slug}", response_model=BlogOut)
async def get_blog(
    request: Request,
    response: Response,
    slug: str,
    db: Session = Depends(get_db)
):
    """Single blog, counting the view once per client per hour."""
    result = blogs_service.record_view(db, slug, request.cookies)

    if result.counted:
        response.set_cookie(
            key=result.marker,
            value="true",
            max_age=config.VIEW_MARKER_MAX_AGE,
            httponly=True,
            path="/",
            samesite="lax"
        )

    request.state.blog_id = result.blog.id
    request.state.view_counted = result.counted
    return BlogOut.from_blog(result.blog)


@router.post("", response_model=BlogOut, status_code=201)
async def create_blog(
    data: BlogIn,
    db: Session = Depends(get_db),
    admin: Author = Depends(require_admin)
):
    """Create a blog authored by the calling admin."""
    blog = blogs_service.create_blog(db, admin, data)
    return BlogOut.from_blog(blog)


@router.put("/{blog_id}", response_model=BlogOut)
async def update_blog(
    blog_id: str,
    data: BlogIn,
    db: Session = Depends(get_db),
    admin: Author = Depends(require_admin)
):
    """Partially update a blog."""
    blog = blogs_service.get_blog(db, blog_id)
    if not blog:
        raise NotFoundError("Blog not found")

    blog = blogs_service.update_blog(db, blog, data)
    return BlogOut.from_blog(blog)


@router.delete("/{blog_id}", response_model=MessageOut)
async def delete_blog(
    blog_id: str,
    db: Session = Depends(get_db),
    admin: Author = Depends(require_admin)
):
    """Delete a blog."""
    blog = blogs_service.get_blog(db, blog_id)
    if not blog:
        raise NotFoundError("Blog not found")

    blogs_service.delete_blog(db, blog)
    return MessageOut(message="Blog removed")
