"""Public read-only blog endpoints.  Only published posts are visible."""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.core.errors import NotFoundError, normalize_db_error
from backend.app.db.session import get_db
from backend.app.models.post import Post
from backend.app.services.post_repository import (
    RecordNotFoundError,
    get_published_by_slug,
    list_published,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api/blog", response_model=list[Post])
def list_blog_posts(
    limit: int | None = Query(default=None, ge=1, le=100),
    db: Session = Depends(get_db),
) -> list[Post]:
    """Published posts, newest first."""
    try:
        records = list_published(db, limit=limit)
    except SQLAlchemyError as exc:
        raise normalize_db_error(
            exc, operation="list_published", message="Failed to fetch posts", read=True,
        ) from exc
    return [Post.model_validate(r) for r in records]


@router.get("/api/blog/{slug}", response_model=Post)
def get_blog_post(slug: str, db: Session = Depends(get_db)) -> Post:
    """A single published post; drafts are reported as missing."""
    try:
        record = get_published_by_slug(db, slug)
    except RecordNotFoundError:
        raise NotFoundError("Post") from None
    except SQLAlchemyError as exc:
        raise normalize_db_error(
            exc, operation="get_published_by_slug", message="Failed to fetch post", read=True,
        ) from exc
    return Post.model_validate(record)
