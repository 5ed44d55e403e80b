"""Repository for PostRecord CRUD operations.

All functions operate on a caller-supplied SQLAlchemy ``Session`` so that
transaction boundaries remain under the caller's control.  Store errors
(``IntegrityError`` for constraint violations, ``OperationalError`` for
connectivity) propagate unchanged; the post actions classify them.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.core.logging import (
    EVENT_POST_CREATED,
    EVENT_POST_DELETED,
    EVENT_POST_STATUS_CHANGED,
    EVENT_POST_UPDATED,
    log_event,
)
from backend.app.models.post_record import PostRecord

logger = logging.getLogger(__name__)


class RecordNotFoundError(Exception):
    """Raised when a PostRecord cannot be found."""


def _now(now: datetime | None) -> datetime:
    return now if now is not None else datetime.now(UTC)


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def create_post_record(
    db: Session,
    *,
    user_id: str,
    title: str,
    slug: str,
    content: str | None,
    now: datetime | None = None,
) -> PostRecord:
    """Insert a new draft post and flush to obtain its id."""
    created = _now(now)
    record = PostRecord(
        user_id=user_id,
        title=title,
        slug=slug,
        content=content,
        status="draft",
        created_at=created,
        updated_at=created,
    )
    db.add(record)
    db.flush()
    log_event(
        logger, "info", EVENT_POST_CREATED,
        id=record.id,
        user_id=user_id,
        title_len=len(title),
        content_len=len(content or ""),
    )
    return record


def update_post_fields(
    db: Session,
    post_id: str,
    *,
    title: str,
    slug: str,
    content: str | None,
    now: datetime | None = None,
) -> PostRecord:
    """Replace title, slug and content of an existing post."""
    record = get_by_id(db, post_id)
    record.title = title
    record.slug = slug
    record.content = content
    record.updated_at = _now(now)
    db.flush()
    log_event(
        logger, "info", EVENT_POST_UPDATED,
        id=record.id,
        title_len=len(title),
        content_len=len(content or ""),
    )
    return record


def update_status(
    db: Session,
    post_id: str,
    status: str,
    *,
    now: datetime | None = None,
) -> PostRecord:
    """Change only the ``status`` column (and ``updated_at``)."""
    record = get_by_id(db, post_id)
    previous = record.status
    record.status = status
    record.updated_at = _now(now)
    db.flush()
    log_event(
        logger, "info", EVENT_POST_STATUS_CHANGED,
        id=record.id, previous=previous, status=status,
    )
    return record


def delete_post_record(db: Session, post_id: str) -> None:
    """Permanently delete a post.

    Raises:
        RecordNotFoundError: If no post with *post_id* exists.
    """
    record = get_by_id(db, post_id)
    db.delete(record)
    db.flush()
    log_event(logger, "info", EVENT_POST_DELETED, id=post_id)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def get_by_id(db: Session, post_id: str) -> PostRecord:
    """Fetch a post by primary key.

    Raises:
        RecordNotFoundError: If no post with *post_id* exists.
    """
    record = db.get(PostRecord, post_id)
    if record is None:
        raise RecordNotFoundError(f"PostRecord not found: id={post_id}")
    return record


def get_owner_id(db: Session, post_id: str) -> str:
    """Return the ``user_id`` of a post without loading the whole row."""
    owner = db.scalar(select(PostRecord.user_id).where(PostRecord.id == post_id))
    if owner is None:
        raise RecordNotFoundError(f"PostRecord not found: id={post_id}")
    return owner


def get_owned(db: Session, post_id: str, user_id: str) -> PostRecord:
    """Fetch a post only if it belongs to *user_id* (single query).

    Missing and not-owned posts are indistinguishable to the caller.
    """
    record = db.scalar(
        select(PostRecord).where(
            PostRecord.id == post_id,
            PostRecord.user_id == user_id,
        )
    )
    if record is None:
        raise RecordNotFoundError(f"PostRecord not found: id={post_id}")
    return record


def list_by_owner(db: Session, user_id: str) -> list[PostRecord]:
    """All posts owned by *user_id*, most recently updated first."""
    query = (
        select(PostRecord)
        .where(PostRecord.user_id == user_id)
        .order_by(PostRecord.updated_at.desc(), PostRecord.id.desc())
    )
    return list(db.scalars(query).all())


def list_published(db: Session, *, limit: int | None = None) -> list[PostRecord]:
    """Published posts, newest first, for the public listing."""
    query = (
        select(PostRecord)
        .where(PostRecord.status == "published")
        .order_by(PostRecord.created_at.desc(), PostRecord.id.desc())
    )
    if limit is not None:
        query = query.limit(limit)
    return list(db.scalars(query).all())


def get_published_by_slug(db: Session, slug: str) -> PostRecord:
    """Fetch a published post by slug; drafts count as missing.

    Raises:
        RecordNotFoundError: If no published post has *slug*.
    """
    record = db.scalar(
        select(PostRecord).where(
            PostRecord.slug == slug,
            PostRecord.status == "published",
        )
    )
    if record is None:
        raise RecordNotFoundError(f"Published post not found: slug={slug}")
    return record
