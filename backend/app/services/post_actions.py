"""Post lifecycle operations returning a uniform :class:`ActionResult`.

Every operation re-resolves the caller through ``ctx.auth`` (no identity is
cached between calls), checks ownership where a post is addressed, validates
input, performs a single store write, commits, and invalidates the affected
cached views.

Failure shapes:
    - field problems (including a duplicate slug) -> ``errors={field: msg}``
    - everything else -> ``error=<safe message>`` plus the taxonomy ``code``
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.core.errors import (
    AppError,
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    ValidationError,
    is_unique_violation_on,
    normalize_db_error,
)
from backend.app.models.post import ActionResult, Post, PostStatus
from backend.app.services import post_repository as repo
from backend.app.services.auth import AuthClient, AuthUser
from backend.app.services.slugify import generate_slug_from_title
from backend.app.services.validation import validate_post_inputs
from backend.app.services.view_cache import (
    BLOG_PATH,
    DASHBOARD_PATH,
    ViewCache,
    blog_post_path,
)

logger = logging.getLogger(__name__)

DUPLICATE_SLUG_MESSAGE = "This URL slug is already in use. Please choose a different one."


@dataclass
class ActionContext:
    """Request-scoped collaborators for the post actions."""

    db: Session
    auth: AuthClient
    access_token: str | None
    view_cache: ViewCache


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _require_user(ctx: ActionContext) -> AuthUser:
    user = ctx.auth.get_user(ctx.access_token)
    if user is None:
        raise AuthenticationError("Authentication required")
    return user


def _require_owner(ctx: ActionContext, post_id: str, user: AuthUser, verb: str) -> None:
    try:
        owner_id = repo.get_owner_id(ctx.db, post_id)
    except repo.RecordNotFoundError:
        raise NotFoundError("Post") from None
    if owner_id != user.id:
        logger.info("post_access_denied: post_id=%s user_id=%s verb=%s", post_id, user.id, verb)
        raise AuthorizationError(f"Unauthorized to {verb} this post")


def _fail(exc: AppError) -> ActionResult:
    return ActionResult.fail(exc.message, exc.code)


def _store_failure(
    ctx: ActionContext,
    exc: SQLAlchemyError,
    *,
    operation: str,
    message: str,
    check_slug: bool = False,
    read: bool = False,
) -> ActionResult:
    """Roll back and translate a store error into a result.

    A unique violation on ``slug`` becomes a field error; anything else is
    logged and reported as a database failure with *message*.
    """
    ctx.db.rollback()
    if check_slug and is_unique_violation_on(exc, "slug"):
        logger.info("post_slug_conflict: operation=%s", operation)
        return ActionResult.field_errors({"slug": DUPLICATE_SLUG_MESSAGE})
    error = normalize_db_error(
        exc,
        operation=operation,
        message=message,
        correlation_id=str(uuid.uuid4()),
        read=read,
    )
    return _fail(error)


def _clean_content(content: str | None) -> str | None:
    if content is None:
        return None
    return content.strip() or None


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


def create_post(
    ctx: ActionContext,
    *,
    title: str | None,
    slug: str | None,
    content: str | None = None,
) -> ActionResult:
    """Create a draft post owned by the caller."""
    try:
        user = _require_user(ctx)
    except AppError as exc:
        return _fail(exc)

    validation = validate_post_inputs(title, slug, content)
    if not validation.is_valid:
        return ActionResult.field_errors(validation.errors)

    try:
        record = repo.create_post_record(
            ctx.db,
            user_id=user.id,
            title=(title or "").strip(),
            slug=(slug or "").strip(),
            content=_clean_content(content),
        )
        ctx.db.commit()
    except SQLAlchemyError as exc:
        return _store_failure(
            ctx, exc, operation="create_post", message="Failed to create post", check_slug=True,
        )

    ctx.view_cache.revalidate(DASHBOARD_PATH)
    return ActionResult.ok(Post.model_validate(record))


def update_post(
    ctx: ActionContext,
    post_id: str,
    *,
    title: str | None,
    slug: str | None,
    content: str | None = None,
) -> ActionResult:
    """Replace title, slug and content of a post the caller owns."""
    try:
        user = _require_user(ctx)
        _require_owner(ctx, post_id, user, "edit")
    except AppError as exc:
        return _fail(exc)
    except SQLAlchemyError as exc:
        return _store_failure(
            ctx, exc, operation="update_post", message="Failed to update post", read=True,
        )

    validation = validate_post_inputs(title, slug, content)
    if not validation.is_valid:
        return ActionResult.field_errors(validation.errors)

    try:
        previous_slug = repo.get_by_id(ctx.db, post_id).slug
        record = repo.update_post_fields(
            ctx.db,
            post_id,
            title=(title or "").strip(),
            slug=(slug or "").strip(),
            content=_clean_content(content),
        )
        ctx.db.commit()
    except repo.RecordNotFoundError:
        ctx.db.rollback()
        return _fail(NotFoundError("Post"))
    except SQLAlchemyError as exc:
        return _store_failure(
            ctx, exc, operation="update_post", message="Failed to update post", check_slug=True,
        )

    ctx.view_cache.revalidate(DASHBOARD_PATH)
    ctx.view_cache.revalidate(blog_post_path(record.slug))
    if previous_slug != record.slug:
        ctx.view_cache.revalidate(blog_post_path(previous_slug))
    return ActionResult.ok(Post.model_validate(record))


def delete_post(ctx: ActionContext, post_id: str) -> ActionResult:
    """Permanently delete a post the caller owns."""
    try:
        user = _require_user(ctx)
        _require_owner(ctx, post_id, user, "delete")
    except AppError as exc:
        return _fail(exc)
    except SQLAlchemyError as exc:
        return _store_failure(
            ctx, exc, operation="delete_post", message="Failed to delete post", read=True,
        )

    try:
        record = repo.get_by_id(ctx.db, post_id)
        was_published = record.status == PostStatus.published
        slug = record.slug
        repo.delete_post_record(ctx.db, post_id)
        ctx.db.commit()
    except repo.RecordNotFoundError:
        ctx.db.rollback()
        return _fail(NotFoundError("Post"))
    except SQLAlchemyError as exc:
        return _store_failure(ctx, exc, operation="delete_post", message="Failed to delete post")

    ctx.view_cache.revalidate(DASHBOARD_PATH)
    if was_published:
        ctx.view_cache.revalidate(BLOG_PATH)
        ctx.view_cache.revalidate(blog_post_path(slug))
    return ActionResult.ok()


def update_post_status(ctx: ActionContext, post_id: str, status: str) -> ActionResult:
    """Publish or unpublish a post the caller owns."""
    try:
        user = _require_user(ctx)
        _require_owner(ctx, post_id, user, "modify")
        try:
            new_status = PostStatus(status)
        except ValueError:
            raise ValidationError(
                "Status must be 'draft' or 'published'", field="status",
            ) from None
    except AppError as exc:
        return _fail(exc)
    except SQLAlchemyError as exc:
        return _store_failure(
            ctx,
            exc,
            operation="update_post_status",
            message="Failed to update post status",
            read=True,
        )

    try:
        record = repo.update_status(ctx.db, post_id, new_status.value)
        ctx.db.commit()
    except repo.RecordNotFoundError:
        ctx.db.rollback()
        return _fail(NotFoundError("Post"))
    except SQLAlchemyError as exc:
        return _store_failure(
            ctx, exc, operation="update_post_status", message="Failed to update post status",
        )

    ctx.view_cache.revalidate(DASHBOARD_PATH)
    ctx.view_cache.revalidate(BLOG_PATH)
    ctx.view_cache.revalidate(blog_post_path(record.slug))
    return ActionResult.ok(Post.model_validate(record))


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def get_user_posts(ctx: ActionContext) -> ActionResult:
    """All of the caller's posts, most recently updated first."""
    try:
        user = _require_user(ctx)
    except AppError as exc:
        return _fail(exc)

    try:
        records = repo.list_by_owner(ctx.db, user.id)
    except SQLAlchemyError as exc:
        return _store_failure(
            ctx, exc, operation="get_user_posts", message="Failed to fetch posts", read=True,
        )

    return ActionResult.ok([Post.model_validate(r) for r in records])


def get_post_by_id(ctx: ActionContext, post_id: str) -> ActionResult:
    """Fetch one of the caller's posts.

    A post owned by someone else is reported exactly like a missing one.
    """
    try:
        user = _require_user(ctx)
        try:
            record = repo.get_owned(ctx.db, post_id, user.id)
        except repo.RecordNotFoundError:
            raise NotFoundError("Post") from None
    except AppError as exc:
        return _fail(exc)
    except SQLAlchemyError as exc:
        return _store_failure(
            ctx, exc, operation="get_post_by_id", message="Failed to fetch post", read=True,
        )

    return ActionResult.ok(Post.model_validate(record))


def generate_slug(title: str | None) -> ActionResult:
    """Suggest a slug for *title* (no authentication needed)."""
    if not title or not title.strip():
        return ActionResult.fail("Title is required", ValidationError.kind.value)
    return ActionResult.ok(generate_slug_from_title(title))
