"""Pydantic models for posts and the uniform action result envelope."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict


class PostStatus(StrEnum):
    draft = "draft"
    published = "published"


class Post(BaseModel):
    """A post as returned to callers (mirrors the ``posts`` row)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    title: str
    slug: str
    content: str | None = None
    status: PostStatus
    created_at: datetime
    updated_at: datetime


class PostInput(BaseModel):
    """Title/slug/content as submitted from the editor form.

    Deliberately unconstrained: field rules live in
    :mod:`backend.app.services.validation` so the API and any other caller
    get the same field-level messages.
    """

    title: str = ""
    slug: str = ""
    content: str | None = None


class StatusUpdate(BaseModel):
    status: str


class SlugRequest(BaseModel):
    title: str = ""


class ActionResult(BaseModel):
    """Uniform result of every post lifecycle operation.

    ``error`` carries a whole-operation failure, ``errors`` a field -> message
    map for validation failures, and ``code`` the taxonomy code of a failure.
    """

    success: bool
    data: Any = None
    error: str | None = None
    errors: dict[str, str] | None = None
    code: str | None = None

    @classmethod
    def ok(cls, data: Any = None) -> ActionResult:
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, code: str) -> ActionResult:
        return cls(success=False, error=error, code=code)

    @classmethod
    def field_errors(cls, errors: dict[str, str]) -> ActionResult:
        return cls(success=False, errors=dict(errors), code="VALIDATION_ERROR")
