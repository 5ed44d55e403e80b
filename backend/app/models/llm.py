"""Pydantic models for LLM provider results and the AI endpoints."""

from __future__ import annotations

from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ErrorCategory(StrEnum):
    """Categorised LLM failure reasons."""

    auth = "auth"
    rate_limit = "rate_limit"
    network = "network"
    timeout = "timeout"
    provider = "provider"
    parsing = "parsing"
    not_configured = "not_configured"
    unknown = "unknown"


class LLMSuccess(BaseModel):
    """Successful LLM generation result."""

    status: Literal["success"] = "success"
    text: str
    model_id: str | None = None
    request_id: str | None = None
    latency_ms: int = 0


class LLMFailure(BaseModel):
    """Failed LLM generation result."""

    status: Literal["error"] = "error"
    error_category: ErrorCategory
    user_message: str
    retryable: bool = False
    details: str | None = None


LLMResult = LLMSuccess | LLMFailure
"""Discriminated union returned by the LLM client."""


class ContentRequest(BaseModel):
    """Body of ``/enhance`` and ``/summarize``.

    ``content`` is typed loosely so that missing or non-string values reach
    the taxonomy's validation error instead of FastAPI's 422.
    """

    content: object = None


class Enhancement(BaseModel):
    """Structured output of the enhancement prompt.

    Only the two text fields are checked. ``keywords``, ``metaDescription``
    and any extra keys the model adds are passed through as given.
    """

    model_config = ConfigDict(extra="allow")

    refinedContent: str
    suggestedTitle: str
    keywords: object = Field(default_factory=list)
    metaDescription: object = ""


class SummaryResponse(BaseModel):
    summary: str
