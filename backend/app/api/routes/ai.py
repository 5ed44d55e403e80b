"""POST /api/posts/enhance and /api/posts/summarize: AI writing assistant.

Both endpoints require a signed-in caller.  Failures are raised as
:class:`~backend.app.core.errors.AppError` and rendered as ``{error, code}``
by the application's exception handler.
"""

import logging

from fastapi import APIRouter, Depends

from backend.app.api.deps import get_llm_provider, require_user
from backend.app.models.llm import ContentRequest, Enhancement, SummaryResponse
from backend.app.services.ai_assistant import enhance, summarize
from backend.app.services.auth import AuthUser
from backend.app.services.llm_client import LLMProvider

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/api/posts/enhance", response_model=Enhancement)
def enhance_post(
    body: ContentRequest,
    user: AuthUser = Depends(require_user),
    provider: LLMProvider = Depends(get_llm_provider),
) -> Enhancement:
    """Refine a draft and suggest title, keywords and meta description."""
    logger.info("enhance_requested: user_id=%s", user.id)
    return enhance(body.content, provider=provider)


@router.post("/api/posts/summarize", response_model=SummaryResponse)
def summarize_post(
    body: ContentRequest,
    user: AuthUser = Depends(require_user),
    provider: LLMProvider = Depends(get_llm_provider),
) -> SummaryResponse:
    """Summarize a post in 2-3 sentences."""
    logger.info("summarize_requested: user_id=%s", user.id)
    return SummaryResponse(summary=summarize(body.content, provider=provider))
