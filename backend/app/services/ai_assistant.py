"""AI writing assistant: draft enhancement and summarization.

Both operations validate the content, send one fixed prompt to the provider
and clean up its answer.  Every upstream problem (provider failure, raised
exception, unparseable or incomplete JSON, empty text) is reported as the
same :class:`ExternalServiceError` so no provider text reaches the caller.
"""

from __future__ import annotations

import json
import logging
import re

from backend.app.core.errors import AI_UNAVAILABLE_MESSAGE, ExternalServiceError, ValidationError
from backend.app.core.logging import EVENT_AI_RESPONSE_INVALID, log_event
from backend.app.models.llm import Enhancement, LLMFailure
from backend.app.services.llm_client import LLMProvider, generate_text
from backend.app.services.prompts import build_enhancement_prompt, build_summary_prompt

logger = logging.getLogger(__name__)

MAX_AI_CONTENT_LENGTH = 50_000

ENHANCE_SERVICE = "AI Enhancement"
SUMMARIZE_SERVICE = "AI Summarization"

_JSON_FENCE_OPEN = re.compile(r"```json\n?")
_FENCE = re.compile(r"```\n?")


class InvalidAIResponseError(ValueError):
    """The model answered, but not with the expected structure."""


def validate_ai_content(content: object) -> str:
    """Return *content* if it is a non-empty string within the length limit.

    Raises:
        ValidationError: With ``field="content"`` otherwise.
    """
    if not isinstance(content, str) or not content.strip():
        raise ValidationError(
            "Content is required and must be a non-empty string", field="content",
        )
    if len(content) > MAX_AI_CONTENT_LENGTH:
        raise ValidationError(
            "Content is too long. Maximum 50,000 characters allowed.", field="content",
        )
    return content


def strip_code_fences(text: str) -> str:
    """Remove Markdown code-fence markers (```json / ```) and trim."""
    text = _JSON_FENCE_OPEN.sub("", text)
    text = _FENCE.sub("", text)
    return text.strip()


def parse_enhancement(raw_text: str) -> Enhancement:
    """Parse the model's enhancement answer.

    Raises:
        InvalidAIResponseError: If the text is not a JSON object with string
            ``refinedContent`` and ``suggestedTitle`` fields. Other keys
            are kept as they are.
    """
    try:
        data = json.loads(strip_code_fences(raw_text))
    except json.JSONDecodeError as exc:
        raise InvalidAIResponseError(f"not JSON: {exc.msg}") from exc

    if not isinstance(data, dict):
        raise InvalidAIResponseError(f"expected object, got {type(data).__name__}")
    for key in ("refinedContent", "suggestedTitle"):
        value = data.get(key)
        if not isinstance(value, str) or not value:
            raise InvalidAIResponseError(f"missing or empty {key}")

    return Enhancement.model_validate(data)


def _call(prompt: str, *, provider: LLMProvider, operation: str, service: str) -> str:
    try:
        result = generate_text(prompt, provider=provider, operation=operation)
    except Exception as exc:
        logger.exception("llm_call_raised: operation=%s", operation)
        raise ExternalServiceError(service, AI_UNAVAILABLE_MESSAGE) from exc

    if isinstance(result, LLMFailure):
        raise ExternalServiceError(service, AI_UNAVAILABLE_MESSAGE)
    return result.text


def enhance(content: object, *, provider: LLMProvider) -> Enhancement:
    """Refine a draft and suggest a title, keywords and meta description.

    Raises:
        ValidationError: If *content* is missing, blank or too long (the
            provider is not called).
        ExternalServiceError: On any upstream or parsing failure.
    """
    text = validate_ai_content(content)
    raw = _call(
        build_enhancement_prompt(text),
        provider=provider,
        operation="enhance",
        service=ENHANCE_SERVICE,
    )
    try:
        return parse_enhancement(raw)
    except InvalidAIResponseError as exc:
        log_event(
            logger, "warning", EVENT_AI_RESPONSE_INVALID,
            operation="enhance", reason=str(exc), response_length=len(raw),
        )
        raise ExternalServiceError(ENHANCE_SERVICE, AI_UNAVAILABLE_MESSAGE) from exc


def summarize(content: object, *, provider: LLMProvider) -> str:
    """Summarize a post in 2–3 sentences.

    Raises:
        ValidationError: If *content* is missing, blank or too long.
        ExternalServiceError: On upstream failure or an empty summary.
    """
    text = validate_ai_content(content)
    summary = _call(
        build_summary_prompt(text),
        provider=provider,
        operation="summarize",
        service=SUMMARIZE_SERVICE,
    ).strip()
    if not summary:
        log_event(
            logger, "warning", EVENT_AI_RESPONSE_INVALID,
            operation="summarize", reason="empty_summary",
        )
        raise ExternalServiceError(SUMMARIZE_SERVICE, AI_UNAVAILABLE_MESSAGE)
    return summary
