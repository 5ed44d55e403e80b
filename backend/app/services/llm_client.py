"""LLM client abstraction with provider-agnostic interface.

Providers
---------
- **MockProvider** — deterministic stub for tests and when no key is configured.
- **GeminiProvider** — uses the ``google-genai`` SDK (requires ``GEMINI_API_KEY``).
- **AnthropicProvider** — uses the ``anthropic`` SDK (requires ``ANTHROPIC_API_KEY``).
- **OpenAIProvider** — uses the ``openai`` SDK (requires ``OPENAI_API_KEY``).

The module exposes :func:`get_provider` (factory) and :func:`generate_text`
(single-shot call with structured logging that returns a standardised
:class:`LLMResult`).  There is no retry: one prompt, one provider call.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from typing import Protocol, runtime_checkable

from backend.app.core.logging import (
    EVENT_LLM_CALL_FAILURE,
    EVENT_LLM_CALL_START,
    EVENT_LLM_CALL_SUCCESS,
    log_event,
)
from backend.app.core.settings import settings
from backend.app.models.llm import ErrorCategory, LLMFailure, LLMResult, LLMSuccess

logger = logging.getLogger(__name__)

_MAX_OUTPUT_TOKENS = 4096


def _empty_text_failure(request_id: str) -> LLMFailure:
    return LLMFailure(
        error_category=ErrorCategory.parsing,
        user_message="Model returned empty text.",
        retryable=False,
        details=request_id,
    )


# ---------------------------------------------------------------------------
# Provider protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class LLMProvider(Protocol):
    """Minimal interface every LLM provider must satisfy."""

    @property
    def provider_name(self) -> str: ...

    def call(self, prompt_text: str, timeout_seconds: int) -> LLMResult:
        """Send *prompt_text* to the LLM and return a standardised result."""
        ...


# ---------------------------------------------------------------------------
# Mock provider (tests + unconfigured fallback)
# ---------------------------------------------------------------------------


class MockProvider:
    """Returns canned output.  Used in tests and when no API key is set.

    Prompts asking for the enhancement JSON get a well-formed JSON answer;
    anything else gets a short canned summary.
    """

    provider_name: str = "mock"

    def call(self, prompt_text: str, timeout_seconds: int) -> LLMResult:
        if '"refinedContent"' in prompt_text:
            text = json.dumps(
                {
                    "refinedContent": "This is a mock refined draft.",
                    "suggestedTitle": "A Mock Title",
                    "keywords": ["mock", "draft"],
                    "metaDescription": "A mock meta description.",
                }
            )
        else:
            text = "This is a mock summary for testing purposes."
        return LLMSuccess(
            text=text,
            model_id="mock-v1",
            request_id=str(uuid.uuid4()),
            latency_ms=0,
        )


# ---------------------------------------------------------------------------
# Gemini provider
# ---------------------------------------------------------------------------


class GeminiProvider:
    """Calls ``models.generate_content`` via the ``google-genai`` SDK."""

    provider_name: str = "gemini"

    def __init__(self, api_key: str, model: str = "gemini-1.5-pro") -> None:
        from google import genai

        self._client = genai.Client(api_key=api_key)
        self._model = model

    def call(self, prompt_text: str, timeout_seconds: int) -> LLMResult:
        import httpx
        from google.genai import errors as genai_errors
        from google.genai import types

        request_id = str(uuid.uuid4())
        start = time.monotonic()

        try:
            response = self._client.models.generate_content(
                model=self._model,
                contents=prompt_text,
                config=types.GenerateContentConfig(
                    max_output_tokens=_MAX_OUTPUT_TOKENS,
                    http_options=types.HttpOptions(timeout=timeout_seconds * 1000),
                ),
            )
        except genai_errors.ClientError as exc:
            if exc.code in (401, 403):
                return LLMFailure(
                    error_category=ErrorCategory.auth,
                    user_message="Gemini API key is invalid or expired.",
                    retryable=False,
                    details=request_id,
                )
            if exc.code == 429:
                return LLMFailure(
                    error_category=ErrorCategory.rate_limit,
                    user_message="Gemini rate limit reached. Please wait and retry.",
                    retryable=True,
                    details=request_id,
                )
            return LLMFailure(
                error_category=ErrorCategory.provider,
                user_message=f"Gemini API error (HTTP {exc.code}).",
                retryable=False,
                details=request_id,
            )
        except genai_errors.ServerError as exc:
            return LLMFailure(
                error_category=ErrorCategory.provider,
                user_message=f"Gemini API error (HTTP {exc.code}).",
                retryable=True,
                details=request_id,
            )
        except httpx.TimeoutException:
            return LLMFailure(
                error_category=ErrorCategory.timeout,
                user_message="Request to Gemini timed out.",
                retryable=True,
                details=request_id,
            )
        except httpx.TransportError:
            return LLMFailure(
                error_category=ErrorCategory.network,
                user_message="Could not connect to Gemini API.",
                retryable=True,
                details=request_id,
            )
        except Exception as exc:
            return LLMFailure(
                error_category=ErrorCategory.unknown,
                user_message="Unexpected error calling Gemini.",
                retryable=False,
                details=f"{request_id}: {type(exc).__name__}",
            )

        latency_ms = int((time.monotonic() - start) * 1000)

        try:
            text = (response.text or "").strip()
        except Exception:
            return LLMFailure(
                error_category=ErrorCategory.parsing,
                user_message="Failed to parse Gemini response.",
                retryable=False,
                details=request_id,
            )

        if not text:
            return _empty_text_failure(request_id)

        return LLMSuccess(
            text=text,
            model_id=getattr(response, "model_version", None) or self._model,
            request_id=request_id,
            latency_ms=latency_ms,
        )


# ---------------------------------------------------------------------------
# Anthropic provider
# ---------------------------------------------------------------------------


class AnthropicProvider:
    """Calls the Anthropic Messages API via the ``anthropic`` SDK."""

    provider_name: str = "anthropic"

    def __init__(self, api_key: str) -> None:
        import anthropic

        self._client = anthropic.Anthropic(api_key=api_key)

    def call(self, prompt_text: str, timeout_seconds: int) -> LLMResult:
        import anthropic

        request_id = str(uuid.uuid4())
        start = time.monotonic()

        try:
            response = self._client.messages.create(
                model="claude-sonnet-4-5-20250929",
                max_tokens=_MAX_OUTPUT_TOKENS,
                messages=[{"role": "user", "content": prompt_text}],
                timeout=float(timeout_seconds),
            )
        except anthropic.AuthenticationError:
            return LLMFailure(
                error_category=ErrorCategory.auth,
                user_message="Anthropic API key is invalid or expired.",
                retryable=False,
                details=request_id,
            )
        except anthropic.RateLimitError:
            return LLMFailure(
                error_category=ErrorCategory.rate_limit,
                user_message="Anthropic rate limit reached. Please wait and retry.",
                retryable=True,
                details=request_id,
            )
        except anthropic.APITimeoutError:
            return LLMFailure(
                error_category=ErrorCategory.timeout,
                user_message="Request to Anthropic timed out.",
                retryable=True,
                details=request_id,
            )
        except anthropic.APIConnectionError:
            return LLMFailure(
                error_category=ErrorCategory.network,
                user_message="Could not connect to Anthropic API.",
                retryable=True,
                details=request_id,
            )
        except anthropic.APIStatusError as exc:
            return LLMFailure(
                error_category=ErrorCategory.provider,
                user_message=f"Anthropic API error (HTTP {exc.status_code}).",
                retryable=exc.status_code >= 500,
                details=request_id,
            )
        except Exception as exc:
            return LLMFailure(
                error_category=ErrorCategory.unknown,
                user_message="Unexpected error calling Anthropic.",
                retryable=False,
                details=f"{request_id}: {type(exc).__name__}",
            )

        latency_ms = int((time.monotonic() - start) * 1000)

        try:
            text_block = next(
                (b for b in response.content if b.type == "text"),
                None,
            )
            text = (text_block.text if text_block else "").strip()
        except Exception:
            return LLMFailure(
                error_category=ErrorCategory.parsing,
                user_message="Failed to parse Anthropic response.",
                retryable=False,
                details=request_id,
            )

        if not text:
            return _empty_text_failure(request_id)

        return LLMSuccess(
            text=text,
            model_id=response.model,
            request_id=request_id,
            latency_ms=latency_ms,
        )


# ---------------------------------------------------------------------------
# OpenAI provider
# ---------------------------------------------------------------------------


class OpenAIProvider:
    """Calls the OpenAI Chat Completions API via the ``openai`` SDK."""

    provider_name: str = "openai"

    def __init__(self, api_key: str) -> None:
        import openai

        self._client = openai.OpenAI(api_key=api_key)

    def call(self, prompt_text: str, timeout_seconds: int) -> LLMResult:
        import openai

        request_id = str(uuid.uuid4())
        start = time.monotonic()

        try:
            response = self._client.chat.completions.create(
                model="gpt-4o",
                messages=[{"role": "user", "content": prompt_text}],
                max_tokens=_MAX_OUTPUT_TOKENS,
                timeout=float(timeout_seconds),
            )
        except openai.AuthenticationError:
            return LLMFailure(
                error_category=ErrorCategory.auth,
                user_message="OpenAI API key is invalid or expired.",
                retryable=False,
                details=request_id,
            )
        except openai.RateLimitError:
            return LLMFailure(
                error_category=ErrorCategory.rate_limit,
                user_message="OpenAI rate limit reached. Please wait and retry.",
                retryable=True,
                details=request_id,
            )
        except openai.APITimeoutError:
            return LLMFailure(
                error_category=ErrorCategory.timeout,
                user_message="Request to OpenAI timed out.",
                retryable=True,
                details=request_id,
            )
        except openai.APIConnectionError:
            return LLMFailure(
                error_category=ErrorCategory.network,
                user_message="Could not connect to OpenAI API.",
                retryable=True,
                details=request_id,
            )
        except openai.APIStatusError as exc:
            return LLMFailure(
                error_category=ErrorCategory.provider,
                user_message=f"OpenAI API error (HTTP {exc.status_code}).",
                retryable=exc.status_code >= 500,
                details=request_id,
            )
        except Exception as exc:
            return LLMFailure(
                error_category=ErrorCategory.unknown,
                user_message="Unexpected error calling OpenAI.",
                retryable=False,
                details=f"{request_id}: {type(exc).__name__}",
            )

        latency_ms = int((time.monotonic() - start) * 1000)

        try:
            choice = response.choices[0] if response.choices else None
            message = choice.message if choice else None
            text = ((message.content if message else None) or "").strip()
        except Exception:
            return LLMFailure(
                error_category=ErrorCategory.parsing,
                user_message="Failed to parse OpenAI response.",
                retryable=False,
                details=request_id,
            )

        if not text:
            return _empty_text_failure(request_id)

        return LLMSuccess(
            text=text,
            model_id=response.model,
            request_id=request_id,
            latency_ms=latency_ms,
        )


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def get_provider(
    *,
    gemini_key: str | None = None,
    anthropic_key: str | None = None,
    openai_key: str | None = None,
) -> LLMProvider:
    """Return the best available provider based on configured API keys.

    Resolution order: Gemini > Anthropic > OpenAI > Mock.
    """
    gk = gemini_key if gemini_key is not None else settings.gemini_api_key
    ak = anthropic_key if anthropic_key is not None else settings.anthropic_api_key
    ok = openai_key if openai_key is not None else settings.openai_api_key

    if gk:
        logger.info("LLM provider: Gemini")
        return GeminiProvider(api_key=gk, model=settings.gemini_model)
    if ak:
        logger.info("LLM provider: Anthropic")
        return AnthropicProvider(api_key=ak)
    if ok:
        logger.info("LLM provider: OpenAI")
        return OpenAIProvider(api_key=ok)
    logger.warning("No LLM API key configured, using MockProvider")
    return MockProvider()


# ---------------------------------------------------------------------------
# Single-shot call
# ---------------------------------------------------------------------------


def generate_text(
    prompt_text: str,
    *,
    provider: LLMProvider,
    operation: str,
    timeout_seconds: int | None = None,
) -> LLMResult:
    """Call *provider* once with *prompt_text* and log the outcome.

    Never logs prompt content or secrets, only lengths and ids.
    """
    correlation_id = str(uuid.uuid4())
    timeout = timeout_seconds if timeout_seconds is not None else settings.llm_timeout_seconds

    log_event(
        logger, "info", EVENT_LLM_CALL_START,
        correlation_id=correlation_id,
        operation=operation,
        provider=provider.provider_name,
        prompt_length=len(prompt_text),
    )

    result = provider.call(prompt_text, timeout)

    if isinstance(result, LLMSuccess):
        log_event(
            logger, "info", EVENT_LLM_CALL_SUCCESS,
            correlation_id=correlation_id,
            model_id=result.model_id,
            latency_ms=result.latency_ms,
            text_length=len(result.text),
        )
    else:
        log_event(
            logger, "warning", EVENT_LLM_CALL_FAILURE,
            correlation_id=correlation_id,
            error_category=result.error_category,
            retryable=result.retryable,
            details=result.details or "N/A",
        )

    return result
