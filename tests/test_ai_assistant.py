"""Tests for the AI writing assistant (enhance / summarize).

All tests use stub providers; no network access.
"""

import json
import logging

import pytest
from backend.app.core.errors import (
    AI_UNAVAILABLE_MESSAGE,
    ExternalServiceError,
    ValidationError,
)
from backend.app.models.llm import ErrorCategory, LLMFailure, LLMResult, LLMSuccess
from backend.app.services.ai_assistant import (
    MAX_AI_CONTENT_LENGTH,
    enhance,
    parse_enhancement,
    strip_code_fences,
    summarize,
)
from backend.app.services.llm_client import MockProvider

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _TextProvider:
    """Returns fixed text and records the prompts it was sent."""

    provider_name: str = "text-stub"

    def __init__(self, text: str) -> None:
        self._text = text
        self.prompts: list[str] = []

    def call(self, prompt_text: str, timeout_seconds: int) -> LLMResult:
        self.prompts.append(prompt_text)
        return LLMSuccess(text=self._text, model_id="stub", request_id="r-1", latency_ms=1)


class _FailProvider:
    provider_name: str = "fail-stub"

    def call(self, prompt_text: str, timeout_seconds: int) -> LLMResult:
        return LLMFailure(
            error_category=ErrorCategory.rate_limit,
            user_message="Provider says: quota exceeded for key sk-123",
            retryable=True,
        )


class _RaisingProvider:
    provider_name: str = "raising-stub"

    def call(self, prompt_text: str, timeout_seconds: int) -> LLMResult:
        raise RuntimeError("socket closed")


_GOOD = {
    "refinedContent": "Better draft.",
    "suggestedTitle": "A Better Title",
    "keywords": ["writing", "blog"],
    "metaDescription": "One sentence.",
}


# ---------------------------------------------------------------------------
# Fence stripping and parsing
# ---------------------------------------------------------------------------


class TestStripCodeFences:
    def test_json_fence(self) -> None:
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_plain_fence(self) -> None:
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_no_fence(self) -> None:
        assert strip_code_fences('  {"a": 1}  ') == '{"a": 1}'


class TestParseEnhancement:
    def test_defaults_for_optional_fields(self) -> None:
        result = parse_enhancement(
            json.dumps({"refinedContent": "R", "suggestedTitle": "T"})
        )
        assert result.keywords == []
        assert result.metaDescription == ""

    @pytest.mark.parametrize(
        "raw",
        [
            "not json at all",
            "[1, 2, 3]",
            json.dumps({"suggestedTitle": "T"}),
            json.dumps({"refinedContent": "R", "suggestedTitle": ""}),
            json.dumps({"refinedContent": 5, "suggestedTitle": "T"}),
        ],
    )
    def test_rejects_malformed(self, raw: str) -> None:
        with pytest.raises(ValueError):
            parse_enhancement(raw)

    @pytest.mark.parametrize(
        "extra",
        [
            {"keywords": None},
            {"keywords": "x"},
            {"metaDescription": None},
            {"metaDescription": 3, "keywords": [1, 2]},
            {"readingTime": "4 min"},
        ],
    )
    def test_optional_fields_passed_through(self, extra: dict[str, object]) -> None:
        answer = {"refinedContent": "R", "suggestedTitle": "T", **extra}
        result = parse_enhancement(json.dumps(answer))
        dumped = result.model_dump()
        for key, value in extra.items():
            assert dumped[key] == value


# ---------------------------------------------------------------------------
# enhance
# ---------------------------------------------------------------------------


class TestEnhance:
    def test_returns_parsed_fields(self) -> None:
        provider = _TextProvider(json.dumps(_GOOD))
        result = enhance("My rough draft.", provider=provider)
        assert result.model_dump() == _GOOD

    def test_accepts_fenced_json(self) -> None:
        provider = _TextProvider("```json\n" + json.dumps(_GOOD) + "\n```")
        assert enhance("Draft", provider=provider).suggestedTitle == "A Better Title"

    def test_prompt_contains_content(self) -> None:
        provider = _TextProvider(json.dumps(_GOOD))
        enhance("UNIQUE-DRAFT-MARKER", provider=provider)
        assert len(provider.prompts) == 1
        assert "UNIQUE-DRAFT-MARKER" in provider.prompts[0]
        assert '"refinedContent"' in provider.prompts[0]

    def test_mock_provider_round_trip(self) -> None:
        result = enhance("Draft", provider=MockProvider())
        assert result.suggestedTitle == "A Mock Title"

    @pytest.mark.parametrize("content", [None, "", "   ", 42, ["list"]])
    def test_invalid_content_skips_provider(self, content: object) -> None:
        provider = _TextProvider(json.dumps(_GOOD))
        with pytest.raises(ValidationError) as exc_info:
            enhance(content, provider=provider)
        assert exc_info.value.message == "Content is required and must be a non-empty string"
        assert exc_info.value.field == "content"
        assert provider.prompts == []

    def test_length_limit(self) -> None:
        provider = _TextProvider(json.dumps(_GOOD))
        enhance("x" * MAX_AI_CONTENT_LENGTH, provider=provider)
        with pytest.raises(ValidationError, match="Maximum 50,000 characters"):
            enhance("x" * (MAX_AI_CONTENT_LENGTH + 1), provider=provider)
        assert len(provider.prompts) == 1

    def test_malformed_answer_is_external_error(
        self, caplog: pytest.LogCaptureFixture,
    ) -> None:
        with caplog.at_level(logging.WARNING), pytest.raises(ExternalServiceError) as exc_info:
            enhance("Draft", provider=_TextProvider("Sure! Here is your draft."))
        assert exc_info.value.message == f"AI Enhancement: {AI_UNAVAILABLE_MESSAGE}"
        assert "ai_response_invalid" in caplog.text

    def test_null_keywords_accepted(self) -> None:
        answer = {"refinedContent": "R", "suggestedTitle": "T", "keywords": None}
        result = enhance("Draft", provider=_TextProvider(json.dumps(answer)))
        assert result.keywords is None
        assert result.refinedContent == "R"

    def test_provider_failure_hides_detail(self) -> None:
        with pytest.raises(ExternalServiceError) as exc_info:
            enhance("Draft", provider=_FailProvider())
        assert "sk-123" not in exc_info.value.message
        assert exc_info.value.status_code == 503

    def test_provider_exception_becomes_external_error(self) -> None:
        with pytest.raises(ExternalServiceError, match="AI Enhancement"):
            enhance("Draft", provider=_RaisingProvider())


# ---------------------------------------------------------------------------
# summarize
# ---------------------------------------------------------------------------


class TestSummarize:
    def test_trims_summary(self) -> None:
        provider = _TextProvider("  A short summary.\n")
        assert summarize("Post body", provider=provider) == "A short summary."

    def test_prompt_contains_content(self) -> None:
        provider = _TextProvider("Summary.")
        summarize("UNIQUE-POST-MARKER", provider=provider)
        assert "UNIQUE-POST-MARKER" in provider.prompts[0]
        assert "2-3 sentences" in provider.prompts[0]

    def test_empty_summary_is_external_error(self) -> None:
        with pytest.raises(ExternalServiceError, match="AI Summarization"):
            summarize("Post body", provider=_TextProvider("   "))

    def test_provider_failure(self) -> None:
        with pytest.raises(ExternalServiceError) as exc_info:
            summarize("Post body", provider=_FailProvider())
        assert exc_info.value.message == f"AI Summarization: {AI_UNAVAILABLE_MESSAGE}"

    def test_missing_content(self) -> None:
        with pytest.raises(ValidationError):
            summarize(None, provider=_TextProvider("x"))
