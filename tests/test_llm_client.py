"""Tests for the LLM client abstraction.

All tests run without network access by using MockProvider, stub providers
or a fake SDK client.
"""

import logging
import uuid
from types import SimpleNamespace

import httpx
import pytest
from backend.app.models.llm import ErrorCategory, LLMFailure, LLMResult, LLMSuccess
from backend.app.services.llm_client import (
    AnthropicProvider,
    GeminiProvider,
    MockProvider,
    OpenAIProvider,
    generate_text,
    get_provider,
)
from google.genai import errors as genai_errors

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _FailProvider:
    """Test helper that always returns a specific failure."""

    provider_name: str = "fail-stub"

    def __init__(self, category: ErrorCategory, retryable: bool = False) -> None:
        self._category = category
        self._retryable = retryable

    def call(self, prompt_text: str, timeout_seconds: int) -> LLMResult:
        return LLMFailure(
            error_category=self._category,
            user_message=f"Simulated {self._category.value} error",
            retryable=self._retryable,
            details=str(uuid.uuid4()),
        )


class _SuccessProvider:
    provider_name: str = "success-stub"

    def __init__(self) -> None:
        self.timeouts: list[int] = []

    def call(self, prompt_text: str, timeout_seconds: int) -> LLMResult:
        self.timeouts.append(timeout_seconds)
        return LLMSuccess(
            text="A generated answer.",
            model_id="test-model-v1",
            request_id=str(uuid.uuid4()),
            latency_ms=42,
        )


class _FakeModels:
    def __init__(self, outcome: object) -> None:
        self._outcome = outcome
        self.kwargs: dict[str, object] = {}

    def generate_content(self, **kwargs: object) -> object:
        self.kwargs = kwargs
        if isinstance(self._outcome, BaseException):
            raise self._outcome
        return self._outcome


def _gemini(outcome: object) -> tuple[GeminiProvider, _FakeModels]:
    provider = GeminiProvider(api_key="test-key", model="gemini-test")
    models = _FakeModels(outcome)
    provider._client = SimpleNamespace(models=models)  # type: ignore[assignment]
    return provider, models


def _api_error(cls: type[genai_errors.APIError], code: int) -> genai_errors.APIError:
    return cls(code, {"error": {"code": code, "message": "upstream detail", "status": "X"}})


# ---------------------------------------------------------------------------
# Provider resolution
# ---------------------------------------------------------------------------


class TestGetProvider:
    def test_mock_when_no_keys(self) -> None:
        provider = get_provider(gemini_key="", anthropic_key="", openai_key="")
        assert isinstance(provider, MockProvider)

    def test_gemini_preferred(self) -> None:
        provider = get_provider(gemini_key="g", anthropic_key="a", openai_key="o")
        assert isinstance(provider, GeminiProvider)

    def test_anthropic_before_openai(self) -> None:
        provider = get_provider(gemini_key="", anthropic_key="a", openai_key="o")
        assert isinstance(provider, AnthropicProvider)

    def test_openai_last(self) -> None:
        provider = get_provider(gemini_key="", anthropic_key="", openai_key="o")
        assert isinstance(provider, OpenAIProvider)


class TestMockProvider:
    def test_summary_text(self) -> None:
        result = MockProvider().call("Summarize this", timeout_seconds=30)
        assert isinstance(result, LLMSuccess)
        assert result.model_id == "mock-v1"
        assert "summary" in result.text

    def test_enhancement_json(self) -> None:
        result = MockProvider().call('reply with "refinedContent"', timeout_seconds=30)
        assert '"suggestedTitle"' in result.text


# ---------------------------------------------------------------------------
# generate_text
# ---------------------------------------------------------------------------


class TestGenerateText:
    @pytest.mark.parametrize(
        ("category", "retryable"),
        [
            (ErrorCategory.auth, False),
            (ErrorCategory.rate_limit, True),
            (ErrorCategory.timeout, True),
            (ErrorCategory.network, True),
            (ErrorCategory.parsing, False),
        ],
    )
    def test_failure_passed_through(self, category: ErrorCategory, retryable: bool) -> None:
        result = generate_text(
            "p", provider=_FailProvider(category, retryable), operation="summarize",
        )
        assert isinstance(result, LLMFailure)
        assert result.error_category == category
        assert result.retryable is retryable

    def test_success(self) -> None:
        result = generate_text("p", provider=_SuccessProvider(), operation="enhance")
        assert isinstance(result, LLMSuccess)
        assert result.latency_ms == 42

    def test_explicit_timeout(self) -> None:
        provider = _SuccessProvider()
        generate_text("p", provider=provider, operation="enhance", timeout_seconds=5)
        assert provider.timeouts == [5]

    def test_logs_without_secrets(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO):
            generate_text("TOP SECRET DRAFT", provider=_SuccessProvider(), operation="enhance")
        assert "llm_call_success" in caplog.text
        assert "operation=enhance" in caplog.text
        assert "TOP SECRET DRAFT" not in caplog.text

    def test_failure_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            generate_text(
                "p", provider=_FailProvider(ErrorCategory.timeout, True), operation="enhance",
            )
        assert "llm_call_failure" in caplog.text
        assert "error_category=timeout" in caplog.text


# ---------------------------------------------------------------------------
# Gemini error mapping
# ---------------------------------------------------------------------------


class TestGeminiProvider:
    def test_success(self) -> None:
        provider, models = _gemini(SimpleNamespace(text="  Summary.  ", model_version=None))
        result = provider.call("prompt", timeout_seconds=30)
        assert isinstance(result, LLMSuccess)
        assert result.text == "Summary."
        assert result.model_id == "gemini-test"
        assert models.kwargs["model"] == "gemini-test"
        assert models.kwargs["contents"] == "prompt"

    def test_empty_text_is_parsing_failure(self) -> None:
        provider, _ = _gemini(SimpleNamespace(text=None))
        result = provider.call("prompt", timeout_seconds=30)
        assert isinstance(result, LLMFailure)
        assert result.error_category == ErrorCategory.parsing

    @pytest.mark.parametrize(
        ("code", "category", "retryable"),
        [
            (401, ErrorCategory.auth, False),
            (403, ErrorCategory.auth, False),
            (429, ErrorCategory.rate_limit, True),
            (400, ErrorCategory.provider, False),
        ],
    )
    def test_client_errors(self, code: int, category: ErrorCategory, retryable: bool) -> None:
        provider, _ = _gemini(_api_error(genai_errors.ClientError, code))
        result = provider.call("prompt", timeout_seconds=30)
        assert isinstance(result, LLMFailure)
        assert result.error_category == category
        assert result.retryable is retryable
        assert "upstream detail" not in result.user_message

    def test_server_error_retryable(self) -> None:
        provider, _ = _gemini(_api_error(genai_errors.ServerError, 503))
        result = provider.call("prompt", timeout_seconds=30)
        assert result.error_category == ErrorCategory.provider
        assert result.retryable is True

    def test_timeout(self) -> None:
        provider, _ = _gemini(httpx.ReadTimeout("slow"))
        assert provider.call("prompt", 30).error_category == ErrorCategory.timeout

    def test_network(self) -> None:
        provider, _ = _gemini(httpx.ConnectError("refused"))
        assert provider.call("prompt", 30).error_category == ErrorCategory.network

    def test_unexpected(self) -> None:
        provider, _ = _gemini(RuntimeError("boom"))
        result = provider.call("prompt", 30)
        assert result.error_category == ErrorCategory.unknown
        assert "boom" not in result.user_message


# ---------------------------------------------------------------------------
# Anthropic and OpenAI error mapping
# ---------------------------------------------------------------------------


class _FakeCreate:
    """Stands in for ``messages`` / ``chat.completions`` on an SDK client."""

    def __init__(self, outcome: object) -> None:
        self._outcome = outcome
        self.kwargs: dict[str, object] = {}

    def create(self, **kwargs: object) -> object:
        self.kwargs = kwargs
        if isinstance(self._outcome, BaseException):
            raise self._outcome
        return self._outcome


def _anthropic(outcome: object) -> tuple[AnthropicProvider, _FakeCreate]:
    provider = AnthropicProvider(api_key="test-key")
    fake = _FakeCreate(outcome)
    provider._client = SimpleNamespace(messages=fake)  # type: ignore[assignment]
    return provider, fake


def _openai(outcome: object) -> tuple[OpenAIProvider, _FakeCreate]:
    provider = OpenAIProvider(api_key="test-key")
    fake = _FakeCreate(outcome)
    provider._client = SimpleNamespace(  # type: ignore[assignment]
        chat=SimpleNamespace(completions=fake),
    )
    return provider, fake


_REQUEST = httpx.Request("POST", "https://llm.example.com/v1/generate")


def _status_error(cls: type[Exception], code: int) -> Exception:
    response = httpx.Response(code, request=_REQUEST)
    return cls("upstream detail", response=response, body=None)  # type: ignore[call-arg]


def _sdk_failures(sdk: object) -> list[tuple[Exception, ErrorCategory, bool]]:
    return [
        (_status_error(sdk.AuthenticationError, 401), ErrorCategory.auth, False),
        (_status_error(sdk.RateLimitError, 429), ErrorCategory.rate_limit, True),
        (sdk.APITimeoutError(request=_REQUEST), ErrorCategory.timeout, True),
        (
            sdk.APIConnectionError(message="refused", request=_REQUEST),
            ErrorCategory.network,
            True,
        ),
        (_status_error(sdk.BadRequestError, 400), ErrorCategory.provider, False),
        (_status_error(sdk.InternalServerError, 500), ErrorCategory.provider, True),
        (RuntimeError("boom"), ErrorCategory.unknown, False),
    ]


class TestAnthropicProvider:
    def test_success(self) -> None:
        response = SimpleNamespace(
            content=[SimpleNamespace(type="text", text="  Summary.  ")],
            model="claude-test",
        )
        provider, fake = _anthropic(response)
        result = provider.call("prompt", timeout_seconds=12)
        assert isinstance(result, LLMSuccess)
        assert result.text == "Summary."
        assert result.model_id == "claude-test"
        assert fake.kwargs["messages"] == [{"role": "user", "content": "prompt"}]
        assert fake.kwargs["timeout"] == 12.0

    def test_no_text_block_is_parsing_failure(self) -> None:
        provider, _ = _anthropic(SimpleNamespace(content=[], model="claude-test"))
        result = provider.call("prompt", timeout_seconds=30)
        assert isinstance(result, LLMFailure)
        assert result.error_category == ErrorCategory.parsing

    def test_malformed_response_is_parsing_failure(self) -> None:
        provider, _ = _anthropic(SimpleNamespace(model="claude-test"))
        result = provider.call("prompt", timeout_seconds=30)
        assert result.error_category == ErrorCategory.parsing

    def test_error_mapping(self) -> None:
        import anthropic

        for exc, category, retryable in _sdk_failures(anthropic):
            provider, _ = _anthropic(exc)
            result = provider.call("prompt", timeout_seconds=30)
            assert isinstance(result, LLMFailure), exc
            assert result.error_category == category, exc
            assert result.retryable is retryable, exc
            assert "upstream detail" not in result.user_message
            assert "boom" not in result.user_message


class TestOpenAIProvider:
    def test_success(self) -> None:
        response = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=" Summary. "))],
            model="gpt-test",
        )
        provider, fake = _openai(response)
        result = provider.call("prompt", timeout_seconds=12)
        assert isinstance(result, LLMSuccess)
        assert result.text == "Summary."
        assert result.model_id == "gpt-test"
        assert fake.kwargs["messages"] == [{"role": "user", "content": "prompt"}]
        assert fake.kwargs["timeout"] == 12.0

    def test_no_choices_is_parsing_failure(self) -> None:
        provider, _ = _openai(SimpleNamespace(choices=[], model="gpt-test"))
        result = provider.call("prompt", timeout_seconds=30)
        assert isinstance(result, LLMFailure)
        assert result.error_category == ErrorCategory.parsing

    def test_null_content_is_parsing_failure(self) -> None:
        response = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=None))],
            model="gpt-test",
        )
        provider, _ = _openai(response)
        assert provider.call("prompt", 30).error_category == ErrorCategory.parsing

    def test_error_mapping(self) -> None:
        import openai

        for exc, category, retryable in _sdk_failures(openai):
            provider, _ = _openai(exc)
            result = provider.call("prompt", timeout_seconds=30)
            assert isinstance(result, LLMFailure), exc
            assert result.error_category == category, exc
            assert result.retryable is retryable, exc
            assert "upstream detail" not in result.user_message
            assert "boom" not in result.user_message
