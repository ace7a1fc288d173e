"""Tests for the completion layer.

Test coverage per provider:
- Happy path generation and response parsing
- 401 → E_LLM_INVALID_KEY, 429 → E_LLM_RATE_LIMIT, 5xx → E_LLM_PROVIDER_DOWN
- Context-length errors → E_LLM_CONTEXT_TOO_LARGE
- Timeouts → E_LLM_TIMEOUT

Plus router feature flags and LLMCompletionService.

Explicitly Forbidden:
- Live provider calls
- Real API keys anywhere in test code

Note: These tests are pure unit tests that do NOT require database access.
They use respx to mock HTTP requests.
"""

import json

import httpx
import pytest
import respx

from codevault.services.llm import (
    LLMCompletionService,
    LLMError,
    LLMErrorClass,
    LLMRequest,
    LLMRouter,
    Turn,
    classify_provider_error,
)
from codevault.services.llm.anthropic_adapter import ANTHROPIC_MESSAGES_URL, AnthropicAdapter
from codevault.services.llm.openai_adapter import OPENAI_CHAT_URL, OpenAIAdapter

OPENAI_SUCCESS = {
    "id": "chatcmpl-123",
    "choices": [{"index": 0, "message": {"role": "assistant", "content": "¡Hola!"}}],
    "usage": {"prompt_tokens": 10, "completion_tokens": 3, "total_tokens": 13},
}

ANTHROPIC_SUCCESS = {
    "id": "msg_123",
    "content": [
        {"type": "text", "text": "¡Hola! "},
        {"type": "text", "text": "¿En qué te ayudo?"},
    ],
    "usage": {"input_tokens": 12, "output_tokens": 7},
}


# =============================================================================
# Test Fixtures
# =============================================================================


@pytest.fixture
def httpx_client():
    """Create an httpx AsyncClient for testing."""
    return httpx.AsyncClient()


@pytest.fixture
def llm_request():
    """Create a basic LLM request for testing."""
    return LLMRequest(
        model_name="test-model",
        messages=[
            Turn(role="system", content="You are helpful."),
            Turn(role="user", content="Hello!"),
        ],
        max_tokens=100,
    )


# =============================================================================
# OpenAI Adapter Tests
# =============================================================================


class TestOpenAIAdapter:
    """Tests for OpenAI adapter."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_openai_success(self, httpx_client, llm_request):
        """Happy path generation."""
        route = respx.post(OPENAI_CHAT_URL).respond(
            200, json=OPENAI_SUCCESS, headers={"x-request-id": "req-test-123"}
        )

        adapter = OpenAIAdapter(httpx_client)
        response = await adapter.generate(llm_request, api_key="sk-test", timeout_s=30)

        assert response.text == "¡Hola!"
        assert response.usage.input_tokens == 10
        assert response.usage.total_tokens == 13
        assert response.provider_request_id == "req-test-123"

        sent = json.loads(route.calls.last.request.content)
        assert sent["messages"][0] == {"role": "system", "content": "You are helpful."}
        assert route.calls.last.request.headers["authorization"] == "Bearer sk-test"

    @pytest.mark.asyncio
    @respx.mock
    async def test_openai_missing_choices(self, httpx_client, llm_request):
        """A body without choices is a provider failure."""
        respx.post(OPENAI_CHAT_URL).respond(200, json={"id": "x", "choices": []})

        adapter = OpenAIAdapter(httpx_client)
        with pytest.raises(LLMError) as exc_info:
            await adapter.generate(llm_request, api_key="sk-test", timeout_s=30)

        assert exc_info.value.error_class == LLMErrorClass.PROVIDER_DOWN

    @pytest.mark.asyncio
    @respx.mock
    async def test_openai_invalid_key_401(self, httpx_client, llm_request):
        """401 response should raise HTTPStatusError."""
        respx.post(OPENAI_CHAT_URL).respond(401, json={"error": {"message": "bad key"}})

        adapter = OpenAIAdapter(httpx_client)
        with pytest.raises(httpx.HTTPStatusError) as exc_info:
            await adapter.generate(llm_request, api_key="sk-invalid", timeout_s=30)

        assert exc_info.value.response.status_code == 401


# =============================================================================
# Anthropic Adapter Tests
# =============================================================================


class TestAnthropicAdapter:
    """Tests for Anthropic adapter."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_anthropic_success(self, httpx_client, llm_request):
        """Text blocks are concatenated; system turn moves to the system field."""
        route = respx.post(ANTHROPIC_MESSAGES_URL).respond(200, json=ANTHROPIC_SUCCESS)

        adapter = AnthropicAdapter(httpx_client)
        response = await adapter.generate(llm_request, api_key="sk-ant-test", timeout_s=30)

        assert response.text == "¡Hola! ¿En qué te ayudo?"
        assert response.usage.total_tokens == 19
        assert response.provider_request_id == "msg_123"

        sent = json.loads(route.calls.last.request.content)
        assert sent["system"] == "You are helpful."
        assert [m["role"] for m in sent["messages"]] == ["user"]
        assert route.calls.last.request.headers["x-api-key"] == "sk-ant-test"

    @pytest.mark.asyncio
    @respx.mock
    async def test_anthropic_rate_limit_429(self, httpx_client, llm_request):
        """429 response should raise HTTPStatusError."""
        respx.post(ANTHROPIC_MESSAGES_URL).respond(429, json={"error": {"type": "rate_limit"}})

        adapter = AnthropicAdapter(httpx_client)
        with pytest.raises(httpx.HTTPStatusError):
            await adapter.generate(llm_request, api_key="sk-ant-test", timeout_s=30)


# =============================================================================
# Error Classification Tests
# =============================================================================


class TestErrorClassification:
    """classify_provider_error maps HTTP failures to error classes."""

    @pytest.mark.parametrize(
        ("status_code", "expected"),
        [
            (401, LLMErrorClass.INVALID_KEY),
            (403, LLMErrorClass.INVALID_KEY),
            (429, LLMErrorClass.RATE_LIMIT),
            (404, LLMErrorClass.MODEL_NOT_AVAILABLE),
            (500, LLMErrorClass.PROVIDER_DOWN),
            (503, LLMErrorClass.PROVIDER_DOWN),
            (None, LLMErrorClass.PROVIDER_DOWN),
        ],
    )
    def test_status_codes(self, status_code, expected):
        assert classify_provider_error("openai", status_code, None) == expected

    def test_openai_context_length(self):
        body = {"error": {"code": "context_length_exceeded", "message": "too long"}}
        assert classify_provider_error("openai", 400, body) == LLMErrorClass.CONTEXT_TOO_LARGE

    def test_anthropic_context_length(self):
        body = {"error": {"type": "invalid_request_error", "message": "prompt is too long"}}
        assert (
            classify_provider_error("anthropic", 400, body) == LLMErrorClass.CONTEXT_TOO_LARGE
        )


# =============================================================================
# Router Tests
# =============================================================================


class TestLLMRouter:
    """Router selection, feature flags and error normalization."""

    def test_unknown_provider(self, httpx_client):
        router = LLMRouter(httpx_client)

        with pytest.raises(LLMError) as exc_info:
            router.resolve_adapter("gemini")

        assert exc_info.value.error_class == LLMErrorClass.MODEL_NOT_AVAILABLE

    def test_disabled_provider(self, httpx_client):
        router = LLMRouter(httpx_client, enable_anthropic=False)

        assert router.is_provider_available("openai")
        assert not router.is_provider_available("anthropic")
        with pytest.raises(LLMError):
            router.resolve_adapter("anthropic")

    @pytest.mark.asyncio
    @respx.mock
    async def test_http_error_normalized(self, httpx_client, llm_request):
        respx.post(OPENAI_CHAT_URL).respond(429, json={"error": {"message": "slow down"}})
        router = LLMRouter(httpx_client)

        with pytest.raises(LLMError) as exc_info:
            await router.generate("openai", llm_request, "sk-test")

        assert exc_info.value.error_class == LLMErrorClass.RATE_LIMIT
        assert exc_info.value.provider == "openai"

    @pytest.mark.asyncio
    @respx.mock
    async def test_timeout_normalized(self, httpx_client, llm_request):
        respx.post(OPENAI_CHAT_URL).mock(side_effect=httpx.ReadTimeout("timed out"))
        router = LLMRouter(httpx_client)

        with pytest.raises(LLMError) as exc_info:
            await router.generate("openai", llm_request, "sk-test", timeout_s=1)

        assert exc_info.value.error_class == LLMErrorClass.TIMEOUT

    @pytest.mark.asyncio
    @respx.mock
    async def test_network_error_normalized(self, httpx_client, llm_request):
        respx.post(ANTHROPIC_MESSAGES_URL).mock(side_effect=httpx.ConnectError("refused"))
        router = LLMRouter(httpx_client)

        with pytest.raises(LLMError) as exc_info:
            await router.generate("anthropic", llm_request, "sk-ant-test")

        assert exc_info.value.error_class == LLMErrorClass.PROVIDER_DOWN


# =============================================================================
# Completion Service Tests
# =============================================================================


class TestLLMCompletionService:
    """Turns in, reply text out."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_complete_returns_text(self, httpx_client):
        route = respx.post(OPENAI_CHAT_URL).respond(200, json=OPENAI_SUCCESS)
        service = LLMCompletionService(
            LLMRouter(httpx_client), provider="openai", model_name="gpt-4o-mini", api_key="sk-t"
        )

        text = await service.complete([Turn(role="user", content="Hola")])

        assert text == "¡Hola!"
        assert json.loads(route.calls.last.request.content)["model"] == "gpt-4o-mini"

    @pytest.mark.asyncio
    async def test_missing_key_raises_invalid_key(self, httpx_client):
        service = LLMCompletionService(
            LLMRouter(httpx_client), provider="openai", model_name="gpt-4o-mini", api_key=None
        )

        with pytest.raises(LLMError) as exc_info:
            await service.complete([Turn(role="user", content="Hola")])

        assert exc_info.value.error_class == LLMErrorClass.INVALID_KEY
