"""Provider selection and failure normalization.

LLMRouter owns one adapter per provider over a shared httpx client, refuses
providers that are switched off, and turns every way a call can fail into
an LLMError. It logs llm.request.started / .finished / .failed; fields go
through safe_kv so prompt text never reaches the logs.
"""

import time

import httpx

from codevault.logging import get_logger
from codevault.services.llm.adapter import LLMAdapter
from codevault.services.llm.anthropic_adapter import AnthropicAdapter
from codevault.services.llm.errors import LLMError, LLMErrorClass, classify_provider_error
from codevault.services.llm.openai_adapter import OpenAIAdapter
from codevault.services.llm.types import LLMRequest, LLMResponse
from codevault.services.redact import safe_kv

logger = get_logger(__name__)

DEFAULT_TIMEOUT_S = 45


def _json_or_none(response: httpx.Response) -> dict | None:
    try:
        body = response.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


def _normalize(provider: str, exc: Exception) -> tuple[LLMError, str | None]:
    """LLMError for exc, plus the provider's request id when one was returned."""
    if isinstance(exc, LLMError):
        return exc, None
    if isinstance(exc, httpx.TimeoutException):
        return LLMError(LLMErrorClass.TIMEOUT, "Request timed out", provider=provider), None
    if isinstance(exc, httpx.HTTPStatusError):
        response = exc.response
        error_class = classify_provider_error(
            provider, response.status_code, _json_or_none(response)
        )
        request_id = response.headers.get("x-request-id") or response.headers.get("request-id")
        message = f"Provider returned HTTP {response.status_code}"
        return LLMError(error_class, message, provider=provider), request_id
    if isinstance(exc, httpx.NetworkError):
        return LLMError(LLMErrorClass.PROVIDER_DOWN, "Network error", provider=provider), None
    return (
        LLMError(LLMErrorClass.PROVIDER_DOWN, "Unexpected provider failure", provider=provider),
        None,
    )


class LLMRouter:
    """Dispatches completion requests to the enabled provider adapters."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        enable_openai: bool = True,
        enable_anthropic: bool = True,
    ):
        self._adapters: dict[str, LLMAdapter] = {
            "openai": OpenAIAdapter(client),
            "anthropic": AnthropicAdapter(client),
        }
        self._enabled = {"openai": enable_openai, "anthropic": enable_anthropic}

    def is_provider_available(self, provider: str) -> bool:
        return provider in self._adapters and self._enabled.get(provider, False)

    def resolve_adapter(self, provider: str) -> LLMAdapter:
        """
        Raises:
            LLMError(MODEL_NOT_AVAILABLE): Unknown or disabled provider.
        """
        if provider not in self._adapters:
            message = f"Unknown provider: {provider}"
        elif not self._enabled.get(provider, False):
            message = f"Provider {provider} is disabled"
        else:
            return self._adapters[provider]
        raise LLMError(LLMErrorClass.MODEL_NOT_AVAILABLE, message, provider=provider)

    async def generate(
        self,
        provider: str,
        req: LLMRequest,
        api_key: str,
        *,
        timeout_s: int = DEFAULT_TIMEOUT_S,
    ) -> LLMResponse:
        """Run req on provider.

        Raises:
            LLMError: Normalized failure of any kind.
        """
        adapter = self.resolve_adapter(provider)
        fields = {"provider": provider, "model_name": req.model_name}
        logger.info(
            "llm.request.started",
            **safe_kv(
                **fields,
                num_turns=len(req.messages),
                message_chars=sum(len(t.content) for t in req.messages),
            ),
        )
        started = time.monotonic()

        try:
            response = await adapter.generate(req, api_key=api_key, timeout_s=timeout_s)
        except (LLMError, httpx.HTTPError, ValueError) as e:
            error, provider_request_id = _normalize(provider, e)
            logger.error(
                "llm.request.failed",
                **safe_kv(
                    **fields,
                    outcome="error",
                    error_class=error.error_class.value,
                    latency_ms=int((time.monotonic() - started) * 1000),
                    provider_request_id=provider_request_id,
                ),
            )
            if error is e:
                raise
            raise error from e

        usage = response.usage
        logger.info(
            "llm.request.finished",
            **safe_kv(
                **fields,
                outcome="success",
                latency_ms=int((time.monotonic() - started) * 1000),
                tokens_input=usage.input_tokens if usage else None,
                tokens_output=usage.output_tokens if usage else None,
                tokens_total=usage.total_tokens if usage else None,
                provider_request_id=response.provider_request_id,
            ),
        )
        return response
