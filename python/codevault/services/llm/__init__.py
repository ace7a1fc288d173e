"""Completion layer for provider-agnostic LLM integration.

Provides:
- Provider adapters (OpenAI, Anthropic) over a shared httpx.AsyncClient
- Error classification and normalization
- LLMRouter for adapter selection and feature flags
- CompletionService, the turns-in/text-out contract used by the assistant

Usage:
    from codevault.services.llm import LLMCompletionService, LLMRouter, Turn

    router = LLMRouter(httpx_client)
    completion = LLMCompletionService(
        router, provider="openai", model_name="gpt-4o-mini", api_key="sk-..."
    )
    text = await completion.complete([Turn(role="user", content="Hello!")])
"""

from codevault.services.llm.adapter import LLMAdapter
from codevault.services.llm.completion import CompletionService, LLMCompletionService
from codevault.services.llm.errors import LLMError, LLMErrorClass, classify_provider_error
from codevault.services.llm.router import LLMRouter
from codevault.services.llm.types import LLMRequest, LLMResponse, LLMUsage, Turn

__all__ = [
    # Core types
    "Turn",
    "LLMRequest",
    "LLMResponse",
    "LLMUsage",
    # Adapter interface
    "LLMAdapter",
    # Router
    "LLMRouter",
    # Completion contract
    "CompletionService",
    "LLMCompletionService",
    # Errors
    "LLMError",
    "LLMErrorClass",
    "classify_provider_error",
]
