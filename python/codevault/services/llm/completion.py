"""Completion service used by the assistant bridge.

The bridge only needs "ordered turns in, reply text out". CompletionService
is that contract; LLMCompletionService implements it over LLMRouter with the
provider, model and key taken from settings.
"""

from typing import Protocol

from codevault.config import Settings
from codevault.services.llm.errors import LLMError, LLMErrorClass
from codevault.services.llm.router import LLMRouter
from codevault.services.llm.types import LLMRequest, Turn


class CompletionService(Protocol):
    """Anything that can turn an ordered conversation into reply text."""

    async def complete(self, turns: list[Turn]) -> str:
        """Return the assistant's reply to turns.

        Raises:
            LLMError: The completion could not be produced.
        """
        ...


class LLMCompletionService:
    """CompletionService backed by a configured provider through LLMRouter."""

    def __init__(
        self,
        router: LLMRouter,
        *,
        provider: str,
        model_name: str,
        api_key: str | None,
        max_tokens: int = 2048,
        timeout_s: int = 45,
    ):
        self._router = router
        self.provider = provider
        self.model_name = model_name
        self._api_key = api_key
        self.max_tokens = max_tokens
        self.timeout_s = timeout_s

    @classmethod
    def from_settings(cls, router: LLMRouter, settings: Settings) -> "LLMCompletionService":
        return cls(
            router,
            provider=settings.llm_provider,
            model_name=settings.llm_model,
            api_key=settings.llm_api_key,
            max_tokens=settings.llm_max_tokens,
            timeout_s=settings.llm_timeout_s,
        )

    async def complete(self, turns: list[Turn]) -> str:
        if not self._api_key:
            raise LLMError(
                LLMErrorClass.INVALID_KEY,
                f"No API key configured for {self.provider}",
                provider=self.provider,
            )

        request = LLMRequest(
            model_name=self.model_name,
            messages=turns,
            max_tokens=self.max_tokens,
        )
        response = await self._router.generate(
            self.provider, request, self._api_key, timeout_s=self.timeout_s
        )
        return response.text
