"""Provider adapter contract.

An adapter translates an LLMRequest into one HTTP call and the reply into an
LLMResponse. It does not retry, log or classify failures: httpx errors
propagate as-is and LLMRouter normalizes them.
"""

from abc import ABC, abstractmethod

import httpx

from codevault.services.llm.types import LLMRequest, LLMResponse


class LLMAdapter(ABC):
    provider: str

    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    @abstractmethod
    async def generate(self, req: LLMRequest, *, api_key: str, timeout_s: int) -> LLMResponse:
        """Run one completion.

        Raises:
            httpx.HTTPStatusError: Non-2xx response.
            httpx.TimeoutException: The call timed out.
            httpx.NetworkError: The provider could not be reached.
            LLMError: The response body has no usable reply.
        """

    async def _post(self, url: str, headers: dict[str, str], body: dict, timeout_s: int):
        response = await self._client.post(
            url, headers=headers, json=body, timeout=httpx.Timeout(timeout_s, connect=10.0)
        )
        response.raise_for_status()
        return response
