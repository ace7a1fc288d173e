"""OpenAI chat completions.

Turn roles map 1:1 onto OpenAI message roles. The reply is
choices[0].message.content; the request id comes from the x-request-id
header, falling back to the body's id.
"""

from codevault.services.llm.adapter import LLMAdapter
from codevault.services.llm.errors import LLMError, LLMErrorClass
from codevault.services.llm.types import LLMRequest, LLMResponse, LLMUsage

OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"


class OpenAIAdapter(LLMAdapter):
    provider = "openai"

    async def generate(self, req: LLMRequest, *, api_key: str, timeout_s: int) -> LLMResponse:
        body: dict = {
            "model": req.model_name,
            "max_tokens": req.max_tokens,
            "messages": [{"role": t.role, "content": t.content} for t in req.messages],
        }
        if req.temperature is not None:
            body["temperature"] = req.temperature

        response = await self._post(
            OPENAI_CHAT_URL, {"Authorization": f"Bearer {api_key}"}, body, timeout_s
        )
        data = response.json()

        choices = data.get("choices") or []
        if not choices:
            raise LLMError(
                LLMErrorClass.PROVIDER_DOWN,
                "OpenAI response had no choices",
                provider=self.provider,
            )

        usage_data = data.get("usage")
        usage = (
            LLMUsage(usage_data.get("prompt_tokens"), usage_data.get("completion_tokens"))
            if usage_data
            else None
        )
        return LLMResponse(
            text=(choices[0].get("message") or {}).get("content") or "",
            usage=usage,
            provider_request_id=response.headers.get("x-request-id") or data.get("id"),
        )
