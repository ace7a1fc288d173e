"""Anthropic messages API.

System turns are lifted into the top-level "system" field, which is the
only place the API accepts them. The reply is every text block joined in
order.
"""

from codevault.services.llm.adapter import LLMAdapter
from codevault.services.llm.types import LLMRequest, LLMResponse, LLMUsage

ANTHROPIC_MESSAGES_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_API_VERSION = "2023-06-01"


class AnthropicAdapter(LLMAdapter):
    provider = "anthropic"

    async def generate(self, req: LLMRequest, *, api_key: str, timeout_s: int) -> LLMResponse:
        system = "\n\n".join(t.content for t in req.messages if t.role == "system")
        body: dict = {
            "model": req.model_name,
            "max_tokens": req.max_tokens,
            "messages": [
                {"role": t.role, "content": t.content} for t in req.messages if t.role != "system"
            ],
        }
        if system:
            body["system"] = system
        if req.temperature is not None:
            body["temperature"] = req.temperature

        headers = {"x-api-key": api_key, "anthropic-version": ANTHROPIC_API_VERSION}
        data = (await self._post(ANTHROPIC_MESSAGES_URL, headers, body, timeout_s)).json()

        usage_data = data.get("usage")
        usage = (
            LLMUsage(usage_data.get("input_tokens"), usage_data.get("output_tokens"))
            if usage_data
            else None
        )
        return LLMResponse(
            text="".join(
                block.get("text", "")
                for block in data.get("content") or []
                if block.get("type") == "text"
            ),
            usage=usage,
            provider_request_id=data.get("id"),
        )
