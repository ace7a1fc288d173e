"""Value types passed between the assistant bridge, router and adapters."""

from dataclasses import dataclass
from typing import Literal

Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class Turn:
    """One message of a conversation, in no provider's format."""

    role: Role
    content: str


@dataclass(frozen=True)
class LLMUsage:
    """Token counts as reported by the provider; either may be missing."""

    input_tokens: int | None = None
    output_tokens: int | None = None

    @property
    def total_tokens(self) -> int | None:
        if self.input_tokens is None or self.output_tokens is None:
            return None
        return self.input_tokens + self.output_tokens


@dataclass(frozen=True)
class LLMRequest:
    """A single completion call.

    messages is ordered oldest first; a system turn, if any, comes first.
    temperature None leaves the provider default.
    """

    model_name: str
    messages: list[Turn]
    max_tokens: int
    temperature: float | None = None


@dataclass(frozen=True)
class LLMResponse:
    text: str
    usage: LLMUsage | None = None
    provider_request_id: str | None = None
