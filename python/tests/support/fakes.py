"""Test doubles for injected services."""

from codevault.services.llm import LLMError, Turn


class FakeCompletionService:
    """Scripted CompletionService that records every call.

    Args:
        reply: Text returned by complete().
        error: If set, complete() raises it instead of replying.
    """

    def __init__(self, reply: str = "Hola, soy CodeVault AI.", error: LLMError | None = None):
        self.reply = reply
        self.error = error
        self.calls: list[list[Turn]] = []

    async def complete(self, turns: list[Turn]) -> str:
        self.calls.append(list(turns))
        if self.error is not None:
            raise self.error
        return self.reply

    @property
    def last_turns(self) -> list[Turn]:
        assert self.calls, "complete() was never called"
        return self.calls[-1]
