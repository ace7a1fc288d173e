"""Assistant chat Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from codevault.schemas.common import NonBlankText

# Maximum length of a single chat message in characters
MAX_MESSAGE_CHARS = 20_000


class ChatMessageOut(BaseModel):
    """Response schema for a stored chat message."""

    id: int
    snippet_id: int | None
    role: str
    content: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SendChatRequest(BaseModel):
    """Request body for sending a message to the assistant.

    context is arbitrary code the client wants the assistant to see; it is
    embedded in the system instruction, not stored.
    """

    message: NonBlankText = Field(..., max_length=MAX_MESSAGE_CHARS)
    snippet_id: int | None = Field(None, ge=1)
    context: str | None = None


class ChatReplyOut(BaseModel):
    """The assistant's reply."""

    content: str
