"""Line note Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from codevault.schemas.common import NonBlankText


class LineNoteOut(BaseModel):
    """Response schema for a line note."""

    id: int
    snippet_id: int
    line_number: int
    content: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UpsertNoteRequest(BaseModel):
    """Request body for creating or replacing the note on one line."""

    content: NonBlankText = Field(..., description="Note text (non-empty)")


class UpsertNoteOut(BaseModel):
    """Result of a note upsert.

    created is True when a new row was inserted and False when the existing
    note on that line was replaced.
    """

    id: int
    created: bool
