"""Snippet Pydantic schemas.

Contains request and response models for snippet endpoints, including search.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from codevault.schemas.common import NameText

# =============================================================================
# Output Schemas
# =============================================================================


class SnippetOut(BaseModel):
    """Response schema for a snippet."""

    id: int
    project_id: int | None
    title: str
    code: str
    language: str
    description: str | None
    is_favorite: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Request Schemas
# =============================================================================


class CreateSnippetRequest(BaseModel):
    """Request body for creating a snippet.

    language defaults to "javascript" when omitted.
    """

    title: NameText = Field(..., description="Snippet title (1-255 chars)")
    code: str = Field(..., description="Source code; may be empty")
    language: str | None = Field(None, min_length=1, max_length=50)
    description: str | None = None
    project_id: int | None = Field(None, ge=1, description="Owning project, if any")


class UpdateSnippetRequest(BaseModel):
    """Request body for a partial snippet update.

    Unset fields are left untouched. description and project_id accept an
    explicit null, which clears them.
    """

    title: NameText | None = None
    code: str | None = None
    language: str | None = Field(None, min_length=1, max_length=50)
    description: str | None = None
    project_id: int | None = Field(None, ge=1)
    is_favorite: bool | None = None

    @model_validator(mode="after")
    def reject_null_required_fields(self) -> "UpdateSnippetRequest":
        for field in ("title", "code", "language", "is_favorite"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self
