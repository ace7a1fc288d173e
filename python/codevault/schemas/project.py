"""Project Pydantic schemas.

Contains request and response models for project endpoints.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from codevault.schemas.common import HexColor, NameText

# =============================================================================
# Output Schemas
# =============================================================================


class ProjectOut(BaseModel):
    """Response schema for a project."""

    id: int
    name: str
    description: str | None
    color: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Request Schemas
# =============================================================================


class CreateProjectRequest(BaseModel):
    """Request body for creating a project."""

    name: NameText = Field(..., description="Project name (1-255 chars)")
    description: str | None = Field(None, description="Optional free-text description")
    color: HexColor | None = Field(None, description="Hex color; defaults to #6366f1")


class UpdateProjectRequest(BaseModel):
    """Request body for a partial project update.

    Only fields present in the request are written. description may be set
    to null to clear it; name and color may not.
    """

    name: NameText | None = None
    description: str | None = None
    color: HexColor | None = None

    @model_validator(mode="after")
    def reject_null_required_fields(self) -> "UpdateProjectRequest":
        for field in ("name", "color"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self
