"""File record Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class FileRecordOut(BaseModel):
    """Response schema for an uploaded file's metadata."""

    id: int
    project_id: int | None
    filename: str
    mime_type: str
    file_size: int
    url: str
    file_key: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UploadFileRequest(BaseModel):
    """Request body for uploading a file as base64 in JSON.

    file_size must equal the decoded byte length of base64_data.
    """

    filename: str = Field(..., min_length=1, max_length=255)
    mime_type: str = Field(..., min_length=1, max_length=100)
    file_size: int = Field(..., ge=0)
    base64_data: str = Field(..., description="File contents, base64-encoded")
    project_id: int | None = Field(None, ge=1)
