"""User Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class UserOut(BaseModel):
    """Response schema for the current user."""

    id: int
    open_id: str
    name: str | None
    email: str | None
    login_method: str | None
    role: str
    created_at: datetime
    last_signed_in: datetime

    model_config = ConfigDict(from_attributes=True)
