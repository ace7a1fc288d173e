"""Shared field types for request schemas."""

import re
from typing import Annotated

from pydantic import AfterValidator, BaseModel, StringConstraints

HEX_COLOR_PATTERN = re.compile(r"^#[0-9a-fA-F]{6}$")


def _not_blank(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("must not be blank")
    return v


def _has_text(v: str) -> str:
    if not v.strip():
        raise ValueError("must not be blank")
    return v


def _hex_color(v: str) -> str:
    if not HEX_COLOR_PATTERN.match(v):
        raise ValueError("color must be a #rrggbb hex string")
    return v


# Title/name text: 1-255 chars, whitespace-only rejected, surrounding whitespace stripped
NameText = Annotated[
    str, StringConstraints(min_length=1, max_length=255), AfterValidator(_not_blank)
]

# Non-empty free text (note content, chat message)
NonBlankText = Annotated[str, StringConstraints(min_length=1), AfterValidator(_has_text)]

HexColor = Annotated[str, AfterValidator(_hex_color)]


class CreatedOut(BaseModel):
    """Response schema for create operations: the server-assigned id."""

    id: int
