"""Blob keys for uploads.

Keys look like {user_id}-files/{random}-{filename}. When STORAGE_TEST_PREFIX
is set (shared buckets in CI), it is prepended once, followed by a slash.
Keys never start with a slash and the filename never adds a path segment.
"""

import os
import re
from uuid import uuid4

TEST_PREFIX_ENV_VAR = "STORAGE_TEST_PREFIX"

_UNSAFE_FILENAME_CHARS = re.compile(r"[\\/\x00-\x1f]")


def _key_prefix() -> str:
    prefix = os.environ.get(TEST_PREFIX_ENV_VAR, "").strip("/")
    return f"{prefix}/" if prefix else ""


def sanitize_filename(filename: str) -> str:
    """Replace separators and control characters with "_" and strip leading dots.

    An empty result becomes "file".
    """
    cleaned = _UNSAFE_FILENAME_CHARS.sub("_", filename).lstrip(".")
    return cleaned or "file"


def build_file_key(user_id: int, filename: str) -> str:
    """Fresh key for one of user_id's uploads, e.g. '42-files/3f2a...-diagram.png'."""
    return f"{_key_prefix()}{user_id}-files/{uuid4().hex}-{sanitize_filename(filename)}"
