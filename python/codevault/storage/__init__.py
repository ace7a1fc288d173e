"""Storage module for uploaded file bytes.

Provides:
- StorageClient for an HTTP object store
- FakeStorageClient for local development and tests
- Key building utilities with test isolation prefixes
"""

from codevault.storage.client import (
    FakeStorageClient,
    StorageClient,
    StorageClientBase,
    StorageError,
    StoredObject,
    get_storage_client,
)
from codevault.storage.paths import build_file_key, sanitize_filename

__all__ = [
    "StorageClientBase",
    "StorageClient",
    "FakeStorageClient",
    "StorageError",
    "StoredObject",
    "get_storage_client",
    "build_file_key",
    "sanitize_filename",
]
