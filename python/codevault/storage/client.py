"""Blob store client abstraction.

Provides a small interface for storing uploaded file bytes:
- put: store bytes under a key and return the object's URL

StorageClient talks to a Supabase-Storage-compatible HTTP API.
FakeStorageClient keeps objects in memory for local development and tests.
All methods receive the full object key directly - no prefix manipulation.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from urllib.parse import quote

import httpx

from codevault.config import Settings
from codevault.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class StoredObject:
    """Result of a successful put.

    Attributes:
        key: The object key the bytes were stored under.
        url: URL at which the object can be fetched.
    """

    key: str
    url: str


class StorageError(Exception):
    """Storage operation error."""

    def __init__(self, message: str, code: str = "E_STORAGE_ERROR"):
        super().__init__(message)
        self.message = message
        self.code = code


class StorageClientBase(ABC):
    """Abstract base class for blob store implementations."""

    @abstractmethod
    def put(self, key: str, data: bytes, content_type: str) -> StoredObject:
        """Store bytes under key.

        Args:
            key: Full object key (e.g., "42-files/ab12...-diagram.png").
            data: Object contents.
            content_type: MIME type recorded with the object.

        Returns:
            StoredObject with the key and a fetchable URL.

        Raises:
            StorageError: If the store rejects the object or is unreachable.
        """
        ...


class StorageClient(StorageClientBase):
    """Production blob store client.

    Uses httpx for HTTP operations against a Supabase Storage API.
    """

    def __init__(
        self,
        storage_url: str,
        service_key: str,
        bucket: str = "files",
    ):
        """Initialize the storage client.

        Args:
            storage_url: Storage project URL (e.g., https://xxx.supabase.co).
            service_key: Service role key.
            bucket: Storage bucket name.
        """
        self._base_url = storage_url.rstrip("/")
        self._bucket = bucket
        self._storage_url = f"{self._base_url}/storage/v1"
        self._headers = {
            "Authorization": f"Bearer {service_key}",
            "apikey": service_key,
        }

    def public_url(self, key: str) -> str:
        """URL for an object in a public bucket."""
        return f"{self._storage_url}/object/public/{self._bucket}/{quote(key)}"

    def put(self, key: str, data: bytes, content_type: str) -> StoredObject:
        """Upload via POST /object/{bucket}/{key}, overwriting nothing."""
        url = f"{self._storage_url}/object/{self._bucket}/{quote(key)}"

        try:
            with httpx.Client() as client:
                response = client.post(
                    url,
                    headers={**self._headers, "Content-Type": content_type},
                    content=data,
                    timeout=60.0,
                )
        except httpx.HTTPError as e:
            raise StorageError(f"Storage unreachable: {type(e).__name__}") from e

        if response.status_code not in (200, 201):
            raise StorageError(f"Failed to store object: {response.status_code}")

        return StoredObject(key=key, url=self.public_url(key))


class FakeStorageClient(StorageClientBase):
    """Fake blob store for local development and tests.

    Stores objects in memory and provides deterministic behavior for unit tests.
    """

    BASE_URL = "https://fake-storage.test/files"

    def __init__(self):
        self._objects: dict[str, tuple[bytes, str]] = {}  # key -> (content, content_type)

    def put(self, key: str, data: bytes, content_type: str) -> StoredObject:
        """Store the object in memory."""
        self._objects[key] = (data, content_type)
        return StoredObject(key=key, url=f"{self.BASE_URL}/{quote(key)}")

    # Test helper methods

    def get_object(self, key: str) -> bytes | None:
        """Get object content directly (test helper)."""
        if key not in self._objects:
            return None
        return self._objects[key][0]

    def get_content_type(self, key: str) -> str | None:
        """Get the stored content type (test helper)."""
        if key not in self._objects:
            return None
        return self._objects[key][1]

    def keys(self) -> list[str]:
        """All stored keys (test helper)."""
        return list(self._objects)

    def clear(self) -> None:
        """Clear all stored objects (test helper)."""
        self._objects.clear()


def get_storage_client(settings: Settings) -> StorageClientBase:
    """Get the configured blob store.

    Returns:
        StorageClient if STORAGE_URL and STORAGE_SERVICE_KEY are set,
        FakeStorageClient otherwise.
    """
    if settings.storage_url and settings.storage_service_key:
        return StorageClient(
            storage_url=settings.storage_url,
            service_key=settings.storage_service_key,
            bucket=settings.storage_bucket,
        )

    logger.warning("storage_not_configured_using_memory_store")
    return FakeStorageClient()
