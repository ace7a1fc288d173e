"""Tests for the blob store client and key utilities.

Tests cover:
- Key building with test prefix isolation
- Filename sanitization
- StorageClient HTTP behavior (mocked with respx)
- FakeStorageClient behavior
- get_storage_client selection
"""

import httpx
import pytest
import respx

from codevault.config import Settings
from codevault.storage import (
    FakeStorageClient,
    StorageClient,
    StorageError,
    build_file_key,
    get_storage_client,
    sanitize_filename,
)

STORAGE_URL = "https://project.supabase.test"


class TestKeyBuilding:
    """Tests for object key building."""

    def test_build_file_key_production(self, monkeypatch):
        """Production keys have no test prefix."""
        monkeypatch.delenv("STORAGE_TEST_PREFIX", raising=False)

        key = build_file_key(42, "diagram.png")

        assert key.startswith("42-files/")
        assert key.endswith("-diagram.png")

    def test_build_file_key_test_prefix(self, monkeypatch):
        """Test prefix is applied when STORAGE_TEST_PREFIX is set."""
        monkeypatch.setenv("STORAGE_TEST_PREFIX", "test_runs/run-123")

        key = build_file_key(42, "diagram.png")

        assert key.startswith("test_runs/run-123/42-files/")

    def test_keys_are_unique(self):
        assert build_file_key(1, "a.png") != build_file_key(1, "a.png")

    @pytest.mark.parametrize(
        ("filename", "expected"),
        [
            ("diagram.png", "diagram.png"),
            ("../../etc/passwd", "_.._etc_passwd"),
            ("a\\b.pdf", "a_b.pdf"),
            ("line\nbreak.png", "line_break.png"),
            (".hidden", "hidden"),
            ("...", "file"),
        ],
    )
    def test_sanitize_filename(self, filename, expected):
        assert sanitize_filename(filename) == expected


class TestStorageClient:
    """StorageClient against a mocked storage API."""

    @pytest.fixture
    def client(self):
        return StorageClient(storage_url=STORAGE_URL, service_key="service-key", bucket="files")

    @respx.mock
    def test_put_success(self, client):
        route = respx.post(f"{STORAGE_URL}/storage/v1/object/files/7-files/abc-x.png").respond(
            200, json={"Key": "files/7-files/abc-x.png"}
        )

        stored = client.put("7-files/abc-x.png", b"bytes", "image/png")

        assert stored.key == "7-files/abc-x.png"
        assert stored.url == f"{STORAGE_URL}/storage/v1/object/public/files/7-files/abc-x.png"
        request = route.calls.last.request
        assert request.headers["content-type"] == "image/png"
        assert request.headers["authorization"] == "Bearer service-key"
        assert request.content == b"bytes"

    @respx.mock
    def test_put_rejected(self, client):
        respx.post(f"{STORAGE_URL}/storage/v1/object/files/k").respond(400)

        with pytest.raises(StorageError):
            client.put("k", b"bytes", "image/png")

    @respx.mock
    def test_put_unreachable(self, client):
        respx.post(f"{STORAGE_URL}/storage/v1/object/files/k").mock(
            side_effect=httpx.ConnectError("refused")
        )

        with pytest.raises(StorageError):
            client.put("k", b"bytes", "image/png")


class TestFakeStorageClient:
    """Tests for FakeStorageClient."""

    def test_put_and_get(self):
        storage = FakeStorageClient()

        stored = storage.put("1-files/a.png", b"data", "image/png")

        assert stored.url == f"{FakeStorageClient.BASE_URL}/1-files/a.png"
        assert storage.get_object("1-files/a.png") == b"data"
        assert storage.get_content_type("1-files/a.png") == "image/png"

    def test_clear(self):
        storage = FakeStorageClient()
        storage.put("k", b"data", "image/png")

        storage.clear()

        assert storage.keys() == []
        assert storage.get_object("k") is None


class TestGetStorageClient:
    """Selection between the HTTP and in-memory clients."""

    def _settings(self, **overrides) -> Settings:
        values = {
            "DATABASE_URL": "sqlite://",
            "JWKS_URL": "http://localhost/jwks.json",
            "JWT_ISSUER": "test-issuer",
            "JWT_AUDIENCES": "test-audience",
        }
        values.update(overrides)
        return Settings(**values)

    def test_configured_returns_http_client(self):
        settings = self._settings(STORAGE_URL=STORAGE_URL, STORAGE_SERVICE_KEY="key")

        assert isinstance(get_storage_client(settings), StorageClient)

    def test_unconfigured_returns_fake(self):
        assert isinstance(get_storage_client(self._settings()), FakeStorageClient)
