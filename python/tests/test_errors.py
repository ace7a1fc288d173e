"""Error envelope, code-to-status mapping and the app's exception handlers."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError

from codevault.app import register_exception_handlers
from codevault.errors import (
    ERROR_CODE_TO_STATUS,
    ApiError,
    ApiErrorCode,
    InvalidRequestError,
    NotFoundError,
    UpstreamServiceError,
)
from codevault.responses import error_response, success_response
from tests.helpers import auth_headers, create_test_open_id


def test_envelopes():
    assert success_response({"id": 1}) == {"data": {"id": 1}}
    assert success_response(None) == {"data": None}

    body = error_response(ApiErrorCode.E_SNIPPET_NOT_FOUND, "Snippet not found", "req-1")
    assert body == {
        "error": {
            "code": "E_SNIPPET_NOT_FOUND",
            "message": "Snippet not found",
            "request_id": "req-1",
        }
    }
    assert type(body["error"]["code"]) is str


def test_request_id_omitted_outside_a_request():
    assert "request_id" not in error_response(ApiErrorCode.E_INTERNAL, "boom")["error"]


def test_every_code_has_a_status():
    assert set(ERROR_CODE_TO_STATUS) == set(ApiErrorCode)


@pytest.mark.parametrize(
    "code,status",
    [
        (ApiErrorCode.E_INVALID_REQUEST, 400),
        (ApiErrorCode.E_FILE_TOO_LARGE, 400),
        (ApiErrorCode.E_INVALID_FILE_TYPE, 400),
        (ApiErrorCode.E_UNAUTHENTICATED, 401),
        (ApiErrorCode.E_INTERNAL_ONLY, 403),
        (ApiErrorCode.E_PROJECT_NOT_FOUND, 404),
        (ApiErrorCode.E_SNIPPET_NOT_FOUND, 404),
        (ApiErrorCode.E_INTERNAL, 500),
        (ApiErrorCode.E_STORAGE_ERROR, 502),
        (ApiErrorCode.E_UPSTREAM_FAILURE, 502),
        (ApiErrorCode.E_STORE_UNAVAILABLE, 503),
        (ApiErrorCode.E_AUTH_UNAVAILABLE, 503),
    ],
)
def test_status_for_code(code, status):
    assert ApiError(code, "x").status_code == status


@pytest.mark.parametrize(
    "error,code,status",
    [
        (NotFoundError(), ApiErrorCode.E_NOT_FOUND, 404),
        (InvalidRequestError(), ApiErrorCode.E_INVALID_REQUEST, 400),
        (UpstreamServiceError(), ApiErrorCode.E_UPSTREAM_FAILURE, 502),
    ],
)
def test_error_subclass_defaults(error, code, status):
    assert (error.code, error.status_code) == (code, status)


class TestRejectedRequests:
    def _headers(self, **extra):
        return {**auth_headers(create_test_open_id()), **extra}

    def test_malformed_json(self, client: TestClient):
        response = client.post(
            "/projects",
            content="{invalid json",
            headers=self._headers(**{"content-type": "application/json"}),
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "E_INVALID_REQUEST"

    def test_non_integer_id(self, client: TestClient):
        response = client.get("/projects/abc", headers=self._headers())

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "E_INVALID_REQUEST"

    def test_unknown_route(self, client: TestClient):
        response = client.get("/nope", headers=self._headers())

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "E_NOT_FOUND"


def _crashing_client(exc: Exception) -> TestClient:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/crash")
    async def crash():
        raise exc

    return TestClient(app, raise_server_exceptions=False)


@pytest.mark.parametrize(
    "exc,status,code",
    [
        (RuntimeError("secret detail"), 500, "E_INTERNAL"),
        (IntegrityError("INSERT", {}, Exception("duplicate key")), 500, "E_INTERNAL"),
        (OperationalError("SELECT 1", {}, Exception("refused")), 503, "E_STORE_UNAVAILABLE"),
        (InterfaceError("SELECT 1", {}, Exception("closed")), 503, "E_STORE_UNAVAILABLE"),
        (ApiError(ApiErrorCode.E_STORAGE_ERROR, "Upload failed"), 502, "E_STORAGE_ERROR"),
    ],
)
def test_exception_handlers(exc, status, code):
    response = _crashing_client(exc).get("/crash")

    assert response.status_code == status
    assert response.json()["error"]["code"] == code
    assert "secret detail" not in response.text
    assert "duplicate key" not in response.text
