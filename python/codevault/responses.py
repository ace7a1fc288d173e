"""Response envelopes and the exception handlers that produce them.

Success bodies are {"data": ...}. Error bodies are
{"error": {"code", "message", "request_id"}}; request_id is filled in from
the logging context whenever the request-id middleware has bound one.
"""

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError
from starlette.exceptions import HTTPException as StarletteHTTPException

from codevault.errors import ApiError, ApiErrorCode
from codevault.logging import get_logger, get_request_id

logger = get_logger(__name__)

# Framework-raised HTTP errors (unknown route, wrong method) in our vocabulary
HTTP_STATUS_TO_CODE: dict[int, ApiErrorCode] = {
    400: ApiErrorCode.E_INVALID_REQUEST,
    401: ApiErrorCode.E_UNAUTHENTICATED,
    404: ApiErrorCode.E_NOT_FOUND,
    405: ApiErrorCode.E_INVALID_REQUEST,
    422: ApiErrorCode.E_INVALID_REQUEST,
}


def success_response(data: Any) -> dict[str, Any]:
    return {"data": data}


def error_response(
    code: ApiErrorCode, message: str, request_id: str | None = None
) -> dict[str, Any]:
    """Build the error envelope.

    Args:
        code: Error code; serialized as its string value.
        message: Client-safe message.
        request_id: Correlation id; defaults to the current request's.
    """
    body: dict[str, Any] = {"code": code.value, "message": message}
    request_id = request_id or get_request_id()
    if request_id:
        body["request_id"] = request_id
    return {"error": body}


def error_json(status_code: int, code: ApiErrorCode, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=error_response(code, message))


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return error_json(exc.status_code, exc.code, exc.message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = HTTP_STATUS_TO_CODE.get(exc.status_code, ApiErrorCode.E_INTERNAL)
    return error_json(exc.status_code, code, str(exc.detail or "An error occurred"))


async def store_unavailable_handler(request: Request, exc: DBAPIError) -> JSONResponse:
    """503 E_STORE_UNAVAILABLE for lost or refused database connections.

    Only OperationalError and InterfaceError are routed here; integrity and
    programming errors stay E_INTERNAL.
    """
    logger.error("store_unavailable", error_type=type(exc).__name__)
    return error_json(503, ApiErrorCode.E_STORE_UNAVAILABLE, "Data store unavailable")


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """500 E_INTERNAL; the traceback is logged, never returned."""
    logger.exception("unhandled_exception", error_type=type(exc).__name__)
    return error_json(500, ApiErrorCode.E_INTERNAL, "Internal server error")
