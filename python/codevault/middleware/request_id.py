"""Request correlation.

Every response carries X-Request-ID: the caller's own id when it is
acceptable, otherwise a fresh UUID4. The id is bound into the structlog
context for the life of the request, and one access line is logged on the
way out. Installed last so it wraps everything, auth included.
"""

import re
import time
import uuid

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from codevault.logging import clear_request_context, get_logger, set_request_context

REQUEST_ID_HEADER = "X-Request-ID"

# at most 128 ASCII characters; the class excludes anything multi-byte
_ACCEPTABLE_ID = re.compile(r"[A-Za-z0-9._-]{1,128}")
_UUID_LENGTH = 36

logger = get_logger(__name__)


def resolve_request_id(incoming: str | None) -> str:
    """Caller's id if acceptable (UUIDs lowercased), else a new UUID4."""
    if not incoming or not _ACCEPTABLE_ID.fullmatch(incoming):
        return str(uuid.uuid4())
    if len(incoming) == _UUID_LENGTH:
        try:
            return str(uuid.UUID(incoming))
        except ValueError:
            pass
    return incoming


class RequestIDMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, log_requests: bool = True):
        super().__init__(app)
        self.log_requests = log_requests

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.monotonic()
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        set_request_context(request_id, path=request.url.path, method=request.method)

        try:
            response = await call_next(request)
        except Exception:
            logger.exception("request_failed")
            raise
        else:
            response.headers[REQUEST_ID_HEADER] = request_id
            if self.log_requests:
                logger.info(
                    "request_completed",
                    status_code=response.status_code,
                    duration_ms=round((time.monotonic() - started) * 1000, 2),
                )
            return response
        finally:
            clear_request_context()


def add_request_id_middleware(app: FastAPI, log_requests: bool = True) -> None:
    """Must be called after create_app so this middleware is outermost."""
    app.add_middleware(RequestIDMiddleware, log_requests=log_requests)
