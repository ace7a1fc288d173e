"""ASGI middleware installed by the launcher."""

from codevault.middleware.request_id import (
    REQUEST_ID_HEADER,
    RequestIDMiddleware,
    add_request_id_middleware,
)

__all__ = ["RequestIDMiddleware", "REQUEST_ID_HEADER", "add_request_id_middleware"]
