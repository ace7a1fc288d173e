"""Structured logging built on structlog.

Every event is one JSON object carrying, when known:
- request_id, path, method: bound by the request-id middleware
- user_id: bound once the viewer is resolved
- level, logger, timestamp (UTC, ISO8601)

Request context lives in structlog's contextvars store, so it follows the
request through sync route handlers (threadpool) and async ones alike.

Usage:
    from codevault.logging import get_logger

    logger = get_logger(__name__)
    logger.info("snippet_created", snippet_id=7)
"""

import logging
import sys

import structlog
from structlog.contextvars import (
    bind_contextvars,
    clear_contextvars,
    get_contextvars,
    merge_contextvars,
)

# Third-party loggers that are chatty at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "sqlalchemy.engine")

_PRE_CHAIN: list = [
    merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
]


def configure_logging(json_format: bool = True, level: int | str = logging.INFO) -> None:
    """Route structlog and stdlib logging through one renderer on stdout.

    Safe to call more than once; the root handler is replaced each time.

    Args:
        json_format: JSON lines when True, the colored dev console otherwise.
        level: Root log level.
    """
    renderer = (
        structlog.processors.JSONRenderer()
        if json_format
        else structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    )

    structlog.configure(
        processors=[*_PRE_CHAIN, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # uvicorn, sqlalchemy and alembic records get the same shape
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_PRE_CHAIN,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def set_request_context(
    request_id: str | None = None,
    user_id: str | None = None,
    path: str | None = None,
    method: str | None = None,
) -> None:
    """Bind request fields for every event logged until clear_request_context().

    None values are skipped, so later calls can add user_id without
    repeating the rest.
    """
    fields = {"request_id": request_id, "user_id": user_id, "path": path, "method": method}
    bind_contextvars(**{k: v for k, v in fields.items() if v is not None})


def clear_request_context() -> None:
    clear_contextvars()


def get_request_id() -> str | None:
    """The request id bound for the current request, if any."""
    return get_contextvars().get("request_id")
