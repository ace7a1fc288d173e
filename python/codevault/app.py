"""Application factory.

create_app() wires exception handlers, routes and auth. The request-id
middleware is added by the launcher (apps/api/main.py) after create_app
returns, which makes it the outermost layer: auth failures carry a request
id too. Per request the order is

    RequestIDMiddleware -> AuthMiddleware -> JSON body guard -> route

Handles the routes depend on live on app.state: session_factory,
storage_client and completion_service. Tests inject fakes through
create_app; anything not injected is built in the lifespan from settings.
"""

import json
from contextlib import asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.orm import Session, sessionmaker
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from codevault.api.routes import create_api_router
from codevault.auth.middleware import AuthMiddleware, Viewer
from codevault.auth.verifier import JwksVerifier, TokenVerifier
from codevault.config import get_settings
from codevault.db.engine import create_db_engine
from codevault.db.session import create_session_factory
from codevault.errors import ApiError, ApiErrorCode
from codevault.logging import configure_logging, get_logger
from codevault.responses import (
    api_error_handler,
    error_json,
    http_exception_handler,
    store_unavailable_handler,
    unhandled_exception_handler,
)
from codevault.services.bootstrap import ensure_user
from codevault.services.llm import CompletionService, LLMCompletionService, LLMRouter
from codevault.storage import StorageClientBase, get_storage_client

configure_logging()

logger = get_logger(__name__)

JSON_BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


def create_bootstrap_callback(app: FastAPI):
    """claims -> Viewer, upserting the local user in a short-lived session."""

    def bootstrap(claims: dict[str, Any]) -> Viewer:
        with app.state.session_factory() as db:
            user = ensure_user(
                db,
                claims["sub"],
                name=claims.get("name"),
                email=claims.get("email"),
                login_method=claims.get("login_method") or claims.get("amr_method"),
            )
        return Viewer(
            user_id=user.user_id,
            open_id=claims["sub"],
            role=user.role,
            name=user.name,
            email=user.email,
        )

    return bootstrap


def create_token_verifier() -> JwksVerifier:
    settings = get_settings()
    return JwksVerifier(
        jwks_url=settings.jwks_url,  # type: ignore[arg-type]
        issuer=settings.normalized_issuer,  # type: ignore[arg-type]
        audiences=settings.audience_list,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build whatever create_app was not given; tear down what we built."""
    settings = get_settings()

    owned_engine = None
    if app.state.session_factory is None:
        owned_engine = create_db_engine(settings.database_url)
        app.state.session_factory = create_session_factory(owned_engine)
        logger.info("db_engine_created", dialect=owned_engine.dialect.name)

    app.state.httpx_client = httpx.AsyncClient(
        timeout=httpx.Timeout(60.0, connect=10.0),
        limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
    )

    if app.state.completion_service is None:
        router = LLMRouter(
            app.state.httpx_client,
            enable_openai=settings.enable_openai,
            enable_anthropic=settings.enable_anthropic,
        )
        app.state.completion_service = LLMCompletionService.from_settings(router, settings)
        logger.info(
            "completion_service_initialized",
            provider=settings.llm_provider,
            model_name=settings.llm_model,
        )

    if app.state.storage_client is None:
        app.state.storage_client = get_storage_client(settings)

    try:
        yield
    finally:
        await app.state.httpx_client.aclose()
        if owned_engine is not None:
            owned_engine.dispose()
        logger.info("shutdown_complete")


async def request_validation_handler(request: Request, exc: RequestValidationError) -> Response:
    """Body, path and query validation failures are 400 E_INVALID_REQUEST."""
    errors = exc.errors()
    location = ".".join(str(part) for part in errors[0]["loc"]) if errors else "request"
    return error_json(400, ApiErrorCode.E_INVALID_REQUEST, f"Invalid {location}")


async def reject_malformed_json(request: Request, call_next) -> Response:
    """Answer undecodable JSON bodies before routing."""
    if request.method in JSON_BODY_METHODS and "application/json" in request.headers.get(
        "content-type", ""
    ):
        body = await request.body()
        if body:
            try:
                json.loads(body)
            except json.JSONDecodeError:
                return error_json(400, ApiErrorCode.E_INVALID_REQUEST, "Malformed JSON body")
    return await call_next(request)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(OperationalError, store_unavailable_handler)
    app.add_exception_handler(InterfaceError, store_unavailable_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


def create_app(
    skip_auth_middleware: bool = False,
    token_verifier: TokenVerifier | None = None,
    session_factory: sessionmaker[Session] | None = None,
    storage_client: StorageClientBase | None = None,
    completion_service: CompletionService | None = None,
) -> FastAPI:
    """Create the CodeVault API application.

    Args:
        skip_auth_middleware: Leave auth out (tests add their own).
        token_verifier: Verifier to use instead of the JWKS verifier.
        session_factory: Session factory; built from DATABASE_URL if None.
        storage_client: Blob store; built from settings if None.
        completion_service: Completion service; built from settings if None.
    """
    settings = get_settings()

    app = FastAPI(
        title="CodeVault API",
        description="Code snippets with line notes, file uploads and an AI assistant",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.session_factory = session_factory
    app.state.storage_client = storage_client
    app.state.completion_service = completion_service

    register_exception_handlers(app)
    app.middleware("http")(reject_malformed_json)
    app.include_router(create_api_router())

    if skip_auth_middleware:
        return app

    app.add_middleware(
        AuthMiddleware,
        verifier=token_verifier or create_token_verifier(),
        requires_internal_header=settings.requires_internal_header,
        internal_secret=settings.codevault_internal_secret,
        bootstrap_callback=create_bootstrap_callback(app),
        session_cookie_name=settings.session_cookie_name,
    )
    logger.info(
        "auth_middleware_enabled",
        env=settings.codevault_env.value,
        internal_header_required=settings.requires_internal_header,
    )
    return app
