"""Request authentication.

AuthMiddleware resolves the caller for every non-public request:

1. Public paths pass straight through
2. Behind the web tier (staging/prod) the internal secret header must match
3. The token comes from the bearer header, else from the session cookie
4. The verifier validates it; the bootstrap callback maps its claims to a
   local user
5. request.state.viewer is set for get_viewer / get_optional_viewer

On optional-auth paths any failure in steps 3-4 leaves the request
anonymous (viewer None) instead of rejecting it.
"""

import hmac
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from fastapi import Depends, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

from codevault.auth.verifier import TokenVerifier
from codevault.errors import ApiError, ApiErrorCode
from codevault.logging import set_request_context
from codevault.responses import error_json

logger = logging.getLogger(__name__)

INTERNAL_HEADER = "x-codevault-internal"

PUBLIC_PATHS = frozenset({"/health", "/docs", "/redoc", "/openapi.json"})
OPTIONAL_AUTH_PATHS = frozenset({"/auth/me", "/auth/logout"})


@dataclass
class Viewer:
    """The authenticated caller.

    Attributes:
        user_id: Local user id (users.id); every query is scoped by it.
        open_id: External identity (JWT sub claim).
        role: "user" or "admin".
    """

    user_id: int
    open_id: str
    role: str = "user"
    name: str | None = None
    email: str | None = None


class AuthFailure(Exception):
    """Authentication failed; carries the status and code to answer with."""

    def __init__(self, status_code: int, code: ApiErrorCode, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message

    def to_response(self) -> Response:
        return error_json(self.status_code, self.code, self.message)


class AuthMiddleware(BaseHTTPMiddleware):
    """Verifies the internal header and the caller's token on every request."""

    def __init__(
        self,
        app: ASGIApp,
        verifier: TokenVerifier,
        requires_internal_header: bool = False,
        internal_secret: str | None = None,
        bootstrap_callback: Callable[[dict[str, Any]], Viewer] | None = None,
        session_cookie_name: str | None = None,
    ):
        """
        Args:
            app: The ASGI application.
            verifier: Validates tokens and returns their claims.
            requires_internal_header: Enforce the X-CodeVault-Internal header.
            internal_secret: Expected value of that header.
            bootstrap_callback: claims -> Viewer; creates the local user on
                first sign-in. Without one the viewer has user_id 0.
            session_cookie_name: Cookie read when no Authorization header is sent.
        """
        super().__init__(app)
        self.verifier = verifier
        self.requires_internal_header = requires_internal_header
        self.internal_secret = internal_secret
        self.bootstrap_callback = bootstrap_callback
        self.session_cookie_name = session_cookie_name

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        if path in PUBLIC_PATHS:
            return await call_next(request)

        try:
            if self.requires_internal_header:
                self._check_internal_header(request)
        except AuthFailure as failure:
            return failure.to_response()

        try:
            request.state.viewer = self._resolve_viewer(request)
            set_request_context(user_id=str(request.state.viewer.user_id))
        except AuthFailure as failure:
            if path not in OPTIONAL_AUTH_PATHS:
                return failure.to_response()
            request.state.viewer = None

        return await call_next(request)

    def _check_internal_header(self, request: Request) -> None:
        supplied = request.headers.get(INTERNAL_HEADER)
        if not self.internal_secret:
            logger.error("internal secret not configured but header required")
            raise AuthFailure(500, ApiErrorCode.E_INTERNAL, "Internal server error")

        if supplied is None or not hmac.compare_digest(
            supplied.encode(), self.internal_secret.encode()
        ):
            reason = "internal_header_missing" if supplied is None else "internal_header_mismatch"
            logger.warning(
                "auth_failure", extra={"reason": reason, "request_path": request.url.path}
            )
            raise AuthFailure(403, ApiErrorCode.E_INTERNAL_ONLY, "Internal API access required")

    def _resolve_viewer(self, request: Request) -> Viewer:
        token = self._read_token(request)

        try:
            claims = self.verifier.verify(token)
        except ApiError as e:
            raise AuthFailure(e.status_code, e.code, e.message) from e

        if self.bootstrap_callback is None:
            return Viewer(user_id=0, open_id=claims["sub"])

        try:
            return self.bootstrap_callback(claims)
        except Exception as e:
            logger.exception("user bootstrap failed for subject %s", claims.get("sub"))
            raise AuthFailure(500, ApiErrorCode.E_INTERNAL, "Internal server error") from e

    def _read_token(self, request: Request) -> str:
        header = request.headers.get("authorization")

        if header is None:
            cookie = (
                request.cookies.get(self.session_cookie_name) if self.session_cookie_name else None
            )
            if cookie:
                return cookie
            logger.warning(
                "auth_failure",
                extra={"reason": "missing_credentials", "request_path": request.url.path},
            )
            raise AuthFailure(401, ApiErrorCode.E_UNAUTHENTICATED, "Authentication required")

        scheme, _, credentials = header.partition(" ")
        token = credentials.strip() if scheme.lower() == "bearer" else ""
        if not token:
            logger.warning(
                "auth_failure",
                extra={"reason": "invalid_header_format", "request_path": request.url.path},
            )
            raise AuthFailure(
                401, ApiErrorCode.E_UNAUTHENTICATED, "Invalid authorization header format"
            )
        return token


def get_viewer(request: Request) -> Viewer:
    """Dependency for routes that need a signed-in caller.

    Raises:
        ApiError(E_UNAUTHENTICATED): The request is anonymous.
    """
    viewer = getattr(request.state, "viewer", None)
    if viewer is None:
        raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Authentication required")
    return viewer


def get_optional_viewer(request: Request) -> Viewer | None:
    return getattr(request.state, "viewer", None)


ViewerDep = Depends(get_viewer)
