"""Token verification.

- TokenVerifier: what AuthMiddleware needs (token in, claims out)
- decode_claims: signature and claim validation shared by every verifier
- JwksVerifier: validates against the identity provider's published keys

Test-only verifiers live in tests/support/mock_verifier.py.
"""

import logging
import threading
from typing import Any, Protocol

import jwt
from jwt import PyJWKClient
from jwt.exceptions import (
    DecodeError,
    ExpiredSignatureError,
    InvalidAudienceError,
    InvalidIssuerError,
    InvalidSignatureError,
    InvalidTokenError,
    PyJWKClientError,
)

from codevault.errors import ApiError, ApiErrorCode

logger = logging.getLogger(__name__)

ALGORITHMS = ["RS256", "ES256"]
CLOCK_SKEW_SECONDS = 60

# users.open_id is VARCHAR(64)
MAX_SUBJECT_LENGTH = 64

# First match wins; subclasses come before their bases
_REJECTIONS: list[tuple[type[InvalidTokenError], str, str]] = [
    (ExpiredSignatureError, "expired_token", "Token expired"),
    (InvalidSignatureError, "invalid_signature", "Invalid token signature"),
    (InvalidIssuerError, "invalid_issuer", "Invalid token issuer"),
    (InvalidAudienceError, "invalid_audience", "Invalid token audience"),
    (DecodeError, "decode_error", "Invalid token format"),
    (InvalidTokenError, "invalid_token", "Invalid token"),
]


class TokenVerifier(Protocol):
    def verify(self, token: str) -> dict[str, Any]:
        """Return the token's claims.

        Raises:
            ApiError(E_UNAUTHENTICATED): The token is not acceptable.
            ApiError(E_AUTH_UNAVAILABLE): Keys could not be fetched.
        """
        ...


def _reject(reason: str, message: str) -> ApiError:
    logger.warning("auth_failure", extra={"reason": reason})
    return ApiError(ApiErrorCode.E_UNAUTHENTICATED, message)


def decode_claims(token: str, key: Any, issuer: str, audiences: list[str]) -> dict[str, Any]:
    """Validate token against key and return its claims.

    Checks the signature, exp (60s leeway), iss, aud (any of audiences) and
    sub. sub is the caller's open_id: a non-blank string of at most 64
    characters.

    Raises:
        ApiError(E_UNAUTHENTICATED): On any failed check.
    """
    try:
        claims = jwt.decode(
            token,
            key,
            algorithms=ALGORITHMS,
            audience=audiences,
            issuer=issuer,
            leeway=CLOCK_SKEW_SECONDS,
            options={"require": ["exp", "iss", "sub"]},
        )
    except InvalidTokenError as e:
        reason, message = next((r, m) for exc, r, m in _REJECTIONS if isinstance(e, exc))
        raise _reject(reason, message) from e

    sub = claims.get("sub")
    if not isinstance(sub, str) or not sub.strip():
        raise _reject("missing_sub", "Invalid token: missing sub")
    if len(sub) > MAX_SUBJECT_LENGTH:
        raise _reject("invalid_sub", "Invalid token: sub too long")
    return claims


class JwksVerifier:
    """Verifier backed by a JWKS endpoint.

    Keys are cached for cache_ttl seconds. A token whose kid is not in the
    cached set triggers one refetch before it is rejected, so key rotation
    does not lock users out until the cache expires.
    """

    def __init__(self, jwks_url: str, issuer: str, audiences: list[str], cache_ttl: int = 3600):
        self.jwks_url = jwks_url
        self.issuer = issuer.rstrip("/")
        self.audiences = audiences
        self.cache_ttl = cache_ttl
        self._jwks_client: PyJWKClient | None = None
        self._lock = threading.Lock()

    def _get_jwks_client(self) -> PyJWKClient:
        with self._lock:
            if self._jwks_client is None:
                self._jwks_client = PyJWKClient(
                    self.jwks_url, cache_keys=True, lifespan=self.cache_ttl
                )
            return self._jwks_client

    def _refresh_jwks(self) -> PyJWKClient:
        with self._lock:
            self._jwks_client = None
        return self._get_jwks_client()

    def verify(self, token: str) -> dict[str, Any]:
        try:
            signing_key = self._get_signing_key(token)
        except PyJWKClientError as e:
            logger.warning("auth_failure", extra={"reason": "jwks_unavailable", "error": str(e)})
            raise ApiError(
                ApiErrorCode.E_AUTH_UNAVAILABLE, "Authentication service unavailable"
            ) from e
        except DecodeError as e:
            raise _reject("decode_error", "Invalid token format") from e

        return decode_claims(token, signing_key.key, self.issuer, self.audiences)

    def _get_signing_key(self, token: str) -> Any:
        """Signing key for token's kid.

        Raises:
            PyJWKClientError: The key set could not be fetched.
            ApiError(E_UNAUTHENTICATED): kid still unknown after a refetch.
        """
        try:
            return self._get_jwks_client().get_signing_key_from_jwt(token)
        except PyJWKClientError as e:
            if not _is_kid_miss(e):
                raise

        logger.info("jwks_refresh", extra={"reason": "kid_miss"})
        try:
            return self._refresh_jwks().get_signing_key_from_jwt(token)
        except PyJWKClientError as e:
            if not _is_kid_miss(e):
                raise
            raise _reject("kid_not_found", "Invalid token: signing key not found") from e


def _is_kid_miss(error: PyJWKClientError) -> bool:
    text = str(error)
    return "Unable to find" in text or "kid" in text.lower()
