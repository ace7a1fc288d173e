"""Token minting and small request helpers shared by the test modules."""

import base64
import time
from uuid import uuid4

import jwt

from tests.support.mock_verifier import (
    TEST_AUDIENCE,
    TEST_ISSUER,
    MockJwtVerifier,
    new_private_key_pem,
)

TOKEN_LIFETIME_S = 3600


def mint_test_token(
    open_id: str,
    expires_in: int = TOKEN_LIFETIME_S,
    issuer: str = TEST_ISSUER,
    audience: str = TEST_AUDIENCE,
    signing_key: bytes | None = None,
    **extra_claims,
) -> str:
    """RS256 token for open_id that MockJwtVerifier accepts by default.

    extra_claims land in the payload as given (name, email, ...).
    """
    issued_at = int(time.time())
    payload = {
        "sub": open_id,
        "iss": issuer,
        "aud": audience,
        "iat": issued_at,
        "exp": issued_at + expires_in,
        **extra_claims,
    }
    key = signing_key or MockJwtVerifier.get_private_key()
    return jwt.encode(payload, key, algorithm="RS256")


def mint_expired_token(open_id: str) -> str:
    # an hour past expiry, well beyond the verifier's leeway
    return mint_test_token(open_id, expires_in=-TOKEN_LIFETIME_S)


def mint_token_with_bad_signature(open_id: str) -> str:
    return mint_test_token(open_id, signing_key=new_private_key_pem())


def auth_headers(open_id: str, **token_kwargs) -> dict[str, str]:
    return {"Authorization": f"Bearer {mint_test_token(open_id, **token_kwargs)}"}


def create_test_open_id() -> str:
    return f"test-{uuid4().hex[:16]}"


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")
