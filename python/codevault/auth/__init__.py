"""Caller identity: bearer/cookie token verification and the Viewer it yields.

Tests substitute tests/support/mock_verifier.py for the JWKS verifier.
"""

from codevault.auth.middleware import AuthMiddleware, Viewer, get_optional_viewer, get_viewer
from codevault.auth.verifier import JwksVerifier, TokenVerifier

__all__ = [
    "AuthMiddleware",
    "JwksVerifier",
    "TokenVerifier",
    "Viewer",
    "get_optional_viewer",
    "get_viewer",
]
