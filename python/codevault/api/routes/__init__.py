"""API route definitions.

Uses a factory pattern to avoid import-time settings loading.
This allows tests to import modules without requiring all environment
variables to be configured upfront.
"""

from fastapi import APIRouter

from codevault.api.routes.ai import router as ai_router
from codevault.api.routes.auth import router as auth_router
from codevault.api.routes.files import router as files_router
from codevault.api.routes.health import router as health_router
from codevault.api.routes.projects import router as projects_router
from codevault.api.routes.snippets import router as snippets_router


def create_api_router() -> APIRouter:
    """Create and configure the API router.

    Returns:
        Configured APIRouter with all routes registered.
    """
    api_router = APIRouter()
    api_router.include_router(health_router, tags=["health"])
    api_router.include_router(auth_router, tags=["auth"])
    api_router.include_router(projects_router, tags=["projects"])
    api_router.include_router(snippets_router, tags=["snippets"])
    api_router.include_router(files_router, tags=["files"])
    api_router.include_router(ai_router, tags=["ai"])
    return api_router


__all__ = ["create_api_router"]
