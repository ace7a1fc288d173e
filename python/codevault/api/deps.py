"""FastAPI dependencies for route handlers.

Long-lived handles (session factory, blob store, completion service) are
created in the application lifespan, or injected by tests, and stored on
app.state. These dependencies hand them to routes.
"""

from fastapi import Request

from codevault.db.session import get_db, get_session_factory
from codevault.services.llm import CompletionService
from codevault.storage import StorageClientBase

__all__ = ["get_completion_service", "get_db", "get_session_factory", "get_storage"]


def get_storage(request: Request) -> StorageClientBase:
    """Get the shared blob store client from app state."""
    return request.app.state.storage_client


def get_completion_service(request: Request) -> CompletionService:
    """Get the shared completion service from app state."""
    return request.app.state.completion_service
