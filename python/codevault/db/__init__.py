"""Database module for CodeVault.

Provides engine creation, session management, transaction helpers, and ORM models.
"""

from codevault.db.engine import create_db_engine
from codevault.db.models import (
    Base,
    ChatMessage,
    ChatRole,
    FileRecord,
    LineNote,
    Project,
    Snippet,
    User,
    UserRole,
)
from codevault.db.session import create_session_factory, get_db, transaction

__all__ = [
    # Engine and session
    "create_db_engine",
    "create_session_factory",
    "get_db",
    "transaction",
    # Base
    "Base",
    # Enums
    "UserRole",
    "ChatRole",
    # Models
    "User",
    "Project",
    "Snippet",
    "LineNote",
    "FileRecord",
    "ChatMessage",
]
