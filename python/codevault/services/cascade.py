"""Cascade deletion plans.

Deleting a project or snippet removes every dependent row. Each plan is an
explicit, ordered list of DELETE statements (children first, parent last)
executed inside one transaction, so either all rows go or none do.

Every statement is narrowed by the caller's user_id; a plan run against a
row the caller does not own deletes nothing.
"""

from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy import Delete, delete, select
from sqlalchemy.orm import Session

from codevault.db.models import ChatMessage, FileRecord, LineNote, Project, Snippet
from codevault.db.session import transaction
from codevault.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CascadeStep:
    """One deletion in a cascade plan.

    Attributes:
        table: Table name, for logging.
        build: Builds the DELETE statement from (user_id, parent_id).
    """

    table: str
    build: Callable[[int, int], Delete]


# =============================================================================
# Plans
# =============================================================================


def _project_snippet_ids(user_id: int, project_id: int):
    return select(Snippet.id).where(Snippet.project_id == project_id, Snippet.user_id == user_id)


PROJECT_PLAN: tuple[CascadeStep, ...] = (
    CascadeStep(
        "line_notes",
        lambda user_id, project_id: delete(LineNote).where(
            LineNote.user_id == user_id,
            LineNote.snippet_id.in_(_project_snippet_ids(user_id, project_id)),
        ),
    ),
    CascadeStep(
        "chat_messages",
        lambda user_id, project_id: delete(ChatMessage).where(
            ChatMessage.user_id == user_id,
            ChatMessage.snippet_id.in_(_project_snippet_ids(user_id, project_id)),
        ),
    ),
    CascadeStep(
        "snippets",
        lambda user_id, project_id: delete(Snippet).where(
            Snippet.user_id == user_id, Snippet.project_id == project_id
        ),
    ),
    CascadeStep(
        "files",
        lambda user_id, project_id: delete(FileRecord).where(
            FileRecord.user_id == user_id, FileRecord.project_id == project_id
        ),
    ),
    CascadeStep(
        "projects",
        lambda user_id, project_id: delete(Project).where(
            Project.user_id == user_id, Project.id == project_id
        ),
    ),
)

SNIPPET_PLAN: tuple[CascadeStep, ...] = (
    CascadeStep(
        "line_notes",
        lambda user_id, snippet_id: delete(LineNote).where(
            LineNote.user_id == user_id, LineNote.snippet_id == snippet_id
        ),
    ),
    CascadeStep(
        "chat_messages",
        lambda user_id, snippet_id: delete(ChatMessage).where(
            ChatMessage.user_id == user_id, ChatMessage.snippet_id == snippet_id
        ),
    ),
    CascadeStep(
        "snippets",
        lambda user_id, snippet_id: delete(Snippet).where(
            Snippet.user_id == user_id, Snippet.id == snippet_id
        ),
    ),
)


# =============================================================================
# Execution
# =============================================================================


def run_cascade(
    db: Session, plan: tuple[CascadeStep, ...], user_id: int, parent_id: int
) -> dict[str, int]:
    """Execute a cascade plan in a single transaction.

    Args:
        db: Database session.
        plan: Ordered steps; the parent row must be the last step.
        user_id: The caller; every step is filtered by it.
        parent_id: Id of the project or snippet being deleted.

    Returns:
        Rows deleted per table.

    Raises:
        Re-raises any database error after rolling back every step.
    """
    counts: dict[str, int] = {}
    with transaction(db):
        for step in plan:
            result = db.execute(
                step.build(user_id, parent_id), execution_options={"synchronize_session": False}
            )
            counts[step.table] = result.rowcount
    return counts


def delete_project_cascade(db: Session, user_id: int, project_id: int) -> dict[str, int]:
    """Delete a project and its snippets, their notes and chats, and its files."""
    counts = run_cascade(db, PROJECT_PLAN, user_id, project_id)
    logger.info("project_deleted", project_id=project_id, rows_deleted=counts)
    return counts


def delete_snippet_cascade(db: Session, user_id: int, snippet_id: int) -> dict[str, int]:
    """Delete a snippet together with its line notes and chat messages."""
    counts = run_cascade(db, SNIPPET_PLAN, user_id, snippet_id)
    logger.info("snippet_deleted", snippet_id=snippet_id, rows_deleted=counts)
    return counts
