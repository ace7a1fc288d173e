"""Snippet service layer.

All operations are scoped to the calling user. Reads of missing or foreign
snippets return None, updates and deletes of them are no-ops. Attaching a
snippet to a project requires the project to be owned by the same user.

Search is a case-insensitive substring match over title, code and
description; LIKE wildcards in the query are matched literally.
"""

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session

from codevault.config import DEFAULT_LANGUAGE
from codevault.db.models import Snippet, utcnow
from codevault.db.session import transaction
from codevault.errors import ApiErrorCode, InvalidRequestError, NotFoundError
from codevault.logging import get_logger
from codevault.schemas.common import CreatedOut
from codevault.schemas.snippet import CreateSnippetRequest, SnippetOut, UpdateSnippetRequest
from codevault.services.cascade import delete_snippet_cascade
from codevault.services.projects import require_owned_project

logger = get_logger(__name__)


# =============================================================================
# Shared Helpers
# =============================================================================


def get_owned_snippet(db: Session, viewer_id: int, snippet_id: int) -> Snippet | None:
    """Load a snippet owned by viewer_id, or None."""
    return db.scalar(select(Snippet).where(Snippet.id == snippet_id, Snippet.user_id == viewer_id))


def require_owned_snippet(db: Session, viewer_id: int, snippet_id: int) -> Snippet:
    """Load a snippet that a note or chat message is about to reference.

    Raises:
        NotFoundError(E_SNIPPET_NOT_FOUND): Snippet doesn't exist or isn't owned.
    """
    snippet = get_owned_snippet(db, viewer_id, snippet_id)
    if snippet is None:
        raise NotFoundError(ApiErrorCode.E_SNIPPET_NOT_FOUND, "Snippet not found")
    return snippet


def _recent_first(stmt):
    return stmt.order_by(Snippet.updated_at.desc(), Snippet.id.desc())


# =============================================================================
# Service Functions (One per Route)
# =============================================================================


def list_snippets(db: Session, viewer_id: int, project_id: int | None = None) -> list[SnippetOut]:
    """List the viewer's snippets, optionally within one project."""
    stmt = select(Snippet).where(Snippet.user_id == viewer_id)
    if project_id is not None:
        stmt = stmt.where(Snippet.project_id == project_id)
    rows = db.scalars(_recent_first(stmt)).all()
    return [SnippetOut.model_validate(s) for s in rows]


def get_snippet(db: Session, viewer_id: int, snippet_id: int) -> SnippetOut | None:
    """Get one snippet, or None if it doesn't exist or isn't owned."""
    snippet = get_owned_snippet(db, viewer_id, snippet_id)
    if snippet is None:
        return None
    return SnippetOut.model_validate(snippet)


def create_snippet(db: Session, viewer_id: int, req: CreateSnippetRequest) -> CreatedOut:
    """Create a snippet. language defaults to javascript, is_favorite to False.

    Raises:
        NotFoundError(E_PROJECT_NOT_FOUND): project_id names a project the viewer can't see.
    """
    if req.project_id is not None:
        require_owned_project(db, viewer_id, req.project_id)

    snippet = Snippet(
        user_id=viewer_id,
        project_id=req.project_id,
        title=req.title,
        code=req.code,
        language=req.language or DEFAULT_LANGUAGE,
        description=req.description,
        is_favorite=False,
    )
    with transaction(db):
        db.add(snippet)
        db.flush()

    logger.info("snippet_created", snippet_id=snippet.id, project_id=req.project_id)
    return CreatedOut(id=snippet.id)


def update_snippet(
    db: Session, viewer_id: int, snippet_id: int, req: UpdateSnippetRequest
) -> None:
    """Apply the fields set in req to an owned snippet.

    An explicit null for description or project_id clears that field.

    Raises:
        NotFoundError(E_PROJECT_NOT_FOUND): project_id is set to a project the viewer can't see.
    """
    values = req.model_dump(exclude_unset=True)
    if not values:
        return

    if values.get("project_id") is not None:
        require_owned_project(db, viewer_id, values["project_id"])

    values["updated_at"] = utcnow()
    with transaction(db):
        result = db.execute(
            update(Snippet)
            .where(Snippet.id == snippet_id, Snippet.user_id == viewer_id)
            .values(**values)
        )

    if result.rowcount:
        logger.info("snippet_updated", snippet_id=snippet_id, fields=sorted(values))


def delete_snippet(db: Session, viewer_id: int, snippet_id: int) -> None:
    """Delete an owned snippet with its line notes and chat messages."""
    delete_snippet_cascade(db, viewer_id, snippet_id)


def search_snippets(
    db: Session, viewer_id: int, query: str, project_id: int | None = None
) -> list[SnippetOut]:
    """Find the viewer's snippets whose title, code or description contains query.

    Raises:
        InvalidRequestError: query is empty. Whitespace is a valid query.
    """
    if not query:
        raise InvalidRequestError(message="Search query must not be empty")

    stmt = select(Snippet).where(
        Snippet.user_id == viewer_id,
        or_(
            Snippet.title.icontains(query, autoescape=True),
            Snippet.code.icontains(query, autoescape=True),
            Snippet.description.icontains(query, autoescape=True),
        ),
    )
    if project_id is not None:
        stmt = stmt.where(Snippet.project_id == project_id)

    rows = db.scalars(_recent_first(stmt)).all()
    logger.info("snippets_searched", query_chars=len(query), result_count=len(rows))
    return [SnippetOut.model_validate(s) for s in rows]
