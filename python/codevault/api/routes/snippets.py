"""Snippet and line note routes.

Routes are transport-only: each calls exactly one service function.

IMPORTANT: /snippets/search must be registered BEFORE /snippets/{snippet_id}.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, Response
from sqlalchemy.orm import Session

from codevault.api.deps import get_db
from codevault.auth.middleware import Viewer, get_viewer
from codevault.responses import success_response
from codevault.schemas.note import UpsertNoteRequest
from codevault.schemas.snippet import CreateSnippetRequest, UpdateSnippetRequest
from codevault.services import notes as notes_service
from codevault.services import snippets as snippets_service

router = APIRouter()


# =============================================================================
# Static routes (MUST be before /snippets/{snippet_id} routes)
# =============================================================================


@router.get("/snippets/search")
def search_snippets(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    query: Annotated[str, Query(min_length=1, max_length=500)],
    project_id: Annotated[int | None, Query(ge=1)] = None,
) -> dict:
    """Case-insensitive substring search over title, code and description."""
    result = snippets_service.search_snippets(db, viewer.user_id, query, project_id)
    return success_response([s.model_dump(mode="json") for s in result])


# =============================================================================
# Snippet routes
# =============================================================================


@router.get("/snippets")
def list_snippets(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    project_id: Annotated[int | None, Query(ge=1)] = None,
) -> dict:
    """List the viewer's snippets, optionally within one project."""
    result = snippets_service.list_snippets(db, viewer.user_id, project_id)
    return success_response([s.model_dump(mode="json") for s in result])


@router.get("/snippets/{snippet_id}")
def get_snippet(
    snippet_id: int,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Get one snippet. data is null when it doesn't exist or isn't owned."""
    result = snippets_service.get_snippet(db, viewer.user_id, snippet_id)
    return success_response(result.model_dump(mode="json") if result else None)


@router.post("/snippets", status_code=201)
def create_snippet(
    body: CreateSnippetRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Create a snippet, optionally filed under an owned project."""
    result = snippets_service.create_snippet(db, viewer.user_id, body)
    return success_response(result.model_dump(mode="json"))


@router.patch("/snippets/{snippet_id}", status_code=204)
def update_snippet(
    snippet_id: int,
    body: UpdateSnippetRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    """Partially update a snippet. Foreign or missing ids are a no-op."""
    snippets_service.update_snippet(db, viewer.user_id, snippet_id, body)
    return Response(status_code=204)


@router.delete("/snippets/{snippet_id}", status_code=204)
def delete_snippet(
    snippet_id: int,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    """Delete a snippet with its line notes and chat messages."""
    snippets_service.delete_snippet(db, viewer.user_id, snippet_id)
    return Response(status_code=204)


# =============================================================================
# Line notes
# =============================================================================


@router.get("/snippets/{snippet_id}/notes")
def list_notes(
    snippet_id: int,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """List the viewer's notes on a snippet, ascending by line."""
    result = notes_service.list_notes(db, viewer.user_id, snippet_id)
    return success_response([n.model_dump(mode="json") for n in result])


@router.put("/snippets/{snippet_id}/notes/{line_number}")
def upsert_note(
    snippet_id: int,
    line_number: Annotated[int, Path(ge=1)],
    body: UpsertNoteRequest,
    response: Response,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Create or replace the viewer's note on a line.

    Returns 201 when the note was created and 200 when it was updated.
    """
    result = notes_service.upsert_note(
        db, viewer.user_id, snippet_id, line_number, body.content
    )
    response.status_code = 201 if result.created else 200
    return success_response({"id": result.id})


@router.delete("/notes/{note_id}", status_code=204)
def delete_note(
    note_id: int,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    """Delete a line note. Foreign or missing ids are a no-op."""
    notes_service.delete_note(db, viewer.user_id, note_id)
    return Response(status_code=204)
