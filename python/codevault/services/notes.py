"""Line note service layer.

A user has at most one note per (snippet, line). upsert_note is a single
INSERT ... ON CONFLICT DO UPDATE keyed on that triple, so concurrent upserts
for the same line converge to one row without a read-then-write race.
"""

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from codevault.db.dialect import upsert_insert
from codevault.db.models import LineNote, utcnow
from codevault.db.session import transaction
from codevault.logging import get_logger
from codevault.schemas.note import LineNoteOut, UpsertNoteOut
from codevault.services.snippets import require_owned_snippet

logger = get_logger(__name__)


def list_notes(db: Session, viewer_id: int, snippet_id: int) -> list[LineNoteOut]:
    """List the viewer's notes on a snippet in ascending line order."""
    rows = db.scalars(
        select(LineNote)
        .where(LineNote.snippet_id == snippet_id, LineNote.user_id == viewer_id)
        .order_by(LineNote.line_number.asc())
    ).all()
    return [LineNoteOut.model_validate(n) for n in rows]


def upsert_note(
    db: Session, viewer_id: int, snippet_id: int, line_number: int, content: str
) -> UpsertNoteOut:
    """Create the note on a line, or replace the content of the existing one.

    Inserts start at revision 1 and the conflict branch increments it, so
    the returned revision tells a new note from a replaced one.

    Raises:
        NotFoundError(E_SNIPPET_NOT_FOUND): Snippet doesn't exist or isn't owned.
    """
    require_owned_snippet(db, viewer_id, snippet_id)

    now = utcnow()
    stmt = upsert_insert(db, LineNote).values(
        snippet_id=snippet_id,
        user_id=viewer_id,
        line_number=line_number,
        content=content,
        revision=1,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[LineNote.snippet_id, LineNote.line_number, LineNote.user_id],
        set_={
            "content": stmt.excluded.content,
            "updated_at": stmt.excluded.updated_at,
            "revision": LineNote.revision + 1,
        },
    ).returning(LineNote.id, LineNote.revision)

    with transaction(db):
        row = db.execute(stmt).one()

    created = row.revision == 1
    logger.info(
        "note_upserted",
        note_id=row.id,
        snippet_id=snippet_id,
        line_number=line_number,
        created=created,
    )
    return UpsertNoteOut(id=row.id, created=created)


def delete_note(db: Session, viewer_id: int, note_id: int) -> None:
    """Delete an owned note. No-op when it doesn't exist or isn't owned."""
    with transaction(db):
        result = db.execute(
            delete(LineNote).where(LineNote.id == note_id, LineNote.user_id == viewer_id)
        )

    if result.rowcount:
        logger.info("note_deleted", note_id=note_id)
