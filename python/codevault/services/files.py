"""File record service layer.

Stores and lists metadata for uploaded blobs. Deleting a record leaves the
blob itself in storage.
"""

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from codevault.db.models import FileRecord
from codevault.db.session import transaction
from codevault.logging import get_logger
from codevault.schemas.common import CreatedOut
from codevault.schemas.file import FileRecordOut
from codevault.services.projects import require_owned_project

logger = get_logger(__name__)


def list_files(db: Session, viewer_id: int, project_id: int | None = None) -> list[FileRecordOut]:
    """List the viewer's file records, newest first."""
    stmt = select(FileRecord).where(FileRecord.user_id == viewer_id)
    if project_id is not None:
        stmt = stmt.where(FileRecord.project_id == project_id)
    rows = db.scalars(stmt.order_by(FileRecord.created_at.desc(), FileRecord.id.desc())).all()
    return [FileRecordOut.model_validate(f) for f in rows]


def create_file(
    db: Session,
    viewer_id: int,
    *,
    filename: str,
    mime_type: str,
    file_size: int,
    url: str,
    file_key: str,
    project_id: int | None = None,
) -> CreatedOut:
    """Record metadata for a blob that has already been stored.

    Raises:
        NotFoundError(E_PROJECT_NOT_FOUND): project_id names a project the viewer can't see.
    """
    if project_id is not None:
        require_owned_project(db, viewer_id, project_id)

    record = FileRecord(
        user_id=viewer_id,
        project_id=project_id,
        filename=filename,
        mime_type=mime_type,
        file_size=file_size,
        url=url,
        file_key=file_key,
    )
    with transaction(db):
        db.add(record)
        db.flush()

    logger.info("file_recorded", file_id=record.id, mime_type=mime_type, file_size=file_size)
    return CreatedOut(id=record.id)


def delete_file(db: Session, viewer_id: int, file_id: int) -> None:
    """Delete an owned file record. No-op when it doesn't exist or isn't owned."""
    with transaction(db):
        result = db.execute(
            delete(FileRecord).where(FileRecord.id == file_id, FileRecord.user_id == viewer_id)
        )

    if result.rowcount:
        logger.info("file_deleted", file_id=file_id)
