"""File routes.

Uploads arrive as base64 inside a JSON body; the bytes go to the blob store
and the metadata row is created afterwards.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from codevault.api.deps import get_db, get_storage
from codevault.auth.middleware import Viewer, get_viewer
from codevault.responses import success_response
from codevault.schemas.file import UploadFileRequest
from codevault.services import files as files_service
from codevault.services import upload as upload_service
from codevault.storage import StorageClientBase

router = APIRouter()


@router.get("/files")
def list_files(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    project_id: Annotated[int | None, Query(ge=1)] = None,
) -> dict:
    """List the viewer's file records, newest first."""
    result = files_service.list_files(db, viewer.user_id, project_id)
    return success_response([f.model_dump(mode="json") for f in result])


@router.post("/files", status_code=201)
def upload_file(
    body: UploadFileRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    storage: Annotated[StorageClientBase, Depends(get_storage)],
) -> dict:
    """Upload a file and record its metadata.

    Errors:
        E_INVALID_FILE_TYPE (400): MIME type not allowed.
        E_FILE_TOO_LARGE (400): Payload exceeds the upload limit.
        E_STORAGE_ERROR (502): The blob store rejected the write.
    """
    result = upload_service.upload_file(db, storage, viewer.user_id, body)
    return success_response(result.model_dump(mode="json"))


@router.delete("/files/{file_id}", status_code=204)
def delete_file(
    file_id: int,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    """Delete a file record. The stored blob is left in place."""
    files_service.delete_file(db, viewer.user_id, file_id)
    return Response(status_code=204)
