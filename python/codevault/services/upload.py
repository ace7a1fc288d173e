"""File upload service layer.

Handles the full upload flow for files sent as base64 inside a JSON body:
validate, store the bytes in the blob store, then record the metadata.

Key invariants:
- file_size always equals the decoded byte length
- Only PDF and common image types are accepted
- Blob is written before the metadata row; a failed write leaves no row
"""

import base64
import binascii

from sqlalchemy.orm import Session

from codevault.config import get_settings
from codevault.errors import ApiErrorCode, InvalidRequestError, UpstreamServiceError
from codevault.logging import get_logger
from codevault.schemas.common import CreatedOut
from codevault.schemas.file import UploadFileRequest
from codevault.services.files import create_file
from codevault.services.projects import require_owned_project
from codevault.storage import StorageClientBase, StorageError, build_file_key

logger = get_logger(__name__)

ALLOWED_MIME_TYPES: frozenset[str] = frozenset(
    {
        "application/pdf",
        "image/png",
        "image/jpeg",
        "image/jpg",
        "image/gif",
        "image/webp",
        "image/svg+xml",
    }
)


def _decode_payload(base64_data: str) -> bytes:
    """Decode base64 file data, tolerating a data: URL prefix.

    Raises:
        InvalidRequestError: If the payload is not valid base64.
    """
    if base64_data.startswith("data:") and "," in base64_data:
        base64_data = base64_data.split(",", 1)[1]
    try:
        return base64.b64decode(base64_data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidRequestError(message="File data is not valid base64") from e


def _validate_upload(mime_type: str, declared_size: int, data: bytes) -> None:
    """Validate type and size of an upload.

    Raises:
        InvalidRequestError: If validation fails.
    """
    settings = get_settings()

    if mime_type not in ALLOWED_MIME_TYPES:
        raise InvalidRequestError(
            ApiErrorCode.E_INVALID_FILE_TYPE,
            f"Invalid file type '{mime_type}'. "
            f"Expected one of: {', '.join(sorted(ALLOWED_MIME_TYPES))}",
        )

    if len(data) > settings.max_upload_bytes:
        raise InvalidRequestError(
            ApiErrorCode.E_FILE_TOO_LARGE,
            f"File size {len(data)} bytes exceeds maximum {settings.max_upload_bytes} bytes.",
        )

    if declared_size != len(data):
        raise InvalidRequestError(
            message=f"Declared file_size {declared_size} does not match payload ({len(data)} bytes)"
        )


def upload_file(
    db: Session,
    storage: StorageClientBase,
    viewer_id: int,
    req: UploadFileRequest,
) -> CreatedOut:
    """Store an uploaded file and record its metadata.

    Args:
        db: Database session.
        storage: Blob store the bytes are written to.
        viewer_id: Uploading user.
        req: Filename, MIME type, declared size, base64 payload and optional project.

    Returns:
        Id of the new file record.

    Raises:
        InvalidRequestError: Bad base64, size mismatch, too large, or disallowed type.
        NotFoundError(E_PROJECT_NOT_FOUND): project_id names a project the viewer can't see.
        UpstreamServiceError(E_STORAGE_ERROR): The blob store rejected the write.
    """
    data = _decode_payload(req.base64_data)
    _validate_upload(req.mime_type, req.file_size, data)

    # Project reference is checked before any bytes are written
    if req.project_id is not None:
        require_owned_project(db, viewer_id, req.project_id)

    key = build_file_key(viewer_id, req.filename)
    try:
        stored = storage.put(key, data, req.mime_type)
    except StorageError as e:
        logger.error("storage_put_failed", file_key=key, error=e.message)
        raise UpstreamServiceError(ApiErrorCode.E_STORAGE_ERROR, "Failed to store file") from e

    return create_file(
        db,
        viewer_id,
        filename=req.filename,
        mime_type=req.mime_type,
        file_size=len(data),
        url=stored.url,
        file_key=stored.key,
        project_id=req.project_id,
    )
