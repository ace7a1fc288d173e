"""Pydantic schemas for request/response models.

All schemas are re-exported here for convenient imports.
"""

from codevault.schemas.chat import ChatMessageOut, ChatReplyOut, SendChatRequest
from codevault.schemas.common import CreatedOut
from codevault.schemas.file import FileRecordOut, UploadFileRequest
from codevault.schemas.note import LineNoteOut, UpsertNoteOut, UpsertNoteRequest
from codevault.schemas.project import CreateProjectRequest, ProjectOut, UpdateProjectRequest
from codevault.schemas.snippet import CreateSnippetRequest, SnippetOut, UpdateSnippetRequest
from codevault.schemas.user import UserOut

__all__ = [
    "CreatedOut",
    # Projects
    "ProjectOut",
    "CreateProjectRequest",
    "UpdateProjectRequest",
    # Snippets
    "SnippetOut",
    "CreateSnippetRequest",
    "UpdateSnippetRequest",
    # Notes
    "LineNoteOut",
    "UpsertNoteRequest",
    "UpsertNoteOut",
    # Files
    "FileRecordOut",
    "UploadFileRequest",
    # Chat
    "ChatMessageOut",
    "SendChatRequest",
    "ChatReplyOut",
    # Users
    "UserOut",
]
