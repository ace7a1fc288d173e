"""Assistant routes.

POST /ai/chat is async: it awaits the completion service. History routes
are plain transport over the chat service.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from codevault.api.deps import get_completion_service, get_db
from codevault.auth.middleware import Viewer, get_viewer
from codevault.responses import success_response
from codevault.schemas.chat import SendChatRequest
from codevault.services import chat as chat_service
from codevault.services.llm import CompletionService

router = APIRouter()


@router.post("/ai/chat")
async def send_chat(
    body: SendChatRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    completion: Annotated[CompletionService, Depends(get_completion_service)],
) -> dict:
    """Send a message to the assistant and return its reply.

    Errors:
        E_SNIPPET_NOT_FOUND (404): snippet_id is not an owned snippet.
        E_UPSTREAM_FAILURE (502): The completion service failed.
    """
    result = await chat_service.send_chat_message(db, completion, viewer.user_id, body)
    return success_response(result.model_dump(mode="json"))


@router.get("/ai/history")
def get_history(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    snippet_id: Annotated[int | None, Query(ge=1)] = None,
    limit: Annotated[
        int, Query(ge=1, description="Maximum results (clamped to 200)")
    ] = chat_service.DEFAULT_HISTORY_LIMIT,
) -> dict:
    """Chat history, oldest first, optionally scoped to one snippet."""
    result = chat_service.get_history(db, viewer.user_id, snippet_id, limit)
    return success_response([m.model_dump(mode="json") for m in result])


@router.delete("/ai/history", status_code=204)
def clear_history(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    snippet_id: Annotated[int | None, Query(ge=1)] = None,
) -> Response:
    """Delete chat history, optionally only one snippet's."""
    chat_service.clear_history(db, viewer.user_id, snippet_id)
    return Response(status_code=204)
