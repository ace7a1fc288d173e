"""Assistant bridge and chat history service layer.

send_chat_message runs in three phases:
1. Persist the user's message and commit (survives a failing completion)
2. Build the prompt from the system instruction plus the recent history
   window and call the completion service (no DB transaction held)
3. Persist the assistant's reply and return it

History is stored per user, optionally tagged with a snippet. A snippet
scope selects only that snippet's messages; no scope selects all of the
user's messages.
"""

from sqlalchemy import delete, select
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from codevault.config import get_settings
from codevault.db.models import ChatMessage, ChatRole
from codevault.db.session import transaction
from codevault.errors import ApiErrorCode, UpstreamServiceError
from codevault.logging import get_logger
from codevault.schemas.chat import ChatMessageOut, ChatReplyOut, SendChatRequest
from codevault.services.llm import CompletionService, LLMError, Turn
from codevault.services.snippets import require_owned_snippet

logger = get_logger(__name__)

DEFAULT_HISTORY_LIMIT = 50
MAX_HISTORY_LIMIT = 200

FALLBACK_REPLY = "Sorry, I couldn't generate a response."

SYSTEM_INSTRUCTION = """You are CodeVault AI, the programming assistant of a code snippet manager.
Always answer in {language}.

You help the user to:
- Explain what a piece of code does, step by step
- Suggest improvements, refactorings and best practices
- Find bugs and propose fixes
- Write documentation and comments
- Answer general programming questions

Format your answers in Markdown and put code in fenced code blocks."""

CONTEXT_BLOCK = """

The user is currently looking at this code:
```
{context}
```"""


# =============================================================================
# History (Repository)
# =============================================================================


def _scope(stmt, model, viewer_id: int, snippet_id: int | None):
    stmt = stmt.where(model.user_id == viewer_id)
    if snippet_id is not None:
        stmt = stmt.where(model.snippet_id == snippet_id)
    return stmt


def append_chat_message(
    db: Session, viewer_id: int, role: ChatRole, content: str, snippet_id: int | None = None
) -> ChatMessage:
    """Store one chat message and commit."""
    message = ChatMessage(
        user_id=viewer_id, snippet_id=snippet_id, role=role.value, content=content
    )
    with transaction(db):
        db.add(message)
        db.flush()
    return message


def list_chat_messages(
    db: Session, viewer_id: int, snippet_id: int | None = None, limit: int = DEFAULT_HISTORY_LIMIT
) -> list[ChatMessageOut]:
    """Return the most recent limit messages, oldest first."""
    stmt = _scope(select(ChatMessage), ChatMessage, viewer_id, snippet_id)
    rows = db.scalars(stmt.order_by(ChatMessage.id.desc()).limit(limit)).all()
    return [ChatMessageOut.model_validate(m) for m in reversed(rows)]


def get_history(
    db: Session, viewer_id: int, snippet_id: int | None = None, limit: int = DEFAULT_HISTORY_LIMIT
) -> list[ChatMessageOut]:
    """Chat history for the viewer, optionally scoped to a snippet."""
    return list_chat_messages(db, viewer_id, snippet_id, min(limit, MAX_HISTORY_LIMIT))


def clear_history(db: Session, viewer_id: int, snippet_id: int | None = None) -> None:
    """Delete the viewer's chat messages in the given scope."""
    with transaction(db):
        result = db.execute(_scope(delete(ChatMessage), ChatMessage, viewer_id, snippet_id))
    logger.info("chat_history_cleared", snippet_id=snippet_id, rows_deleted=result.rowcount)


# =============================================================================
# Assistant Bridge
# =============================================================================


def build_system_instruction(code_context: str | None, language: str) -> str:
    """Render the fixed system instruction, embedding code_context verbatim if given."""
    instruction = SYSTEM_INSTRUCTION.format(language=language)
    if code_context:
        instruction += CONTEXT_BLOCK.format(context=code_context)
    return instruction


def build_turns(history: list[ChatMessageOut], system_instruction: str) -> list[Turn]:
    """System instruction first, then the history window in chronological order.

    Stored system-role rows are skipped; the instruction is the only system turn.
    """
    turns = [Turn(role="system", content=system_instruction)]
    turns.extend(
        Turn(role=m.role, content=m.content) for m in history if m.role != ChatRole.system.value
    )
    return turns


def _store_user_message(
    db: Session, viewer_id: int, req: SendChatRequest, window: int
) -> list[ChatMessageOut]:
    """Commit the user's message and return the history window, which includes it."""
    if req.snippet_id is not None:
        require_owned_snippet(db, viewer_id, req.snippet_id)
    append_chat_message(db, viewer_id, ChatRole.user, req.message, req.snippet_id)
    return list_chat_messages(db, viewer_id, req.snippet_id, window)


async def send_chat_message(
    db: Session,
    completion: CompletionService,
    viewer_id: int,
    req: SendChatRequest,
) -> ChatReplyOut:
    """Send a message to the assistant and return its reply.

    Raises:
        NotFoundError(E_SNIPPET_NOT_FOUND): snippet_id names a snippet the viewer can't see.
        UpstreamServiceError(E_UPSTREAM_FAILURE): The completion service failed.
            The user's message stays in history.
    """
    settings = get_settings()

    # Phases 1 and 3 touch the database; they run off the event loop
    history = await run_in_threadpool(
        _store_user_message, db, viewer_id, req, settings.chat_history_window
    )
    turns = build_turns(
        history, build_system_instruction(req.context, settings.assistant_reply_language)
    )

    try:
        text = await completion.complete(turns)
    except LLMError as e:
        logger.error(
            "chat_completion_failed",
            error_class=e.error_class.value,
            provider=e.provider,
            snippet_id=req.snippet_id,
        )
        raise UpstreamServiceError(
            ApiErrorCode.E_UPSTREAM_FAILURE,
            "The assistant is unavailable right now. Please try again.",
        ) from e

    reply = text if text and text.strip() else FALLBACK_REPLY

    await run_in_threadpool(
        append_chat_message, db, viewer_id, ChatRole.assistant, reply, req.snippet_id
    )
    logger.info(
        "chat_completed",
        snippet_id=req.snippet_id,
        num_turns=len(turns),
        reply_chars=len(reply),
    )
    return ChatReplyOut(content=reply)
