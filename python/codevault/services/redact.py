"""Guard for log events emitted next to user content.

Snippet code, note text, chat messages, prompts, search queries and
credentials never go into a log line. Derived sizes and digests are
allowed under their own names (content_chars, code_sha256, ...).
"""

import os

import structlog

FORBIDDEN_KEYS = frozenset(
    {
        "prompt",
        "content",
        "code",
        "query",
        "api_key",
        "bearer",
        "token",
        "secret",
        "password",
        "message_text",
        "context_text",
        "raw_body",
    }
)

STRICT_ENVS = ("local", "test")


def safe_kv(*, _env: str | None = None, **fields) -> dict:
    """Return fields for a log call, minus anything in FORBIDDEN_KEYS.

        logger.info("llm.request.started", **safe_kv(provider="openai", message_chars=812))

    _env overrides CODEVAULT_ENV. In local and test a forbidden key is a bug
    and raises ValueError; elsewhere the key is dropped with a warning.
    """
    leaked = sorted(key for key in fields if key in FORBIDDEN_KEYS)
    if not leaked:
        return fields

    env = _env or os.environ.get("CODEVAULT_ENV", "local")
    if env in STRICT_ENVS:
        raise ValueError(f"Forbidden log keys: {leaked}")

    structlog.get_logger(__name__).warning("safe_kv_violation", forbidden_keys=leaked)
    return {key: value for key, value in fields.items() if key not in FORBIDDEN_KEYS}
