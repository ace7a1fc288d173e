"""Normalized completion failures.

Whatever goes wrong in a provider call surfaces as LLMError with one of a
few error classes; LLMRouter does the mapping in one place.
"""

from enum import Enum

from codevault.logging import get_logger

logger = get_logger(__name__)


class LLMErrorClass(str, Enum):
    INVALID_KEY = "E_LLM_INVALID_KEY"  # 401/403, or no key configured
    RATE_LIMIT = "E_LLM_RATE_LIMIT"  # 429
    CONTEXT_TOO_LARGE = "E_LLM_CONTEXT_TOO_LARGE"
    TIMEOUT = "E_LLM_TIMEOUT"
    PROVIDER_DOWN = "E_LLM_PROVIDER_DOWN"  # 5xx, network, unusable body
    MODEL_NOT_AVAILABLE = "E_MODEL_NOT_AVAILABLE"  # 404, unknown or disabled provider


class LLMError(Exception):
    """A completion could not be produced.

    Attributes:
        error_class: Normalized classification.
        message: Description safe to log.
        provider: Provider involved, when known.
    """

    def __init__(self, error_class: LLMErrorClass, message: str, provider: str | None = None):
        super().__init__(message)
        self.error_class = error_class
        self.message = message
        self.provider = provider


_BY_STATUS: dict[int, LLMErrorClass] = {
    401: LLMErrorClass.INVALID_KEY,
    403: LLMErrorClass.INVALID_KEY,
    404: LLMErrorClass.MODEL_NOT_AVAILABLE,
    429: LLMErrorClass.RATE_LIMIT,
}


def _classify_bad_request(provider: str, error: dict) -> LLMErrorClass | None:
    message = str(error.get("message", "")).lower()
    if provider == "openai":
        if error.get("code") == "context_length_exceeded" or "maximum context length" in message:
            return LLMErrorClass.CONTEXT_TOO_LARGE
        if "model" in message and "not found" in message:
            return LLMErrorClass.MODEL_NOT_AVAILABLE
    elif provider == "anthropic":
        if error.get("type") == "invalid_request_error" and "too long" in message:
            return LLMErrorClass.CONTEXT_TOO_LARGE
    else:
        logger.warning("unknown_provider_for_error_classification", provider=provider)
    return None


def classify_provider_error(
    provider: str, status_code: int | None, json_body: dict | None
) -> LLMErrorClass:
    """Map a provider's HTTP failure to an error class.

    Args:
        provider: "openai" or "anthropic".
        status_code: HTTP status, or None when no response arrived.
        json_body: Parsed error body, if it was JSON.
    """
    if status_code is None or status_code >= 500:
        return LLMErrorClass.PROVIDER_DOWN
    if status_code in _BY_STATUS:
        return _BY_STATUS[status_code]
    if status_code == 400 and json_body:
        classified = _classify_bad_request(provider, json_body.get("error") or {})
        if classified is not None:
            return classified
    return LLMErrorClass.PROVIDER_DOWN
