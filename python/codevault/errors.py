"""Error codes and the exceptions services raise.

Services raise ApiError (or a subclass); the handler in codevault.responses
turns it into the error envelope with the status its code maps to.
"""

from enum import Enum


class ApiErrorCode(str, Enum):
    """Error codes returned in error.code."""

    E_UNAUTHENTICATED = "E_UNAUTHENTICATED"
    E_INTERNAL_ONLY = "E_INTERNAL_ONLY"

    E_NOT_FOUND = "E_NOT_FOUND"
    E_PROJECT_NOT_FOUND = "E_PROJECT_NOT_FOUND"
    E_SNIPPET_NOT_FOUND = "E_SNIPPET_NOT_FOUND"

    E_INVALID_REQUEST = "E_INVALID_REQUEST"
    E_FILE_TOO_LARGE = "E_FILE_TOO_LARGE"
    E_INVALID_FILE_TYPE = "E_INVALID_FILE_TYPE"

    E_UPSTREAM_FAILURE = "E_UPSTREAM_FAILURE"
    E_STORAGE_ERROR = "E_STORAGE_ERROR"

    E_STORE_UNAVAILABLE = "E_STORE_UNAVAILABLE"
    E_AUTH_UNAVAILABLE = "E_AUTH_UNAVAILABLE"
    E_INTERNAL = "E_INTERNAL"


_CODES_BY_STATUS: dict[int, tuple[ApiErrorCode, ...]] = {
    400: (
        ApiErrorCode.E_INVALID_REQUEST,
        ApiErrorCode.E_FILE_TOO_LARGE,
        ApiErrorCode.E_INVALID_FILE_TYPE,
    ),
    401: (ApiErrorCode.E_UNAUTHENTICATED,),
    403: (ApiErrorCode.E_INTERNAL_ONLY,),
    404: (
        ApiErrorCode.E_NOT_FOUND,
        ApiErrorCode.E_PROJECT_NOT_FOUND,
        ApiErrorCode.E_SNIPPET_NOT_FOUND,
    ),
    500: (ApiErrorCode.E_INTERNAL,),
    502: (ApiErrorCode.E_UPSTREAM_FAILURE, ApiErrorCode.E_STORAGE_ERROR),
    503: (ApiErrorCode.E_STORE_UNAVAILABLE, ApiErrorCode.E_AUTH_UNAVAILABLE),
}

ERROR_CODE_TO_STATUS: dict[ApiErrorCode, int] = {
    code: status for status, codes in _CODES_BY_STATUS.items() for code in codes
}


class ApiError(Exception):
    """An error with a client-facing code and message.

    Attributes:
        code: Error code.
        message: Client-safe message.
        status_code: HTTP status, derived from code (500 if unmapped).
    """

    def __init__(self, code: ApiErrorCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = ERROR_CODE_TO_STATUS.get(code, 500)


class NotFoundError(ApiError):
    """Missing, or owned by someone else; the two are indistinguishable."""

    def __init__(self, code: ApiErrorCode = ApiErrorCode.E_NOT_FOUND, message: str = "Not found"):
        super().__init__(code, message)


class InvalidRequestError(ApiError):
    def __init__(
        self, code: ApiErrorCode = ApiErrorCode.E_INVALID_REQUEST, message: str = "Invalid request"
    ):
        super().__init__(code, message)


class UpstreamServiceError(ApiError):
    """A collaborator outside the process (completion service, blob store) failed."""

    def __init__(
        self,
        code: ApiErrorCode = ApiErrorCode.E_UPSTREAM_FAILURE,
        message: str = "Upstream service failure",
    ):
        super().__init__(code, message)
