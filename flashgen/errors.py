"""Error taxonomy for the generation pipeline.

Every error carries a string ``code`` discriminant so that retry decisions
and error-log records switch on the type, never on message text.
"""

from typing import Any

GENERIC_USER_MESSAGE = (
    "An unexpected error occurred while generating flashcards. Please try again later."
)


class GenerationError(Exception):
    """Base class for all pipeline errors."""

    code = "unknown_error"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        if code is not None:
            self.code = code


class ConfigError(GenerationError):
    """Invalid or incomplete configuration, raised at construction time."""

    code = "config_error"


class GatewayError(GenerationError):
    """Base class for failures talking to the chat-completion API."""

    code = "gateway_error"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        status_code: int | None = None,
        body: Any = None,
    ):
        super().__init__(message, code)
        self.status_code = status_code
        self.body = body


class AuthError(GatewayError):
    """Credential rejected by the API. Never retried."""

    code = "authentication_error"


class GatewayTimeoutError(GatewayError):
    """A single attempt exceeded the configured timeout. Never retried."""

    code = "timeout_error"


class TransientError(GatewayError):
    """Failure that may succeed on a later attempt."""

    RATE_LIMIT = "rate_limit"
    API_ERROR = "api_error"
    INVALID_RESPONSE = "invalid_response"
    KINDS = (RATE_LIMIT, API_ERROR, INVALID_RESPONSE)

    def __init__(
        self,
        message: str,
        kind: str,
        status_code: int | None = None,
        body: Any = None,
    ):
        if kind not in self.KINDS:
            raise ValueError(f"Unknown transient error kind: {kind}")
        super().__init__(message, code=kind, status_code=status_code, body=body)
        self.kind = kind


class MaxRetriesExceeded(GatewayError):
    """All attempts failed with transient errors."""

    code = "max_retries_exceeded"

    def __init__(self, last_error: TransientError, attempts: int):
        super().__init__(
            f"Request failed after {attempts} attempts: {last_error}",
            status_code=last_error.status_code,
            body=last_error.body,
        )
        self.last_error = last_error
        self.attempts = attempts


class DecodeError(GatewayError):
    """Structured-output content was not valid JSON."""

    code = "json_parse_error"


class SchemaError(GenerationError):
    """Decoded payload does not satisfy the flashcard contract."""

    MISSING_FIELD = "missing_field"
    TOO_FEW = "too_few"
    EMPTY_FIELD = "empty_field"
    KINDS = (MISSING_FIELD, TOO_FEW, EMPTY_FIELD)

    def __init__(self, kind: str, message: str | None = None):
        if kind not in self.KINDS:
            raise ValueError(f"Unknown schema error kind: {kind}")
        super().__init__(message or f"Invalid flashcard payload: {kind}", code=kind)
        self.kind = kind


class PersistenceError(GenerationError):
    """The generation record could not be stored."""

    code = "persistence_error"


class SourceTextError(GenerationError):
    """Source text rejected before generation. Its message is user-facing."""

    code = "invalid_source_text"


def is_retryable(error: BaseException) -> bool:
    return isinstance(error, TransientError)


def error_code_for(error: BaseException) -> str:
    """Code written to the error log for ``error``."""
    if isinstance(error, MaxRetriesExceeded):
        return f"{error.code}:{error.last_error.code}"
    if isinstance(error, GenerationError):
        return error.code
    return GenerationError.code


def user_message_for(error: BaseException) -> str:
    """Message safe to show an end user.

    Only input validation errors are shown verbatim.
    """
    if isinstance(error, SourceTextError):
        return str(error)
    return GENERIC_USER_MESSAGE
