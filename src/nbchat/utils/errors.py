"""Error types and helpers for consistent error responses."""

import logging
from enum import Enum
from typing import Any

from pydantic import BaseModel

from nbchat.models.events import ErrorEvent

logger = logging.getLogger(__name__)

NOT_CONFIGURED_MESSAGE = "Please configure your AI settings first"


class NbChatError(Exception):
    """Base class for nbchat errors."""


class ConfigurationError(NbChatError):
    """Raised synchronously while building tools or models from configuration."""


class UnsupportedImplementationError(ConfigurationError):
    """A provider declares a built-in tool implementation nbchat cannot build."""

    def __init__(self, tool_kind: str, implementation: str):
        self.tool_kind = tool_kind
        self.implementation = implementation
        super().__init__(f"Unsupported {tool_kind} implementation: {implementation}")


class NotConfiguredError(ConfigurationError):
    """No usable provider is configured for the requested operation."""

    def __init__(self, message: str = NOT_CONFIGURED_MESSAGE):
        super().__init__(message)


class ChatNotFoundError(NbChatError):
    """The requested chat session does not exist."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Chat not found: '{name}'")


class ErrorCode(str, Enum):
    """Standard error codes for API responses."""

    # Request errors
    INVALID_REQUEST = "INVALID_REQUEST"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CHAT_NOT_FOUND = "CHAT_NOT_FOUND"

    # Configuration errors
    NOT_CONFIGURED = "NOT_CONFIGURED"
    UNSUPPORTED_IMPLEMENTATION = "UNSUPPORTED_IMPLEMENTATION"

    # Provider errors
    AUTH_INVALID = "AUTH_INVALID"
    RATE_LIMITED = "RATE_LIMITED"
    MODEL_NOT_FOUND = "MODEL_NOT_FOUND"
    PROVIDER_ERROR = "PROVIDER_ERROR"

    # Server errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    TIMEOUT = "TIMEOUT"


class ErrorResponse(BaseModel):
    """HTTP error response model."""

    detail: str
    code: ErrorCode | None = None
    request_id: str | None = None


# User-friendly error messages by error code
USER_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INVALID_REQUEST: "Invalid request format",
    ErrorCode.VALIDATION_ERROR: "Request validation failed",
    ErrorCode.CHAT_NOT_FOUND: "The requested chat was not found",
    ErrorCode.NOT_CONFIGURED: NOT_CONFIGURED_MESSAGE,
    ErrorCode.UNSUPPORTED_IMPLEMENTATION: (
        "The selected provider declares a tool this assistant cannot build. "
        "Please check your AI settings."
    ),
    ErrorCode.AUTH_INVALID: "The AI provider rejected the configured credentials",
    ErrorCode.RATE_LIMITED: (
        "The service is experiencing high demand. Please try again in a moment."
    ),
    ErrorCode.MODEL_NOT_FOUND: "The requested model was not found",
    ErrorCode.PROVIDER_ERROR: "The AI provider returned an error. Please try again.",
    ErrorCode.INTERNAL_ERROR: "An unexpected error occurred",
    ErrorCode.SERVICE_UNAVAILABLE: (
        "The service is temporarily unavailable. Please try again later."
    ),
    ErrorCode.TIMEOUT: "The request timed out. Please try again.",
}

# Default message for unknown errors
DEFAULT_USER_MESSAGE = "An unexpected error occurred"

# Maximum length for error details
MAX_ERROR_LENGTH = 500


def get_user_message(code: ErrorCode | None, default: str | None = None) -> str:
    """Get user-appropriate error message for an error code.

    Args:
        code: The error code.
        default: Default message if code not found.

    Returns:
        User-friendly error message.
    """
    if code is None:
        return default or DEFAULT_USER_MESSAGE

    return USER_MESSAGES.get(code, default or DEFAULT_USER_MESSAGE)


def truncate_error(error: str, max_length: int = MAX_ERROR_LENGTH) -> str:
    """Truncate error message if too long.

    Args:
        error: The error message.
        max_length: Maximum allowed length.

    Returns:
        Truncated error message.
    """
    if len(error) <= max_length:
        return error

    return error[: max_length - 3] + "..."


def create_error_response(
    code: ErrorCode,
    detail: str | None = None,
    request_id: str | None = None,
) -> ErrorResponse:
    """Create a standardized error response.

    Args:
        code: The error code.
        detail: Optional custom detail message.
        request_id: Optional request ID.

    Returns:
        ErrorResponse model.
    """
    message = detail if detail else get_user_message(code)
    return ErrorResponse(
        detail=truncate_error(message),
        code=code,
        request_id=request_id,
    )


def create_stream_error_event(
    code: ErrorCode | None = None,
    message: str | None = None,
) -> ErrorEvent:
    """Create an error event for streaming responses.

    Args:
        code: Optional error code.
        message: Optional custom message (takes precedence over code).

    Returns:
        ErrorEvent model for SSE streaming.
    """
    if message:
        error_message = truncate_error(message)
    else:
        error_message = get_user_message(code)

    return ErrorEvent(errorText=error_message)


def classify_exception(exc: Exception) -> ErrorCode:
    """Classify an exception to an error code.

    Args:
        exc: The exception to classify.

    Returns:
        Appropriate error code.
    """
    import httpx
    from pydantic import ValidationError

    if isinstance(exc, NotConfiguredError):
        return ErrorCode.NOT_CONFIGURED

    if isinstance(exc, UnsupportedImplementationError):
        return ErrorCode.UNSUPPORTED_IMPLEMENTATION

    if isinstance(exc, ChatNotFoundError):
        return ErrorCode.CHAT_NOT_FOUND

    if isinstance(exc, ValidationError):
        return ErrorCode.VALIDATION_ERROR

    # HTTP errors from upstream
    if isinstance(exc, httpx.HTTPStatusError):
        status_code = exc.response.status_code
        if status_code == 401:
            return ErrorCode.AUTH_INVALID
        elif status_code == 429:
            return ErrorCode.RATE_LIMITED
        elif status_code == 404:
            return ErrorCode.MODEL_NOT_FOUND
        elif status_code >= 500:
            return ErrorCode.SERVICE_UNAVAILABLE
        else:
            return ErrorCode.PROVIDER_ERROR

    if isinstance(exc, (httpx.TimeoutException, TimeoutError)):
        return ErrorCode.TIMEOUT

    if isinstance(exc, (httpx.ConnectError, ConnectionError)):
        return ErrorCode.SERVICE_UNAVAILABLE

    return ErrorCode.INTERNAL_ERROR


def log_error(
    exc: Exception,
    code: ErrorCode | None = None,
    request_id: str | None = None,
    **context: Any,
) -> None:
    """Log an error with context.

    Logs the full exception for debugging while creating
    user-appropriate error messages.

    Args:
        exc: The exception that occurred.
        code: Optional pre-classified error code.
        request_id: Optional request ID.
        **context: Additional context to include in log.
    """
    if code is None:
        code = classify_exception(exc)

    log_extra = {
        "error_code": code.value,
        "error_type": type(exc).__name__,
        "request_id": request_id,
        **context,
    }

    # Error level for user-facing errors, exception level for internal errors
    if code == ErrorCode.INTERNAL_ERROR:
        logger.exception("Internal error occurred", extra=log_extra)
    else:
        logger.error(f"Request error: {exc}", extra=log_extra)
