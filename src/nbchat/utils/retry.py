"""Retry with exponential backoff for transient model-backend failures."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

import httpx
from pydantic_ai.exceptions import ModelHTTPError

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY = 1.0  # seconds
DEFAULT_MAX_DELAY = 16.0  # seconds

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

TRANSIENT_PHRASES = (
    "rate limit",
    "connection reset",
    "connection refused",
    "timeout",
    "temporary failure",
    "service unavailable",
    "overloaded",
)


class RetryError(Exception):
    """Error raised after all retry attempts are exhausted.

    Attributes:
        original_error: The last error that occurred.
        attempts: Number of attempts made.
    """

    def __init__(self, original_error: Exception, attempts: int):
        self.original_error = original_error
        self.attempts = attempts
        super().__init__(
            f"All {attempts} retry attempts exhausted. "
            f"Last error: {type(original_error).__name__}: {original_error}"
        )


def is_retryable_error(error: Exception) -> bool:
    """Determine if an error is transient and worth retrying.

    Args:
        error: The exception to check.

    Returns:
        True if the error is retryable, False otherwise.
    """
    if isinstance(error, ModelHTTPError):
        return error.status_code in RETRYABLE_STATUS_CODES

    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code in RETRYABLE_STATUS_CODES

    if isinstance(
        error,
        (
            httpx.ConnectError,
            httpx.TimeoutException,
            ConnectionError,
            TimeoutError,
        ),
    ):
        return True

    error_str = str(error).lower()
    return any(phrase in error_str for phrase in TRANSIENT_PHRASES)


def calculate_backoff_delay(
    attempt: int,
    base_delay: float = DEFAULT_BASE_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
) -> float:
    """Calculate the exponential backoff delay for a 0-indexed attempt."""
    delay = base_delay * (2**attempt)
    return min(delay, max_delay)


async def retry_with_backoff(
    func: Callable[P, Awaitable[T]],
    *args: P.args,
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = DEFAULT_BASE_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
    **kwargs: P.kwargs,
) -> T:
    """Execute an async function with retry logic and exponential backoff.

    Args:
        func: The async function to execute.
        *args: Positional arguments to pass to the function.
        max_retries: Maximum number of attempts.
        base_delay: Base delay in seconds for exponential backoff.
        max_delay: Maximum delay in seconds.
        **kwargs: Keyword arguments to pass to the function.

    Returns:
        The result of the function call.

    Raises:
        RetryError: If all attempts fail with retryable errors.
        Exception: The first non-retryable error, unchanged.
    """
    last_error: Exception | None = None

    for attempt in range(max_retries):
        try:
            return await func(*args, **kwargs)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            last_error = e

            if not is_retryable_error(e):
                raise

            if attempt < max_retries - 1:
                delay = calculate_backoff_delay(attempt, base_delay, max_delay)
                logger.warning(
                    f"Retryable error on attempt {attempt + 1}/{max_retries}: "
                    f"{type(e).__name__}: {e}. Retrying in {delay:.1f}s..."
                )
                await asyncio.sleep(delay)
            else:
                logger.error(
                    f"Final attempt {attempt + 1}/{max_retries} failed: "
                    f"{type(e).__name__}: {e}"
                )

    assert last_error is not None
    raise RetryError(last_error, max_retries)
