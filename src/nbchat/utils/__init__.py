"""Utility functions for retry logic and error handling."""

from nbchat.utils.retry import (
    RetryError,
    calculate_backoff_delay,
    is_retryable_error,
    retry_with_backoff,
)

__all__ = [
    "RetryError",
    "calculate_backoff_delay",
    "is_retryable_error",
    "retry_with_backoff",
]
