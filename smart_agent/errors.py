"""Error handling and classification for model provider calls."""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum

from smart_agent.exceptions import SmartAgentModelError

logger = logging.getLogger(__name__)


class ModelAPIError(SmartAgentModelError):
    """Model provider API error with HTTP status code."""

    def __init__(self, message: str, status_code: int = 0, **context) -> None:
        super().__init__(message, status_code=status_code, **context)
        self.status_code = status_code


class ErrorCategory(str, Enum):
    """Categories of errors that can occur."""
    RETRYABLE = "retryable"  # Network timeout - should retry
    AUTH = "auth"  # Authentication failure - don't retry
    INVALID_REQUEST = "invalid_request"  # Bad input - don't retry
    RESOURCE = "resource"  # Resource not found
    RATE_LIMIT = "rate_limit"  # Rate limiting - retry with backoff
    SERVER = "server"  # Server error - may retry
    UNKNOWN = "unknown"


@dataclass
class ErrorInfo:
    """Structured error information."""
    category: ErrorCategory
    retryable: bool
    user_message: str
    technical_details: str
    status_code: int | None = None


def classify_api_error(
    status_code: int, error_text: str, exception: Exception | None = None
) -> ErrorInfo:
    """
    Classify a provider error into a category.

    Args:
        status_code: HTTP status code (0 when no response was received)
        error_text: Error message from the provider
        exception: The exception that occurred, if any

    Returns:
        ErrorInfo with classification and a short user-facing message
    """
    error_text_lower = error_text.lower() if error_text else ""
    details = f"HTTP {status_code}: {error_text}"

    if status_code in (401, 403):
        return ErrorInfo(
            category=ErrorCategory.AUTH,
            retryable=False,
            user_message="Authentication failed. Check the API key.",
            technical_details=details,
            status_code=status_code,
        )

    if status_code == 429 or "rate limit" in error_text_lower:
        return ErrorInfo(
            category=ErrorCategory.RATE_LIMIT,
            retryable=True,
            user_message="Rate limit exceeded.",
            technical_details=details,
            status_code=status_code,
        )

    if status_code == 404:
        return ErrorInfo(
            category=ErrorCategory.RESOURCE,
            retryable=False,
            user_message="The requested model or endpoint was not found.",
            technical_details=details,
            status_code=status_code,
        )

    if status_code in (400, 422):
        return ErrorInfo(
            category=ErrorCategory.INVALID_REQUEST,
            retryable=False,
            user_message="The provider rejected the request.",
            technical_details=details,
            status_code=status_code,
        )

    if status_code >= 500:
        return ErrorInfo(
            category=ErrorCategory.SERVER,
            retryable=True,
            user_message="Server error. The service may be temporarily unavailable.",
            technical_details=details,
            status_code=status_code,
        )

    if isinstance(exception, (asyncio.TimeoutError, OSError, ConnectionError)):
        return ErrorInfo(
            category=ErrorCategory.RETRYABLE,
            retryable=True,
            user_message="Network error while contacting the model provider.",
            technical_details=f"{type(exception).__name__}: {exception}",
            status_code=None,
        )

    return ErrorInfo(
        category=ErrorCategory.UNKNOWN,
        retryable=False,
        user_message="An unexpected provider error occurred.",
        technical_details=error_text or (str(exception) if exception else "Unknown error"),
        status_code=status_code or None,
    )


def get_retry_strategy(
    category: ErrorCategory, attempt: int, max_attempts: int
) -> tuple[bool, float]:
    """
    Determine if an error is retryable and calculate delay.

    Args:
        category: Error category
        attempt: Current attempt number (1-indexed)
        max_attempts: Maximum attempts

    Returns:
        Tuple of (should_retry, delay_ms)
    """
    if category not in (ErrorCategory.RETRYABLE, ErrorCategory.RATE_LIMIT, ErrorCategory.SERVER):
        return False, 0

    if attempt >= max_attempts:
        return False, 0

    if category == ErrorCategory.RATE_LIMIT:
        return True, min(1000 * (3 ** (attempt - 1)), 30000)

    if category == ErrorCategory.SERVER:
        return True, min(1000 * (2 ** (attempt - 1)), 10000)

    return True, 500 * attempt
