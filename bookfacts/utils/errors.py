"""
Custom exceptions for bookfacts.

Every error raised by the package derives from BookFactsException so callers
can catch the whole family at the slot-run boundary.
"""

from typing import Any, Optional


class BookFactsException(Exception):
    """Base exception for all bookfacts errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the message only; details are for logs, not for users."""
        return self.message


# =============================================================================
# Input / State Exceptions
# =============================================================================


class ValidationError(BookFactsException):
    """Missing credential or question, or an otherwise unusable input."""

    pass


class BoardBusyError(BookFactsException):
    """A run-all was requested while a slot is still loading."""

    def __init__(self, loading: list[int]) -> None:
        """Initialize with the indices still in flight."""
        message = "처리 중인 질문이 있습니다."
        super().__init__(message, {"loading_slots": loading})


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationError(BookFactsException):
    """Configuration error."""

    pass


# =============================================================================
# Extraction Exceptions
# =============================================================================


class ExtractionError(BookFactsException):
    """Base exception for a failed extraction call."""

    pass


class AuthError(ExtractionError):
    """The credential was rejected by the generative-language service."""

    pass


class NetworkError(ExtractionError):
    """The call could not complete (timeout, connectivity)."""

    pass


class ParseError(ExtractionError):
    """The model response could not be decoded into a book record."""

    def __init__(self, message: str, raw_text: Optional[str] = None) -> None:
        """Initialize with the offending response text."""
        details = {"raw_text": raw_text} if raw_text is not None else None
        super().__init__(message, details)
        self.raw_text = raw_text


class UpstreamError(ExtractionError):
    """Any other failure surfaced by the model call itself."""

    pass


class RateLimitError(UpstreamError):
    """The service refused the call because of quota or rate limits."""

    def __init__(self, message: str, retry_after: Optional[int] = None) -> None:
        """Initialize with retry information."""
        details = {"retry_after": retry_after} if retry_after else None
        super().__init__(message, details)
        self.retry_after = retry_after
