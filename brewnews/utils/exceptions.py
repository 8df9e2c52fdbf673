"""
BrewNews Custom Exceptions
==========================

Exception hierarchy for the ingestion pipeline with error codes, context
information, and user-facing messages.

Propagation rules:
- SummarizationError is absorbed per item (fallback summary substituted).
- FeedError subclasses are absorbed per source inside a batch.
- StorageError is reported distinctly without discarding computed results.
"""

from typing import Optional, Dict, Any
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for categorizing exceptions."""

    # Configuration errors (C001-C099)
    CONFIG_INVALID = "C001"
    CONFIG_MISSING = "C002"

    # Feed ingestion errors (F001-F099)
    FEED_INVALID_URL = "F001"
    FEED_FETCH_TIMEOUT = "F002"
    FEED_PARSE_ERROR = "F003"
    FEED_NETWORK_ERROR = "F004"
    FEED_HTTP_ERROR = "F005"
    FEED_UNEXPECTED = "F006"

    # Summarization errors (A001-A099)
    AI_API_ERROR = "A001"
    AI_INVALID_RESPONSE = "A003"
    AI_TIMEOUT = "A004"
    AI_PROVIDER_UNAVAILABLE = "A008"
    AI_INVALID_CREDENTIALS = "A009"

    # Validation errors (V001-V099)
    VALIDATION_REQUIRED_FIELD = "V001"
    VALIDATION_INVALID_FORMAT = "V002"
    VALIDATION_DUPLICATE = "V004"

    # Storage errors (S001-S099)
    STORAGE_READ = "S001"
    STORAGE_WRITE = "S002"
    STORAGE_UNAVAILABLE = "S003"


class BrewNewsError(Exception):
    """Base exception for all BrewNews errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        context: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        recoverable: bool = False,
    ):
        """Initialize BrewNews error.

        Args:
            message: Technical error message for logging
            error_code: Categorized error code
            context: Additional context information
            user_message: User-friendly error message
            recoverable: Whether the error is recoverable
        """
        super().__init__(message)
        self.error_code = error_code
        self.context = context or {}
        self.user_message = user_message or message
        self.recoverable = recoverable

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code.value if self.error_code else None,
            "error_message": str(self),
            "user_message": self.user_message,
            "context": self.context,
            "recoverable": self.recoverable,
        }

    def __str__(self) -> str:
        """String representation with error code."""
        if self.error_code:
            return f"[{self.error_code.value}] {super().__str__()}"
        return super().__str__()


class ConfigurationError(BrewNewsError):
    """Configuration-related errors."""

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        context = kwargs.pop("context", {})
        if config_key:
            context["config_key"] = config_key

        super().__init__(
            message=message,
            error_code=kwargs.pop("error_code", ErrorCode.CONFIG_INVALID),
            context=context,
            user_message=kwargs.pop("user_message", f"Configuration error: {message}"),
            **kwargs,
        )


class InvalidInputError(BrewNewsError):
    """Malformed input such as a source URL that does not parse."""

    def __init__(self, message: str, field_name: Optional[str] = None, **kwargs):
        """Initialize invalid input error.

        Args:
            message: Error message
            field_name: Field name that failed validation
            **kwargs: Additional arguments for BrewNewsError
        """
        context = kwargs.pop("context", {})
        if field_name:
            context["field_name"] = field_name

        super().__init__(
            message=message,
            error_code=kwargs.pop("error_code", ErrorCode.VALIDATION_INVALID_FORMAT),
            context=context,
            user_message=kwargs.pop("user_message", message),
            recoverable=kwargs.pop("recoverable", False),
            **kwargs,
        )


class FeedError(BrewNewsError):
    """Feed ingestion and parsing errors."""

    default_user_message = (
        "An unexpected error occurred while processing the feed. "
        "It may not be a valid RSS or Atom format."
    )

    def __init__(self, message: str, feed_url: Optional[str] = None, **kwargs):
        """Initialize feed error.

        Args:
            message: Error message
            feed_url: Source URL that caused the error
            **kwargs: Additional arguments for BrewNewsError
        """
        context = kwargs.pop("context", {})
        if feed_url:
            context["feed_url"] = feed_url
        self.feed_url = feed_url

        super().__init__(
            message=message,
            error_code=kwargs.pop("error_code", ErrorCode.FEED_UNEXPECTED),
            context=context,
            user_message=kwargs.pop("user_message", self.default_user_message),
            recoverable=kwargs.pop("recoverable", True),
            **kwargs,
        )


class NetworkError(FeedError):
    """Transport failure (DNS, connection reset, timeout)."""

    default_user_message = (
        "Network error or invalid domain. Please check the URL and your connection."
    )

    def __init__(self, message: str, feed_url: Optional[str] = None, **kwargs):
        kwargs.setdefault("error_code", ErrorCode.FEED_NETWORK_ERROR)
        super().__init__(message, feed_url=feed_url, **kwargs)


class HttpError(FeedError):
    """Response status outside the success range."""

    def __init__(
        self, status: int, feed_url: Optional[str] = None, reason: str = "", **kwargs
    ):
        self.status = status
        context = kwargs.pop("context", {})
        context["status"] = status
        kwargs.setdefault("error_code", ErrorCode.FEED_HTTP_ERROR)
        kwargs.setdefault(
            "user_message",
            f"Failed to fetch feed. Server responded with status: {status}",
        )
        super().__init__(
            f"HTTP {status}: {reason}".rstrip(": "),
            feed_url=feed_url,
            context=context,
            **kwargs,
        )


class FormatError(FeedError):
    """Document is neither recognizable RSS nor Atom."""

    default_user_message = (
        "The content does not appear to be a valid RSS or Atom feed."
    )

    def __init__(self, message: str, feed_url: Optional[str] = None, **kwargs):
        kwargs.setdefault("error_code", ErrorCode.FEED_PARSE_ERROR)
        kwargs.setdefault("recoverable", False)
        super().__init__(message, feed_url=feed_url, **kwargs)


class SummarizationError(BrewNewsError):
    """Summarization collaborator failure or timeout."""

    def __init__(self, message: str, provider: Optional[str] = None, **kwargs):
        """Initialize summarization error.

        Args:
            message: Error message
            provider: Summarization provider name (e.g., 'gemini', 'groq')
            **kwargs: Additional arguments for BrewNewsError
        """
        context = kwargs.pop("context", {})
        if provider:
            context["ai_provider"] = provider
        self.provider = provider

        super().__init__(
            message=message,
            error_code=kwargs.pop("error_code", ErrorCode.AI_API_ERROR),
            context=context,
            user_message=kwargs.pop("user_message", "Summary temporarily unavailable"),
            recoverable=kwargs.pop("recoverable", True),
            **kwargs,
        )


class StorageError(BrewNewsError):
    """Document store read/write errors."""

    def __init__(
        self,
        message: str,
        collection: Optional[str] = None,
        operation: Optional[str] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})
        if collection:
            context["collection"] = collection
        if operation:
            context["operation"] = operation

        super().__init__(
            message=message,
            error_code=kwargs.pop("error_code", ErrorCode.STORAGE_READ),
            context=context,
            user_message=kwargs.pop("user_message", "Stored data is unavailable"),
            recoverable=kwargs.pop("recoverable", True),
            **kwargs,
        )


# Exception handling utilities


def handle_exception(
    exception: Exception,
    logger,
    operation: str,
    context: Optional[Dict[str, Any]] = None,
) -> BrewNewsError:
    """Convert generic exceptions to BrewNews exceptions with logging.

    Args:
        exception: Original exception
        logger: Logger instance for error logging
        operation: Operation that was being performed
        context: Additional context information

    Returns:
        BrewNews exception with proper categorization
    """
    context = context or {}
    context["operation"] = operation
    context["original_exception_type"] = type(exception).__name__

    if isinstance(exception, BrewNewsError):
        logger.error(f"Operation '{operation}' failed", extra=exception.to_dict())
        return exception

    elif isinstance(exception, (ConnectionError, TimeoutError)):
        error = NetworkError(
            f"Network error during {operation}: {exception}",
            context=context,
        )

    elif isinstance(exception, FileNotFoundError):
        error = ConfigurationError(
            f"Required file not found during {operation}: {exception}",
            error_code=ErrorCode.CONFIG_MISSING,
            context=context,
        )

    else:
        error = BrewNewsError(
            message=f"Unexpected error during {operation}: {exception}",
            context=context,
            user_message="An unexpected error occurred",
            recoverable=True,
        )

    logger.error(f"Operation '{operation}' failed", extra=error.to_dict())
    return error


def get_user_friendly_message(exception: Exception) -> str:
    """Get user-friendly error message for any exception."""
    if isinstance(exception, BrewNewsError):
        return exception.user_message

    return "An unexpected error occurred. Please try again later."
