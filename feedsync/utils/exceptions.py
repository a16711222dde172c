"""
FeedSync Custom Exceptions
=========================

Custom exception hierarchy for FeedSync with error codes, context
information, and user-friendly error messages.

Single-feed operations raise these with the original cause chained; the
batch coordinator collects them instead of propagating.
"""

from typing import Optional, Dict, Any
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for categorizing exceptions."""

    # Configuration errors (C001-C099)
    CONFIG_INVALID = "C001"
    CONFIG_MISSING = "C002"

    # Database errors (D001-D099)
    DATABASE_CONNECTION = "D001"
    DATABASE_SCHEMA = "D002"
    DATABASE_CONSTRAINT = "D003"
    DATABASE_TRANSACTION = "D004"
    DATABASE_ERROR = "D006"

    # Feed errors (F001-F099)
    FEED_INVALID_URL = "F001"
    FEED_FETCH_TIMEOUT = "F002"
    FEED_PARSE_ERROR = "F003"
    FEED_NETWORK_ERROR = "F004"
    FEED_FETCH_CANCELLED = "F005"
    FEED_NOT_FOUND = "F006"
    FEED_HTTP_ERROR = "F007"
    FEED_UPDATE_FAILED = "F008"

    # Validation errors (V001-V099)
    VALIDATION_REQUIRED_FIELD = "V001"
    VALIDATION_INVALID_FORMAT = "V002"
    VALIDATION_OUT_OF_RANGE = "V003"
    VALIDATION_DUPLICATE = "V004"

    # Resource management errors (R001-R099)
    DUPLICATE_RESOURCE = "R001"
    RESOURCE_NOT_FOUND = "R002"


class FeedSyncError(Exception):
    """Base exception for all FeedSync errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        context: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        recoverable: bool = False,
    ):
        """Initialize FeedSync error.

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


class ConfigurationError(FeedSyncError):
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


class DatabaseError(FeedSyncError):
    """Database-related errors."""

    def __init__(self, message: str, query: Optional[str] = None, **kwargs):
        """Initialize database error.

        Args:
            message: Error message
            query: SQL query that caused the error
            **kwargs: Additional arguments for FeedSyncError
        """
        context = kwargs.pop("context", {})
        if query:
            context["query"] = query

        super().__init__(
            message=message,
            error_code=kwargs.pop("error_code", ErrorCode.DATABASE_CONNECTION),
            context=context,
            user_message=kwargs.pop("user_message", "Database operation failed"),
            recoverable=kwargs.pop("recoverable", True),
            **kwargs,
        )


class DuplicateEntryError(DatabaseError):
    """An entry URL is already stored.

    Raised by the storage layer only as a safety net; the sync engine looks
    up URLs before inserting.
    """

    def __init__(self, message: str, entry_url: str, **kwargs):
        context = kwargs.pop("context", {})
        context["entry_url"] = entry_url
        self.entry_url = entry_url

        super().__init__(
            message=message,
            error_code=kwargs.pop("error_code", ErrorCode.DATABASE_CONSTRAINT),
            context=context,
            recoverable=False,
            **kwargs,
        )


class ValidationError(FeedSyncError):
    """Data validation errors."""

    def __init__(self, message: str, field_name: Optional[str] = None, **kwargs):
        """Initialize validation error.

        Args:
            message: Error message
            field_name: Field name that failed validation
            **kwargs: Additional arguments for FeedSyncError
        """
        context = kwargs.pop("context", {})
        if field_name:
            context["field_name"] = field_name

        super().__init__(
            message=message,
            error_code=kwargs.pop("error_code", ErrorCode.VALIDATION_INVALID_FORMAT),
            context=context,
            user_message=kwargs.pop(
                "user_message", f"Invalid {field_name or 'input'}: {message}"
            ),
            recoverable=kwargs.pop("recoverable", False),
            **kwargs,
        )


class FeedError(FeedSyncError):
    """Feed lifecycle and synchronization errors."""

    def __init__(self, message: str, feed_url: Optional[str] = None, **kwargs):
        """Initialize feed error.

        Args:
            message: Error message
            feed_url: Feed URL that caused the error
            **kwargs: Additional arguments for FeedSyncError
        """
        context = kwargs.pop("context", {})
        if feed_url:
            context["feed_url"] = feed_url
        self.feed_url = feed_url

        super().__init__(
            message=message,
            error_code=kwargs.pop("error_code", ErrorCode.FEED_NETWORK_ERROR),
            context=context,
            user_message=kwargs.pop(
                "user_message", f"Feed processing failed: {message}"
            ),
            recoverable=kwargs.pop("recoverable", True),
            **kwargs,
        )


class DuplicateFeedError(FeedError):
    """A feed with the same URL is already subscribed."""

    def __init__(self, feed_url: str, **kwargs):
        super().__init__(
            f"Feed already exists: {feed_url}",
            feed_url=feed_url,
            error_code=ErrorCode.DUPLICATE_RESOURCE,
            user_message=f"Already subscribed to {feed_url}",
            recoverable=False,
            **kwargs,
        )


class FeedNotFoundError(FeedError):
    """No feed exists with the requested ID."""

    def __init__(self, feed_id: int, **kwargs):
        context = kwargs.pop("context", {})
        context["feed_id"] = feed_id
        self.feed_id = feed_id

        super().__init__(
            f"Feed not found: {feed_id}",
            error_code=ErrorCode.RESOURCE_NOT_FOUND,
            context=context,
            user_message=f"No feed with ID {feed_id}",
            recoverable=False,
            **kwargs,
        )


def _failure_code(failure: Any) -> ErrorCode:
    """Error code carried by a fetch or parse failure value."""
    return getattr(failure, "error_code", ErrorCode.FEED_UPDATE_FAILED)


class FeedUnreachableError(FeedError):
    """Adding a feed failed while fetching or parsing its document.

    ``failure`` is the ``FetchFailure`` or ``ParseFailure`` that stopped
    the add, so callers can tell "unreachable" from "reached but garbage".
    """

    def __init__(self, feed_url: str, failure: Any, **kwargs):
        self.failure = failure
        context = kwargs.pop("context", {})
        context["failure"] = str(failure)

        super().__init__(
            f"Failed to fetch feed {feed_url}: {failure}",
            feed_url=feed_url,
            error_code=_failure_code(failure),
            context=context,
            user_message=f"Could not add {feed_url}: {failure}",
            **kwargs,
        )


class FeedUpdateError(FeedError):
    """Refreshing a stored feed failed while fetching or parsing."""

    def __init__(self, feed_id: int, feed_url: str, failure: Any, **kwargs):
        self.feed_id = feed_id
        self.failure = failure
        context = kwargs.pop("context", {})
        context["feed_id"] = feed_id
        context["failure"] = str(failure)

        super().__init__(
            f"Failed to update feed {feed_id}: {feed_url}: {failure}",
            feed_url=feed_url,
            error_code=_failure_code(failure),
            context=context,
            user_message=f"Could not refresh {feed_url}: {failure}",
            **kwargs,
        )


def get_user_friendly_message(exception: Exception) -> str:
    """Get user-friendly error message for any exception.

    Args:
        exception: Exception to get message for

    Returns:
        User-friendly error message
    """
    if isinstance(exception, FeedSyncError):
        return exception.user_message

    return "An unexpected error occurred. Please try again later."
