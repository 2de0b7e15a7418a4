"""
Custom exceptions for the chat session cache.

This module provides a hierarchy of custom exceptions. All exceptions inherit
from ChatCacheException and include error codes for consistent error handling.

Taxonomy:
- InvalidArgumentError: a required identifier is missing
- PartitionMismatchError: batch items span more than one partition key
- NotFoundError: an identifier is not present in the cache
- UpstreamError: the document store or completion endpoint failed

No layer retries on these except the completion provider itself. Cache
mutations applied before an UpstreamError are not rolled back.
"""

from enum import Enum
from typing import Any, Optional, Sequence


# =============================================================================
# Error Codes Enum
# =============================================================================


class ErrorCode(str, Enum):
    """
    Error codes for chat cache exceptions.

    These codes provide a consistent way to identify error types
    in callers and in logging.
    """

    CHAT_CACHE_ERROR = "CHAT_CACHE_ERROR"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    PARTITION_MISMATCH = "PARTITION_MISMATCH"
    NOT_FOUND = "NOT_FOUND"
    UPSTREAM_FAILURE = "UPSTREAM_FAILURE"
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"
    PROVIDER_ERROR = "PROVIDER_ERROR"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    RATE_LIMIT_ERROR = "RATE_LIMIT_ERROR"


# =============================================================================
# Base Exception
# =============================================================================


class ChatCacheException(Exception):
    """
    Base exception for all chat cache errors.

    Attributes:
        message: Human-readable error message.
        error_code: Machine-readable error code from ErrorCode enum.
    """

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCode.CHAT_CACHE_ERROR,
        **kwargs: Any,
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error message.
            error_code: Machine-readable error code.
            **kwargs: Additional attributes to set on the exception.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code

        for key, value in kwargs.items():
            setattr(self, key, value)


# =============================================================================
# InvalidArgument
# =============================================================================


class InvalidArgumentError(ChatCacheException):
    """
    Exception for missing or malformed arguments.

    Attributes:
        field: Name of the offending argument (if known).
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        error_code: str = ErrorCode.INVALID_ARGUMENT,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.field = field


class PartitionMismatchError(InvalidArgumentError):
    """
    Raised when the items of one batch do not share a single partition key.

    Attributes:
        partition_keys: The distinct partition keys found in the batch.
    """

    def __init__(
        self,
        message: str,
        partition_keys: Sequence[str] = (),
        error_code: str = ErrorCode.PARTITION_MISMATCH,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, field="items", error_code=error_code, **kwargs)
        self.partition_keys = sorted(partition_keys)


def require_id(value: Optional[str], field: str = "session_id") -> str:
    """
    Ensure a required identifier is present.

    Args:
        value: The identifier to check.
        field: Argument name used in the error.

    Returns:
        The identifier unchanged.

    Raises:
        InvalidArgumentError: If the identifier is None or empty.
    """
    if not value:
        raise InvalidArgumentError(f"{field} is required", field=field)
    return value


# =============================================================================
# NotFound
# =============================================================================


class NotFoundError(ChatCacheException):
    """Exception for identifiers that are not present in the cache."""

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCode.NOT_FOUND,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)


class SessionNotFoundError(NotFoundError):
    """
    Raised when a session identifier is not in the cache.

    Attributes:
        session_id: ID of the missing session.
    """

    def __init__(self, session_id: str, **kwargs: Any) -> None:
        super().__init__(f"Session not found: {session_id}", **kwargs)
        self.session_id = session_id


class MessageNotFoundError(NotFoundError):
    """
    Raised when a message cannot be replaced because its ID is not cached.

    Attributes:
        message_id: ID of the missing message.
        session_id: ID of the session that was searched.
    """

    def __init__(self, message_id: str, session_id: str, **kwargs: Any) -> None:
        super().__init__(
            f"Message {message_id} not found in session {session_id}", **kwargs
        )
        self.message_id = message_id
        self.session_id = session_id


# =============================================================================
# UpstreamFailure
# =============================================================================


class UpstreamError(ChatCacheException):
    """Exception for failed calls to the document store or completion endpoint."""

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCode.UPSTREAM_FAILURE,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)


class PersistenceError(UpstreamError):
    """
    Exception for document store failures.

    Attributes:
        operation: The store operation that failed (e.g., "insert_session").
    """

    def __init__(
        self,
        message: str,
        operation: str,
        error_code: str = ErrorCode.PERSISTENCE_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.operation = operation


class ProviderError(UpstreamError):
    """
    Exception for completion provider issues.

    Raised when communication with the completion endpoint fails,
    including API errors, timeouts, and authentication issues.

    Attributes:
        provider: Name of the provider (e.g., "openai").
        status_code: HTTP status code from the provider API (if applicable).
    """

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: Optional[int] = None,
        error_code: str = ErrorCode.PROVIDER_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.provider = provider
        self.status_code = status_code


class AuthenticationError(ProviderError):
    """Raised when the provider rejects the configured credentials."""

    def __init__(
        self,
        message: str,
        provider: str,
        error_code: str = ErrorCode.AUTHENTICATION_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message, provider, status_code=401, error_code=error_code, **kwargs
        )


class RateLimitError(ProviderError):
    """
    Raised when the provider keeps rate limiting after all retries.

    Attributes:
        retry_after: Seconds until the rate limit resets (if reported).
    """

    def __init__(
        self,
        message: str,
        provider: str = "openai",
        retry_after: Optional[int] = None,
        error_code: str = ErrorCode.RATE_LIMIT_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message, provider, status_code=429, error_code=error_code, **kwargs
        )
        self.retry_after = retry_after
