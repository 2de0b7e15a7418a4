"""
Core module for the chat session cache.

This module contains configuration, exceptions, and shared utilities.
"""

from chat_cache.core.config import (
    DEFAULT_MAX_CONVERSATION_TOKENS,
    Settings,
    get_settings,
    resolve_max_conversation_tokens,
)
from chat_cache.core.exceptions import (
    AuthenticationError,
    ChatCacheException,
    ErrorCode,
    InvalidArgumentError,
    MessageNotFoundError,
    NotFoundError,
    PartitionMismatchError,
    PersistenceError,
    ProviderError,
    RateLimitError,
    SessionNotFoundError,
    UpstreamError,
    require_id,
)

__all__ = [
    # Config
    "DEFAULT_MAX_CONVERSATION_TOKENS",
    "Settings",
    "get_settings",
    "resolve_max_conversation_tokens",
    # Exceptions
    "ErrorCode",
    "ChatCacheException",
    "InvalidArgumentError",
    "PartitionMismatchError",
    "NotFoundError",
    "SessionNotFoundError",
    "MessageNotFoundError",
    "UpstreamError",
    "PersistenceError",
    "ProviderError",
    "AuthenticationError",
    "RateLimitError",
    "require_id",
]
