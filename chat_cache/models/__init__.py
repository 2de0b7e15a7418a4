"""
Models Package - domain records shared by the cache, store and providers.
"""

from chat_cache.models.domain import (
    DEFAULT_SESSION_NAME,
    BatchItem,
    CompletionResult,
    Message,
    Sender,
    Session,
    new_id,
    single_partition_key,
)

__all__ = [
    "DEFAULT_SESSION_NAME",
    "BatchItem",
    "CompletionResult",
    "Message",
    "Sender",
    "Session",
    "new_id",
    "single_partition_key",
]
