"""
Persistence Package - Persistence Gateway for sessions and messages.

DocumentStore is the port consumed by the conversation engine;
RedisDocumentStore is the Redis-backed adapter.
"""

from chat_cache.persistence.base import DocumentStore
from chat_cache.persistence.redis_store import RedisDocumentStore

__all__ = [
    "DocumentStore",
    "RedisDocumentStore",
]
