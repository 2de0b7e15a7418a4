"""
Redis Document Store - Persistence Gateway adapter

This module stores sessions and messages as JSON documents in Redis,
partitioned by session identifier.

Key layout (``prefix`` defaults to settings.redis_key_prefix):
- ``{prefix}doc:{partition}:{id}``  JSON document (Session or Message)
- ``{prefix}partition:{partition}`` sorted set of document ids in the
  partition, scored by creation time
- ``{prefix}sessions``              sorted set of session ids, scored by
  creation time

Multi-document writes run inside a MULTI/EXEC transaction, which gives the
all-or-nothing batch semantics of a single-partition transactional batch.

Pattern: Repository pattern (Percival & Gregory pp. 86)
Pattern: Dependency injection for Redis client (Sinha pp. 89-90)
"""

import time
from datetime import datetime, timezone
from typing import Optional, Sequence, Union

from pydantic import TypeAdapter
from redis.asyncio import Redis

from chat_cache.core.config import get_settings
from chat_cache.core.exceptions import PersistenceError
from chat_cache.models.domain import (
    BatchItem,
    Message,
    Session,
    single_partition_key,
)
from chat_cache.persistence.base import DocumentStore


_document_adapter: TypeAdapter[Union[Session, Message]] = TypeAdapter(BatchItem)

# Session documents sort ahead of every message in their partition.
_SESSION_PARTITION_SCORE = 0.0


def _decode(value: Union[bytes, str]) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else value


class RedisDocumentStore(DocumentStore):
    """
    Redis-backed document store for sessions and messages.

    Implements the DocumentStore port. Every failure of the Redis client is
    re-raised as PersistenceError carrying the failed operation name.

    Attributes:
        _redis: The Redis client instance.
        _key_prefix: Prefix for Redis keys.

    Example:
        >>> import redis.asyncio as redis
        >>> client = redis.from_url("redis://localhost:6379")
        >>> store = RedisDocumentStore(redis_client=client)
        >>> await store.insert_session(Session())
    """

    def __init__(
        self,
        redis_client: Redis,
        key_prefix: Optional[str] = None,
    ) -> None:
        """
        Initialize the store with a Redis client.

        Args:
            redis_client: Async Redis client instance.
            key_prefix: Prefix for all keys. Defaults to settings.redis_key_prefix.
        """
        self._redis: Redis = redis_client
        if key_prefix is None:
            key_prefix = get_settings().redis_key_prefix
        self._key_prefix: str = key_prefix

    # =========================================================================
    # Key helpers
    # =========================================================================

    def _doc_key(self, partition_key: str, document_id: str) -> str:
        return f"{self._key_prefix}doc:{partition_key}:{document_id}"

    def _partition_key(self, partition_key: str) -> str:
        return f"{self._key_prefix}partition:{partition_key}"

    def _sessions_key(self) -> str:
        return f"{self._key_prefix}sessions"

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    @staticmethod
    def _serialize(item: Union[Session, Message]) -> str:
        return item.model_dump_json(by_alias=True)

    def _stamp(self, item: Union[Session, Message]) -> Union[Session, Message]:
        """Assign the server timestamp to messages that do not carry one."""
        if isinstance(item, Message) and item.timestamp is None:
            return item.with_timestamp(self._now())
        return item

    # =========================================================================
    # Inserts
    # =========================================================================

    async def insert_session(self, session: Session) -> Session:
        """
        Create a new session document.

        Raises:
            PersistenceError: If the session already exists or Redis fails.
        """
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.set(
                    self._doc_key(session.partition_key, session.id),
                    self._serialize(session),
                    nx=True,
                )
                pipe.zadd(
                    self._partition_key(session.partition_key),
                    {session.id: _SESSION_PARTITION_SCORE},
                    nx=True,
                )
                pipe.zadd(self._sessions_key(), {session.id: time.time()}, nx=True)
                created, _, _ = await pipe.execute()
        except Exception as e:
            raise PersistenceError(
                f"Failed to insert session {session.id}: {e}",
                operation="insert_session",
            ) from e

        if not created:
            raise PersistenceError(
                f"Session {session.id} already exists", operation="insert_session"
            )
        return session

    async def insert_message(self, message: Message) -> Message:
        """
        Create a new message document with a server-assigned timestamp.

        Returns:
            The stored copy of the message, carrying its timestamp.

        Raises:
            PersistenceError: If the message already exists or Redis fails.
        """
        stored = message.with_timestamp(self._now())
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.set(
                    self._doc_key(stored.partition_key, stored.id),
                    self._serialize(stored),
                    nx=True,
                )
                pipe.zadd(
                    self._partition_key(stored.partition_key),
                    {stored.id: stored.timestamp.timestamp()},
                    nx=True,
                )
                created, _ = await pipe.execute()
        except Exception as e:
            raise PersistenceError(
                f"Failed to insert message {message.id}: {e}",
                operation="insert_message",
            ) from e

        if not created:
            raise PersistenceError(
                f"Message {message.id} already exists", operation="insert_message"
            )
        return stored

    # =========================================================================
    # Queries
    # =========================================================================

    async def list_sessions(self) -> list[Session]:
        """Return every stored session in creation order."""
        try:
            ids = [_decode(i) for i in await self._redis.zrange(self._sessions_key(), 0, -1)]
            if not ids:
                return []
            documents = await self._redis.mget([self._doc_key(i, i) for i in ids])
            return [
                Session.model_validate_json(document)
                for document in documents
                if document is not None
            ]
        except Exception as e:
            raise PersistenceError(
                f"Failed to list sessions: {e}", operation="list_sessions"
            ) from e

    async def list_session_messages(self, session_id: str) -> list[Message]:
        """Return the messages of a session in chronological order."""
        try:
            ids = [
                _decode(i)
                for i in await self._redis.zrange(self._partition_key(session_id), 0, -1)
            ]
            if not ids:
                return []
            documents = await self._redis.mget(
                [self._doc_key(session_id, i) for i in ids]
            )
            items = [
                _document_adapter.validate_json(document)
                for document in documents
                if document is not None
            ]
        except Exception as e:
            raise PersistenceError(
                f"Failed to list messages of session {session_id}: {e}",
                operation="list_session_messages",
            ) from e

        return [item for item in items if isinstance(item, Message)]

    # =========================================================================
    # Updates
    # =========================================================================

    async def update_session(self, session: Session) -> Session:
        """
        Replace an existing session document.

        Raises:
            PersistenceError: If the session does not exist or Redis fails.
        """
        try:
            replaced = await self._redis.set(
                self._doc_key(session.partition_key, session.id),
                self._serialize(session),
                xx=True,
            )
        except Exception as e:
            raise PersistenceError(
                f"Failed to update session {session.id}: {e}",
                operation="update_session",
            ) from e

        if not replaced:
            raise PersistenceError(
                f"Session {session.id} does not exist", operation="update_session"
            )
        return session

    async def upsert_batch(
        self, items: Sequence[Union[Session, Message]]
    ) -> list[Union[Session, Message]]:
        """
        Create or replace documents of one partition in a single transaction.

        Returns:
            The stored documents, messages carrying their timestamps.

        Raises:
            InvalidArgumentError: If the batch is empty.
            PartitionMismatchError: If items span more than one partition key.
            PersistenceError: If Redis fails.
        """
        partition_key = single_partition_key(items)
        stored = [self._stamp(item) for item in items]

        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                for item in stored:
                    pipe.set(self._doc_key(partition_key, item.id), self._serialize(item))
                    if isinstance(item, Message):
                        score = item.timestamp.timestamp()
                    else:
                        score = _SESSION_PARTITION_SCORE
                        pipe.zadd(self._sessions_key(), {item.id: time.time()}, nx=True)
                    pipe.zadd(self._partition_key(partition_key), {item.id: score}, nx=True)
                await pipe.execute()
        except Exception as e:
            raise PersistenceError(
                f"Failed to upsert batch for partition {partition_key}: {e}",
                operation="upsert_batch",
            ) from e

        return stored

    # =========================================================================
    # Deletes
    # =========================================================================

    async def delete_session_and_messages(self, session_id: str) -> None:
        """
        Delete the session and every document in its partition atomically.

        Raises:
            PersistenceError: If Redis fails.
        """
        partition = self._partition_key(session_id)
        try:
            ids = {_decode(i) for i in await self._redis.zrange(partition, 0, -1)}
            ids.add(session_id)

            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.delete(*(self._doc_key(session_id, i) for i in sorted(ids)))
                pipe.delete(partition)
                pipe.zrem(self._sessions_key(), session_id)
                await pipe.execute()
        except Exception as e:
            raise PersistenceError(
                f"Failed to delete session {session_id}: {e}",
                operation="delete_session_and_messages",
            ) from e
