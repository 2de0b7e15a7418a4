"""
Document Store Interface - Persistence Gateway port

This module defines the abstract base class for the partitioned document store
that durably holds sessions and messages. The store keeps no in-memory state;
it is a request/response facade and the source of truth when the cache is
cold.

Every document is partitioned by its session identifier. Batches (upserts and
the cascading delete) are atomic within one partition.

Pattern: Ports and Adapters - DocumentStore is the port,
RedisDocumentStore is the adapter.
"""

from abc import ABC, abstractmethod
from typing import Sequence, Union

from chat_cache.models.domain import Message, Session


class DocumentStore(ABC):
    """
    Abstract base class for session/message persistence.

    Implementations translate backend failures into PersistenceError.
    """

    @abstractmethod
    async def insert_session(self, session: Session) -> Session:
        """
        Create a new session document.

        Raises:
            PersistenceError: If the document exists or the backend fails.
        """
        ...

    @abstractmethod
    async def insert_message(self, message: Message) -> Message:
        """
        Create a new message document.

        The store assigns the creation timestamp and returns the stored copy.

        Raises:
            PersistenceError: If the document exists or the backend fails.
        """
        ...

    @abstractmethod
    async def list_sessions(self) -> list[Session]:
        """Return every session, in creation order, without messages."""
        ...

    @abstractmethod
    async def list_session_messages(self, session_id: str) -> list[Message]:
        """Return the messages of one session in chronological order."""
        ...

    @abstractmethod
    async def update_session(self, session: Session) -> Session:
        """
        Replace an existing session document (full replace by identity).

        Raises:
            PersistenceError: If the document does not exist or the backend fails.
        """
        ...

    @abstractmethod
    async def upsert_batch(
        self, items: Sequence[Union[Session, Message]]
    ) -> list[Union[Session, Message]]:
        """
        Create or replace several documents in one atomic batch.

        Messages without a timestamp are stamped by the store. Returns the
        stored documents.

        Raises:
            InvalidArgumentError: If the batch is empty.
            PartitionMismatchError: If items span more than one partition key.
            PersistenceError: If the backend fails.
        """
        ...

    @abstractmethod
    async def delete_session_and_messages(self, session_id: str) -> None:
        """
        Delete a session and every document sharing its partition key,
        atomically.

        Raises:
            PersistenceError: If the backend fails.
        """
        ...
