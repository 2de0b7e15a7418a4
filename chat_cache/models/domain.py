"""
Domain Models - Sessions, Messages and batch items.

This module contains the value records that flow between the session cache,
the document store and the completion provider.

Documents are serialized with camelCase field names and carry a ``type``
discriminator ("Session" or "Message") so both kinds can live in the same
partitioned store and travel together in one batch.

Invariants:
- A Session's partition key (``session_id``) equals its ``id``.
- A Message's partition key is the ``session_id`` of its owning Session.
- A Message's ``timestamp`` is assigned by the store when it is persisted.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Iterable, Literal, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, Field, PrivateAttr, model_validator
from pydantic.alias_generators import to_camel

from chat_cache.core.exceptions import (
    InvalidArgumentError,
    MessageNotFoundError,
    PartitionMismatchError,
)


DEFAULT_SESSION_NAME = "New Chat"


def new_id() -> str:
    """Generate a fresh document identifier."""
    return str(uuid4())


class Sender(str, Enum):
    """Closed set of message authors."""

    USER = "User"
    ASSISTANT = "Assistant"


# =============================================================================
# Message Model
# =============================================================================


class Message(BaseModel):
    """
    One turn (user prompt or assistant response) within a Session.

    Messages are immutable; the prompt message's token count is back-filled
    by producing a copy with ``with_tokens()`` and replacing it in the session.

    Attributes:
        id: Unique message identifier.
        type: Document discriminator, always "Message".
        session_id: Owning session identifier (partition key).
        timestamp: Creation time, assigned by the store on persistence.
        sender: Who authored the message.
        tokens: Token count reported by the provider, None until known.
        text: Message content.

    Example:
        >>> prompt = Message(session_id="s-1", sender=Sender.USER, text="Hi")
        >>> prompt.tokens is None
        True
        >>> prompt.with_tokens(12).tokens
        12
    """

    id: str = Field(default_factory=new_id, description="Unique message identifier")
    type: Literal["Message"] = Field(default="Message", description="Document type")
    session_id: str = Field(..., min_length=1, description="Owning session (partition key)")
    timestamp: Optional[datetime] = Field(
        default=None,
        alias="timeStamp",
        description="Creation timestamp, assigned at persistence time",
    )
    sender: Sender = Field(..., description="Message author")
    tokens: Optional[int] = Field(
        default=None, ge=0, description="Token count, None until reported"
    )
    text: str = Field(default="", description="Message text content")

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    @property
    def partition_key(self) -> str:
        """Partition key of the message document."""
        return self.session_id

    def with_tokens(self, tokens: int) -> "Message":
        """Return a copy carrying the given token count."""
        return self.model_copy(update={"tokens": tokens})

    def with_timestamp(self, timestamp: datetime) -> "Message":
        """Return a copy carrying the given creation timestamp."""
        return self.model_copy(update={"timestamp": timestamp})


# =============================================================================
# Session Model
# =============================================================================


class Session(BaseModel):
    """
    A chat conversation with its own identity and cumulative token usage.

    ``messages`` is the cached history. It is excluded from serialization and
    is only populated once the cache has hydrated it or appended to it.

    Attributes:
        id: Unique session identifier.
        type: Document discriminator, always "Session".
        session_id: Partition key, always equal to ``id``.
        tokens_used: Cumulative prompt + completion tokens.
        name: Display name, a placeholder until summarized.
        messages: Cached messages in chronological order.
    """

    id: str = Field(default_factory=new_id, description="Unique session identifier")
    type: Literal["Session"] = Field(default="Session", description="Document type")
    session_id: Optional[str] = Field(
        default=None, description="Partition key, equal to id"
    )
    tokens_used: int = Field(default=0, ge=0, description="Cumulative token usage")
    name: str = Field(default=DEFAULT_SESSION_NAME, description="Display name")
    messages: list[Message] = Field(
        default_factory=list,
        exclude=True,
        description="Cached conversation history (never persisted)",
    )

    _hydrated: bool = PrivateAttr(default=False)

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    @model_validator(mode="after")
    def _check_partition_key(self) -> "Session":
        if self.session_id is None:
            self.session_id = self.id
        elif self.session_id != self.id:
            raise ValueError(
                f"Session partition key {self.session_id!r} must equal id {self.id!r}"
            )
        return self

    @property
    def partition_key(self) -> str:
        """Partition key of the session document."""
        return self.id

    @property
    def hydrated(self) -> bool:
        """Whether the message history has been loaded from the store."""
        return self._hydrated

    def mark_hydrated(self) -> None:
        self._hydrated = True

    def add_message(self, message: Message) -> None:
        """
        Append a message to the cached history.

        Raises:
            PartitionMismatchError: If the message belongs to another session.
        """
        if message.session_id != self.id:
            raise PartitionMismatchError(
                f"Message {message.id} belongs to session {message.session_id}, "
                f"not {self.id}",
                partition_keys={message.session_id, self.id},
            )
        self.messages.append(message)

    def update_message(self, message: Message) -> None:
        """
        Replace the cached message that has the same ID.

        Raises:
            MessageNotFoundError: If no cached message has that ID.
        """
        for index, cached in enumerate(self.messages):
            if cached.id == message.id:
                self.messages[index] = message
                return
        raise MessageNotFoundError(message.id, self.id)

    def add_tokens(self, *counts: Optional[int]) -> None:
        """Increase the cumulative token count, treating None as zero."""
        self.tokens_used += sum(count or 0 for count in counts)


# =============================================================================
# Batch Items
# =============================================================================


# Tagged variant: a batch mixes session and message documents.
BatchItem = Annotated[Union[Session, Message], Field(discriminator="type")]


def single_partition_key(items: Iterable[Union[Session, Message]]) -> str:
    """
    Return the partition key shared by every item of a batch.

    Raises:
        InvalidArgumentError: If the batch is empty.
        PartitionMismatchError: If items span more than one partition key.
    """
    keys = {item.partition_key for item in items}
    if not keys:
        raise InvalidArgumentError("Batch must contain at least one item", field="items")
    if len(keys) > 1:
        raise PartitionMismatchError(
            "All items must have the same partition key.", partition_keys=keys
        )
    return keys.pop()


# =============================================================================
# Completion Result
# =============================================================================


class CompletionResult(BaseModel):
    """
    A completion provider's answer with its token usage.

    Attributes:
        text: Response text.
        prompt_tokens: Tokens consumed by the prompt.
        response_tokens: Tokens produced in the response.
    """

    text: str = Field(..., description="Response text")
    prompt_tokens: int = Field(default=0, ge=0, description="Prompt token count")
    response_tokens: int = Field(default=0, ge=0, description="Response token count")

    model_config = {"frozen": True}
