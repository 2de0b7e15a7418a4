"""
Chat Service - session cache and conversation engine.

This module implements the orchestration between the in-process session
cache, the document store and the completion provider.

Consistency model:
- The cache is filled on demand. ``list_sessions`` replaces it wholesale and
  each session's messages are hydrated from the store at most once.
- Every mutation is applied to the cache first, then persisted. There is no
  rollback: when a store or provider call fails, mutations already applied
  to the cache stay visible and the error propagates unchanged.
- All steps touching one session run under that session's lock, so message
  order in the cache matches the order completions were requested.

Pattern: Service Layer (orchestrates domain operations)
Pattern: Dependency Injection (store, provider, cache)
"""

import asyncio
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, AsyncIterator, Optional
from uuid import uuid4

from chat_cache.core.config import get_settings, resolve_max_conversation_tokens
from chat_cache.core.exceptions import require_id
from chat_cache.models.domain import CompletionResult, Message, Sender, Session
from chat_cache.observability.logging import (
    correlation_id_context,
    get_correlation_id,
    get_logger,
)
from chat_cache.observability.metrics import (
    CACHE_COLD,
    CACHE_HIT,
    CACHE_MISS,
    record_cache_operation,
)
from chat_cache.persistence.base import DocumentStore
from chat_cache.providers.base import CompletionProvider
from chat_cache.services.window import render_conversation, select_window
from chat_cache.sessions.cache import SessionCache


logger = get_logger(__name__)


class ChatService:
    """
    Service layer for chat sessions and completions.

    Attributes:
        _store: Document store for sessions and messages.
        _provider: Completion provider.
        _cache: In-process session cache owned by this service.
        _max_conversation_tokens: Token budget of the conversation window.
        _default_session_name: Name given to new sessions.

    Example:
        >>> service = ChatService(store=store, provider=provider)
        >>> session = await service.create_session()
        >>> answer = await service.get_chat_completion(session.id, "Hello!")
        >>> await service.summarize_session_name(session.id, "Hello!")
    """

    def __init__(
        self,
        store: DocumentStore,
        provider: CompletionProvider,
        max_conversation_tokens: Any = None,
        cache: Optional[SessionCache] = None,
        default_session_name: Optional[str] = None,
    ) -> None:
        """
        Initialize ChatService with dependencies.

        Args:
            store: Document store (persistence gateway).
            provider: Completion provider (completion gateway).
            max_conversation_tokens: Raw token budget. Values that are not a
                valid non-negative integer resolve to 4000. Defaults to
                settings.max_conversation_tokens.
            cache: Session cache to use. A fresh one is created if omitted.
            default_session_name: Placeholder name for new sessions.
                Defaults to settings.default_session_name.
        """
        settings = get_settings()
        if max_conversation_tokens is None:
            max_conversation_tokens = settings.max_conversation_tokens

        self._store = store
        self._provider = provider
        self._cache = cache if cache is not None else SessionCache()
        self._max_conversation_tokens = resolve_max_conversation_tokens(
            max_conversation_tokens
        )
        self._default_session_name = (
            default_session_name
            if default_session_name is not None
            else settings.default_session_name
        )
        self._listing = asyncio.Lock()

    @property
    def cache(self) -> SessionCache:
        return self._cache

    @property
    def max_conversation_tokens(self) -> int:
        return self._max_conversation_tokens

    @asynccontextmanager
    async def _locked_session(self, session_id: str) -> AsyncIterator[Session]:
        """Hold a session's lock and yield the cached session."""
        self._cache.require(session_id)
        async with self._cache.locked(session_id):
            yield self._cache.require(session_id)

    # =========================================================================
    # Session listing and hydration
    # =========================================================================

    async def list_sessions(self) -> list[Session]:
        """
        Load every session from the store, replacing the cached sessions.

        Hydrated message histories held before the call are dropped. The
        reload waits for every exchange running on a cached session, so no
        completion finishes against a session object the cache no longer holds.

        Returns:
            The sessions now cached, in store order.
        """
        async with self._listing, AsyncExitStack() as held:
            held_ids: set[str] = set()
            pending = {session.id for session in self._cache.sessions()}
            # Sessions created while waiting are held as well.
            while pending:
                for session_id in sorted(pending):
                    await held.enter_async_context(self._cache.locked(session_id))
                held_ids |= pending
                pending = {s.id for s in self._cache.sessions()} - held_ids

            sessions = await self._store.list_sessions()
            self._cache.replace_all(sessions)
        logger.info("sessions_listed", count=len(sessions))
        return self._cache.sessions()

    async def get_session_messages(self, session_id: Optional[str]) -> list[Message]:
        """
        Return a session's messages, hydrating them from the store once.

        A cold cache (no sessions listed or created yet) yields an empty list
        without touching the store.

        Args:
            session_id: The session identifier.

        Returns:
            Messages in chronological order.

        Raises:
            InvalidArgumentError: If session_id is missing.
            SessionNotFoundError: If the session is not cached.
        """
        session_id = require_id(session_id)

        if self._cache.is_empty:
            record_cache_operation(CACHE_COLD)
            return []

        async with self._locked_session(session_id) as session:
            if not session.messages and not session.hydrated:
                session.messages = await self._store.list_session_messages(session_id)
                session.mark_hydrated()
                record_cache_operation(CACHE_MISS)
                logger.debug(
                    "session_hydrated",
                    session_id=session_id,
                    messages=len(session.messages),
                )
            else:
                record_cache_operation(CACHE_HIT)

            return list(session.messages)

    # =========================================================================
    # Session lifecycle
    # =========================================================================

    async def create_session(self) -> Session:
        """
        Create a session, cache it, then persist it.

        If the insert fails the session stays cached and the error propagates.

        Returns:
            The new session.
        """
        session = Session(name=self._default_session_name)
        session.mark_hydrated()
        self._cache.add(session)

        await self._store.insert_session(session)
        logger.info("session_created", session_id=session.id)
        return session

    async def rename_session(self, session_id: Optional[str], new_name: str) -> Session:
        """
        Rename a cached session and persist the full session document.

        Raises:
            InvalidArgumentError: If session_id is missing.
            SessionNotFoundError: If the session is not cached.
        """
        session_id = require_id(session_id)

        async with self._locked_session(session_id) as session:
            session.name = new_name
            await self._store.update_session(session)

        logger.info("session_renamed", session_id=session_id, name=new_name)
        return session

    async def delete_session(self, session_id: Optional[str]) -> None:
        """
        Remove a session from the cache, then delete it and all its
        messages from the store.

        Raises:
            InvalidArgumentError: If session_id is missing.
            SessionNotFoundError: If the session is not cached.
        """
        session_id = require_id(session_id)

        async with self._locked_session(session_id):
            self._cache.remove(session_id)
            await self._store.delete_session_and_messages(session_id)

        logger.info("session_deleted", session_id=session_id)

    # =========================================================================
    # Completion
    # =========================================================================

    async def get_chat_completion(self, session_id: Optional[str], prompt: str) -> str:
        """
        Run one prompt/response exchange for a session.

        Steps, all under the session's lock:
        1. Append the prompt message (tokens unknown) and insert it.
        2. Build the token-budgeted conversation window.
        3. Ask the provider for a completion.
        4. Append the assistant message.
        5. Back-fill the prompt message's token count.
        6. Add prompt and response tokens to the session total.
        7. Upsert prompt, response and session in one batch.

        Args:
            session_id: The session identifier.
            prompt: User prompt text.

        Returns:
            The response text.

        Raises:
            InvalidArgumentError: If session_id is missing.
            SessionNotFoundError: If the session is not cached.
            UpstreamError: If the store or provider fails. Steps already
                applied to the cache are kept.
        """
        session_id = require_id(session_id)

        if get_correlation_id() is None:
            with correlation_id_context(str(uuid4())):
                return await self._complete(session_id, prompt)
        return await self._complete(session_id, prompt)

    async def _complete(self, session_id: str, prompt: str) -> str:
        async with self._locked_session(session_id) as session:
            prompt_message = await self._add_prompt_message(session, prompt)

            window = select_window(session.messages, self._max_conversation_tokens)
            logger.debug(
                "conversation_window_built",
                session_id=session_id,
                window_messages=len(window),
                history_messages=len(session.messages),
                budget=self._max_conversation_tokens,
            )

            result = await self._provider.get_chat_completion(
                session_id, render_conversation(window)
            )

            await self._add_prompt_completion_messages(session, prompt_message, result)

        logger.info(
            "chat_completion",
            session_id=session_id,
            prompt_tokens=result.prompt_tokens,
            response_tokens=result.response_tokens,
            tokens_used=session.tokens_used,
        )
        return result.text

    async def _add_prompt_message(self, session: Session, text: str) -> Message:
        """Append the user prompt to the cache and insert it individually."""
        prompt_message = Message(
            session_id=session.id, sender=Sender.USER, tokens=None, text=text
        )
        session.add_message(prompt_message)

        return await self._store.insert_message(prompt_message)

    async def _add_prompt_completion_messages(
        self,
        session: Session,
        prompt_message: Message,
        result: CompletionResult,
    ) -> None:
        """Record the response and token usage, then persist them as one batch."""
        completion_message = Message(
            session_id=session.id,
            sender=Sender.ASSISTANT,
            tokens=result.response_tokens,
            text=result.text,
        )
        session.add_message(completion_message)

        updated_prompt = prompt_message.with_tokens(result.prompt_tokens)
        session.update_message(updated_prompt)

        session.add_tokens(updated_prompt.tokens, completion_message.tokens)

        await self._store.upsert_batch([updated_prompt, completion_message, session])

    # =========================================================================
    # Summarization
    # =========================================================================

    async def summarize_session_name(self, session_id: Optional[str], prompt: str) -> str:
        """
        Ask the provider for a short label and rename the session with it.

        No retry here; if the provider fails the session keeps its name.

        Returns:
            The new session name.

        Raises:
            InvalidArgumentError: If session_id is missing.
            SessionNotFoundError: If the session is not cached.
            UpstreamError: If the provider or store fails.
        """
        session_id = require_id(session_id)

        label = await self._provider.summarize(session_id, prompt)
        await self.rename_session(session_id, label)
        return label
