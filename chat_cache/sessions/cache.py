"""
Session Cache - in-process mirror of sessions and their messages.

The cache is an explicit object owned by the ChatService instance (never a
module-level variable). It keeps sessions in insertion order, keyed by
identifier, and hands out one asyncio.Lock per session so that every
read-modify-write sequence on a session can run exclusively.

The cache is coherent for a single process only; several processes sharing
one document store will each hold their own, diverging copy.
"""

import asyncio
from collections import Counter, OrderedDict
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable, Optional

from chat_cache.core.exceptions import SessionNotFoundError
from chat_cache.models.domain import Session
from chat_cache.observability.metrics import set_sessions_cached


class SessionCache:
    """
    Ordered, identifier-keyed collection of cached sessions.

    Lookups never fault on a missing key: ``get`` returns None and ``require``
    raises SessionNotFoundError.

    Example:
        >>> cache = SessionCache()
        >>> cache.add(Session())
        >>> async with cache.locked(session.id):
        ...     cache.require(session.id).name = "Renamed"
    """

    def __init__(self, sessions: Optional[Iterable[Session]] = None) -> None:
        self._sessions: OrderedDict[str, Session] = OrderedDict()
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: Counter[str] = Counter()
        if sessions is not None:
            self.replace_all(sessions)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    @property
    def is_empty(self) -> bool:
        return not self._sessions

    def sessions(self) -> list[Session]:
        """Return the cached sessions in order."""
        return list(self._sessions.values())

    def get(self, session_id: str) -> Optional[Session]:
        """Return the cached session or None."""
        return self._sessions.get(session_id)

    def require(self, session_id: str) -> Session:
        """
        Return the cached session.

        Raises:
            SessionNotFoundError: If the session is not cached.
        """
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def add(self, session: Session) -> None:
        """Append a session to the cache."""
        self._sessions[session.id] = session
        set_sessions_cached(len(self._sessions))

    def remove(self, session_id: str) -> Session:
        """
        Remove and return a cached session.

        The session's lock outlives it while callers still hold or wait on
        it; the last of them to leave ``locked`` drops it.

        Raises:
            SessionNotFoundError: If the session is not cached.
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFoundError(session_id)
        set_sessions_cached(len(self._sessions))
        return session

    def replace_all(self, sessions: Iterable[Session]) -> None:
        """
        Replace the whole session collection.

        Hydrated message histories of the previous entries are discarded, as
        are the idle locks of sessions that are no longer cached.
        """
        self._sessions = OrderedDict((session.id, session) for session in sessions)
        set_sessions_cached(len(self._sessions))

        for session_id in list(self._locks):
            if session_id not in self._sessions and not self._lock_users[session_id]:
                del self._locks[session_id]

    @asynccontextmanager
    async def locked(self, session_id: str) -> AsyncIterator[None]:
        """
        Hold the lock guarding one session.

        Waiters count as users: a lock is only dropped once nobody holds or
        waits on it and its session is no longer cached.
        """
        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = asyncio.Lock()
        self._lock_users[session_id] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[session_id] -= 1
            if not self._lock_users[session_id]:
                del self._lock_users[session_id]
                if session_id not in self._sessions:
                    self._locks.pop(session_id, None)
