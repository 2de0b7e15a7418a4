"""
Unit tests for chat_cache/core/exceptions.py - error taxonomy.
"""

import pytest


class TestExceptionHierarchy:
    """Every error derives from ChatCacheException with a stable code."""

    def test_partition_mismatch_is_invalid_argument(self):
        from chat_cache.core.exceptions import (
            ErrorCode,
            InvalidArgumentError,
            PartitionMismatchError,
        )

        error = PartitionMismatchError("mixed", partition_keys={"b", "a"})

        assert isinstance(error, InvalidArgumentError)
        assert error.error_code == ErrorCode.PARTITION_MISMATCH
        assert error.partition_keys == ["a", "b"]
        assert error.field == "items"

    def test_session_not_found_carries_id(self):
        from chat_cache.core.exceptions import (
            ErrorCode,
            NotFoundError,
            SessionNotFoundError,
        )

        error = SessionNotFoundError("s-404")

        assert isinstance(error, NotFoundError)
        assert error.session_id == "s-404"
        assert error.error_code == ErrorCode.NOT_FOUND
        assert "s-404" in str(error)

    def test_message_not_found(self):
        from chat_cache.core.exceptions import MessageNotFoundError, NotFoundError

        error = MessageNotFoundError("m-1", "s-1")

        assert isinstance(error, NotFoundError)
        assert error.message_id == "m-1"
        assert error.session_id == "s-1"

    def test_upstream_errors(self):
        from chat_cache.core.exceptions import (
            AuthenticationError,
            ErrorCode,
            PersistenceError,
            ProviderError,
            RateLimitError,
            UpstreamError,
        )

        persistence = PersistenceError("boom", operation="insert_session")
        provider = ProviderError("boom", provider="openai", status_code=500)
        auth = AuthenticationError("bad key", provider="openai")
        rate = RateLimitError("slow down", retry_after=3)

        assert all(
            isinstance(e, UpstreamError) for e in (persistence, provider, auth, rate)
        )
        assert persistence.operation == "insert_session"
        assert persistence.error_code == ErrorCode.PERSISTENCE_ERROR
        assert provider.status_code == 500
        assert auth.status_code == 401
        assert rate.status_code == 429
        assert rate.retry_after == 3
        assert rate.provider == "openai"

    def test_extra_kwargs_become_attributes(self):
        from chat_cache.core.exceptions import ChatCacheException

        error = ChatCacheException("oops", detail="more")

        assert error.detail == "more"
        assert error.message == "oops"


class TestRequireId:
    """require_id rejects missing identifiers."""

    @pytest.mark.parametrize("value", [None, ""])
    def test_missing_id_raises(self, value):
        from chat_cache.core.exceptions import InvalidArgumentError, require_id

        with pytest.raises(InvalidArgumentError) as exc_info:
            require_id(value)

        assert exc_info.value.field == "session_id"

    def test_present_id_is_returned(self):
        from chat_cache.core.exceptions import require_id

        assert require_id("s-1") == "s-1"
