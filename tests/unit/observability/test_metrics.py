"""
Tests for Prometheus Metrics.

Covers token usage, cache hit/miss/cold counters and the cached sessions
gauge, including the counters recorded by ChatService.
"""

import pytest


def _cache_count(result: str) -> float:
    from chat_cache.observability.metrics import CACHE_OPERATIONS_TOTAL

    return CACHE_OPERATIONS_TOTAL.labels(result=result)._value.get()


class TestMetricDefinitions:
    def test_metric_names_in_exposition(self) -> None:
        from chat_cache.observability.metrics import (
            generate_metrics,
            record_cache_operation,
            record_token_usage,
        )

        record_token_usage("gpt-4o", "prompt", 1)
        record_cache_operation("hit")

        output = generate_metrics()

        assert "chat_cache_tokens_total" in output
        assert "chat_cache_cache_operations_total" in output
        assert "chat_cache_sessions_cached" in output

    def test_record_token_usage(self) -> None:
        from chat_cache.observability.metrics import TOKEN_USAGE_TOTAL, record_token_usage

        counter = TOKEN_USAGE_TOTAL.labels(model="metrics-test", type="completion")
        before = counter._value.get()

        record_token_usage("metrics-test", "completion", 25)

        assert counter._value.get() == before + 25

    def test_set_sessions_cached(self) -> None:
        from chat_cache.observability.metrics import SESSIONS_CACHED, set_sessions_cached

        set_sessions_cached(7)

        assert SESSIONS_CACHED._value.get() == 7


class TestServiceCacheMetrics:
    @pytest.mark.asyncio
    async def test_cold_read(self, chat_service) -> None:
        before = _cache_count("cold")

        await chat_service.get_session_messages("s-1")

        assert _cache_count("cold") == before + 1

    @pytest.mark.asyncio
    async def test_miss_then_hit(self, chat_service, document_store) -> None:
        from chat_cache.models.domain import Session

        session = await document_store.insert_session(Session())
        await chat_service.list_sessions()
        misses, hits = _cache_count("miss"), _cache_count("hit")

        await chat_service.get_session_messages(session.id)
        await chat_service.get_session_messages(session.id)

        assert _cache_count("miss") == misses + 1
        assert _cache_count("hit") == hits + 1
