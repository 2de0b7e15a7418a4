"""
Pytest configuration for the chat cache test suite.

Reference:
- FakeRepository pattern (Percival & Gregory p. 157): fakeredis stands in for
  Redis, FakeCompletionProvider for the completion endpoint.

This configuration sets up:
- Test discovery paths
- Shared fixtures for the store, provider, cache and service
- Test markers for categorization
"""

import sys
from pathlib import Path

import pytest
import pytest_asyncio
import fakeredis
import fakeredis.aioredis

# Add project root to Python path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


# =============================================================================
# Test Markers
# =============================================================================


def pytest_configure(config):
    """
    Register custom markers for test categorization.

    - unit: Tests for individual components
    - integration: Tests wiring several components together
    """
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests for service interactions")


# =============================================================================
# Settings
# =============================================================================


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Make every test read settings from a clean environment snapshot."""
    from chat_cache.core.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def test_settings():
    """
    Settings configured for testing.

    Returns:
        Settings: Safe defaults with a fake API key.
    """
    from chat_cache.core.config import Settings

    return Settings(
        service_name="chat-cache-test",
        environment="development",
        redis_url="redis://localhost:6379",
        redis_key_prefix="test:",
        openai_api_key="test-openai-key",
        openai_model="gpt-4o",
        max_conversation_tokens=4000,
    )


# =============================================================================
# FakeRedis / Document Store
# =============================================================================


@pytest_asyncio.fixture
async def fake_redis():
    """
    Provide a fake Redis client for testing.

    Pattern: FakeRepository - test doubles without complex mocking
    """
    redis = fakeredis.aioredis.FakeRedis(
        server=fakeredis.FakeServer(), decode_responses=True
    )
    yield redis
    await redis.aclose()


@pytest_asyncio.fixture
async def document_store(fake_redis):
    """Provide a RedisDocumentStore backed by fakeredis."""
    from chat_cache.persistence.redis_store import RedisDocumentStore

    return RedisDocumentStore(redis_client=fake_redis, key_prefix="test:")


# =============================================================================
# Completion Provider
# =============================================================================


@pytest.fixture
def fake_provider():
    """Provide a FakeCompletionProvider with fixed token counts."""
    from chat_cache.providers.fake import FakeCompletionProvider

    return FakeCompletionProvider(
        response_content="Answer",
        summary="Redis Caching",
        prompt_tokens=12,
        response_tokens=8,
    )


# =============================================================================
# Chat Service
# =============================================================================


@pytest_asyncio.fixture
async def chat_service(document_store, fake_provider):
    """Provide a ChatService over fakeredis and the fake provider."""
    from chat_cache.services.chat import ChatService

    return ChatService(store=document_store, provider=fake_provider)
