"""
Service wiring - builds the ChatService and its collaborators from Settings.

Pattern: Factory functions for dependency injection (Sinha p. 90).
Each factory accepts ready-made collaborators so tests and embedding
applications can swap in fakes.
"""

from typing import Optional

import redis.asyncio as redis

from chat_cache.core.config import Settings, get_settings
from chat_cache.observability.logging import configure_logging
from chat_cache.persistence.base import DocumentStore
from chat_cache.persistence.redis_store import RedisDocumentStore
from chat_cache.providers.base import CompletionProvider
from chat_cache.providers.openai import OpenAICompletionProvider
from chat_cache.services.chat import ChatService


def create_redis_client(settings: Optional[Settings] = None) -> redis.Redis:
    """Create the async Redis client for the document store."""
    settings = settings or get_settings()
    return redis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )


def create_document_store(
    settings: Optional[Settings] = None,
    redis_client: Optional[redis.Redis] = None,
) -> DocumentStore:
    """Create the Redis-backed document store."""
    settings = settings or get_settings()
    if redis_client is None:
        redis_client = create_redis_client(settings)
    return RedisDocumentStore(
        redis_client=redis_client,
        key_prefix=settings.redis_key_prefix,
    )


def create_completion_provider(settings: Optional[Settings] = None) -> CompletionProvider:
    """
    Create the OpenAI completion provider.

    Raises:
        ValueError: If no API key or model is configured.
    """
    settings = settings or get_settings()
    return OpenAICompletionProvider(
        api_key=settings.openai_api_key.get_secret_value(),
        model=settings.openai_model,
        base_url=settings.openai_base_url,
        max_tokens=settings.completion_max_tokens,
        temperature=settings.completion_temperature,
        top_p=settings.completion_top_p,
        summary_max_tokens=settings.summary_max_tokens,
        include_system_prompt=settings.include_system_prompt,
        max_retries=settings.provider_max_retries,
        retry_delay=settings.provider_retry_delay_seconds,
    )


def create_chat_service(
    settings: Optional[Settings] = None,
    store: Optional[DocumentStore] = None,
    provider: Optional[CompletionProvider] = None,
) -> ChatService:
    """
    Build a ChatService with a fresh session cache.

    Also applies the configured log level.

    Args:
        settings: Settings to use (default: get_settings()).
        store: Document store (default: Redis store from settings).
        provider: Completion provider (default: OpenAI provider from settings).
    """
    settings = settings or get_settings()
    configure_logging(
        level=settings.log_level, force=True, service_name=settings.service_name
    )

    return ChatService(
        store=store if store is not None else create_document_store(settings),
        provider=provider if provider is not None else create_completion_provider(settings),
        max_conversation_tokens=settings.max_conversation_tokens,
        default_session_name=settings.default_session_name,
    )
