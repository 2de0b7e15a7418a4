"""
Services Package - conversation engine and its wiring.
"""

from chat_cache.services.chat import ChatService
from chat_cache.services.factory import (
    create_chat_service,
    create_completion_provider,
    create_document_store,
    create_redis_client,
)
from chat_cache.services.window import render_conversation, select_window

__all__ = [
    "ChatService",
    "create_chat_service",
    "create_completion_provider",
    "create_document_store",
    "create_redis_client",
    "render_conversation",
    "select_window",
]
