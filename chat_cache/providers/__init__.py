"""
Providers Package - Completion Gateway adapters.

Exports:
- CompletionProvider: Abstract base class (port)
- OpenAICompletionProvider: OpenAI / Azure OpenAI adapter
- FakeCompletionProvider: Deterministic test double
"""

from chat_cache.providers.base import CompletionProvider
from chat_cache.providers.fake import FakeCompletionProvider
from chat_cache.providers.openai import OpenAICompletionProvider

__all__ = [
    "CompletionProvider",
    "FakeCompletionProvider",
    "OpenAICompletionProvider",
]
