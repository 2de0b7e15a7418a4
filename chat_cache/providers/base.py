"""
Completion Provider Interface - Completion Gateway port

This module defines the abstract base class for language-model completion
adapters consumed by the conversation engine.

Design Pattern:
- Ports and Adapters (Hexagonal Architecture)
- CompletionProvider serves as the "port" (interface)
- OpenAICompletionProvider and FakeCompletionProvider serve as "adapters"
"""

from abc import ABC, abstractmethod

from chat_cache.models.domain import CompletionResult


class CompletionProvider(ABC):
    """
    Abstract base class for completion provider adapters.

    Retries, if any, live inside the adapter. Callers receive either a
    result or a ProviderError subclass.

    Methods:
        get_chat_completion: Answer a windowed conversation
        summarize: Produce a short label for a prompt

    Example:
        >>> class EchoProvider(CompletionProvider):
        ...     async def get_chat_completion(self, session_id, conversation):
        ...         return CompletionResult(text=conversation, prompt_tokens=1, response_tokens=1)
        ...
        ...     async def summarize(self, session_id, prompt):
        ...         return prompt[:20]
    """

    @abstractmethod
    async def get_chat_completion(
        self, session_id: str, conversation: str
    ) -> CompletionResult:
        """
        Send a conversation window and return the response with token usage.

        Args:
            session_id: Session the exchange belongs to (sent as end-user id).
            conversation: Newline-joined, chronologically ordered messages.

        Returns:
            CompletionResult with response text, prompt and response tokens.

        Raises:
            ProviderError: If the provider API returns an error
            RateLimitError: If rate limits are exceeded after retries
            AuthenticationError: If API credentials are invalid
        """
        ...

    @abstractmethod
    async def summarize(self, session_id: str, prompt: str) -> str:
        """
        Summarize a prompt into a one- or two-word label.

        Args:
            session_id: Session the label is for.
            prompt: Prompt text to summarize.

        Returns:
            Short label text.

        Raises:
            ProviderError: If the provider API returns an error
        """
        ...
