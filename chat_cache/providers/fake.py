"""
Fake Completion Provider - Test Double Implementation

This module provides a FakeCompletionProvider that implements the real
CompletionProvider interface without making network calls.

Pattern: Test Doubles using duck typing (FakeRepository, Percival & Gregory p. 157)

This is NOT mocking - it's a proper implementation of the interface. It can be
used for local development without API keys, integration tests and demos.
"""

from typing import Optional

from chat_cache.models.domain import CompletionResult
from chat_cache.providers.base import CompletionProvider


class FakeCompletionProvider(CompletionProvider):
    """
    Fake completion provider with deterministic responses.

    Token counts default to a whitespace word count of the text involved, so
    windowing and token accounting behave realistically in tests.

    Attributes:
        response_content: Prefix of every chat completion response.
        summary: Label returned by summarize(); defaults to the first two
            words of the prompt.
        prompt_tokens: Fixed prompt token count (None = word count).
        response_tokens: Fixed response token count (None = word count).
        error_on_complete: Optional exception raised by get_chat_completion().
        error_on_summarize: Optional exception raised by summarize().

    Example:
        >>> provider = FakeCompletionProvider(prompt_tokens=10, response_tokens=5)
        >>> result = await provider.get_chat_completion("s-1", "Hello")
        >>> result.prompt_tokens, result.response_tokens
        (10, 5)
    """

    def __init__(
        self,
        response_content: str = "Fake response for testing",
        summary: Optional[str] = None,
        prompt_tokens: Optional[int] = None,
        response_tokens: Optional[int] = None,
        error_on_complete: Optional[Exception] = None,
        error_on_summarize: Optional[Exception] = None,
    ) -> None:
        self.response_content = response_content
        self.summary = summary
        self.prompt_tokens = prompt_tokens
        self.response_tokens = response_tokens
        self.error_on_complete = error_on_complete
        self.error_on_summarize = error_on_summarize

        # Track calls for test assertions: (session_id, text)
        self.completion_calls: list[tuple[str, str]] = []
        self.summarize_calls: list[tuple[str, str]] = []

    async def get_chat_completion(
        self, session_id: str, conversation: str
    ) -> CompletionResult:
        self.completion_calls.append((session_id, conversation))

        if self.error_on_complete is not None:
            raise self.error_on_complete

        last_line = conversation.splitlines()[-1] if conversation else ""
        text = f"{self.response_content}: {last_line[:50]}" if last_line else self.response_content

        return CompletionResult(
            text=text,
            prompt_tokens=(
                self.prompt_tokens
                if self.prompt_tokens is not None
                else len(conversation.split())
            ),
            response_tokens=(
                self.response_tokens
                if self.response_tokens is not None
                else len(text.split())
            ),
        )

    async def summarize(self, session_id: str, prompt: str) -> str:
        self.summarize_calls.append((session_id, prompt))

        if self.error_on_summarize is not None:
            raise self.error_on_summarize

        if self.summary is not None:
            return self.summary
        return " ".join(prompt.split()[:2]) or "Chat"
