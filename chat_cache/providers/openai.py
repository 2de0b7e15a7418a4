"""
OpenAI Completion Provider - Completion Gateway adapter

Implements the CompletionProvider port with the OpenAI SDK. Passing
``base_url`` points it at Azure OpenAI or any compatible endpoint.

Both operations are single chat.completions calls:
- get_chat_completion sends the rendered conversation window as one user
  message and reports prompt/completion token usage.
- summarize asks for a one- or two-word label for a prompt.

Transient failures are retried here, and only here, with exponential
backoff. Authentication failures are raised immediately.

Pattern: Ports and Adapters (OpenAICompletionProvider implements CompletionProvider)
"""

import asyncio
from typing import Any, Optional

import openai
from openai import AsyncOpenAI

from chat_cache.core.exceptions import (
    AuthenticationError,
    ProviderError,
    RateLimitError,
)
from chat_cache.models.domain import CompletionResult
from chat_cache.observability.logging import get_logger
from chat_cache.observability.metrics import record_token_usage
from chat_cache.providers.base import CompletionProvider


logger = get_logger(__name__)

PROVIDER_NAME = "openai"

# Sent with chat completions only when include_system_prompt is enabled
SYSTEM_PROMPT = (
    "You are an AI assistant that helps people find information.\n"
    "Provide concise answers that are polite and professional.\n"
)

SUMMARIZE_PROMPT = (
    "Summarize the following prompt in one or two words "
    "to use as a label for a button on a web page.\n"
)

_AUTH = "auth"
_RATE_LIMIT = "rate_limit"
_OTHER = "other"

# Compatible proxies often surface failures as plain errors; match their text.
_AUTH_MARKERS = ("authentication", "api key", "unauthorized", "401")
_RATE_LIMIT_MARKERS = ("rate limit", "429")


class OpenAICompletionProvider(CompletionProvider):
    """
    OpenAI chat completion adapter.

    Args:
        api_key: API key for the endpoint.
        model: Model or deployment name.
        base_url: Optional endpoint URL (Azure OpenAI or compatible proxies).
        max_tokens: max_tokens for chat completions.
        temperature: Sampling temperature for chat completions.
        top_p: Nucleus sampling factor for chat completions.
        summary_max_tokens: max_tokens for summaries.
        include_system_prompt: Prepend SYSTEM_PROMPT to chat completions.
        max_retries: Attempts per call, including the first one.
        retry_delay: Delay before the second attempt, doubled after each retry.

    Example:
        >>> provider = OpenAICompletionProvider(api_key="sk-...", model="gpt-4o")
        >>> result = await provider.get_chat_completion("s-1", "What is Redis?")
        >>> result.prompt_tokens, result.response_tokens
        (14, 52)
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: Optional[str] = None,
        max_tokens: int = 4000,
        temperature: float = 0.3,
        top_p: float = 0.5,
        summary_max_tokens: int = 200,
        include_system_prompt: bool = False,
        max_retries: int = 3,
        retry_delay: float = 1.0,
    ) -> None:
        if not api_key:
            raise ValueError("api_key is required")
        if not model:
            raise ValueError("model is required")

        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._top_p = top_p
        self._summary_max_tokens = summary_max_tokens
        self._include_system_prompt = include_system_prompt
        self._max_retries = max(1, max_retries)
        self._retry_delay = retry_delay

        if base_url:
            self._client = AsyncOpenAI(api_key=api_key, base_url=base_url)
        else:
            self._client = AsyncOpenAI(api_key=api_key)

    @property
    def model(self) -> str:
        return self._model

    # =========================================================================
    # Completion Gateway operations
    # =========================================================================

    async def get_chat_completion(
        self, session_id: str, conversation: str
    ) -> CompletionResult:
        """
        Send the conversation window as a single user message.

        Missing usage data counts as zero tokens.
        """
        messages = [{"role": "user", "content": conversation}]
        if self._include_system_prompt:
            messages.insert(0, {"role": "system", "content": SYSTEM_PROMPT})

        response = await self._create(
            messages=messages,
            user=session_id,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
            top_p=self._top_p,
        )

        usage = response.usage
        result = CompletionResult(
            text=response.choices[0].message.content or "",
            prompt_tokens=usage.prompt_tokens if usage else 0,
            response_tokens=usage.completion_tokens if usage else 0,
        )
        record_token_usage(self._model, "prompt", result.prompt_tokens)
        record_token_usage(self._model, "completion", result.response_tokens)
        return result

    async def summarize(self, session_id: str, prompt: str) -> str:
        response = await self._create(
            messages=[
                {"role": "system", "content": SUMMARIZE_PROMPT},
                {"role": "user", "content": prompt},
            ],
            user=session_id,
            max_tokens=self._summary_max_tokens,
            temperature=0.0,
            top_p=1.0,
        )

        label = response.choices[0].message.content or ""
        return label.strip().strip("\"'")

    # =========================================================================
    # Request execution
    # =========================================================================

    async def _create(self, **request: Any) -> Any:
        """
        Call chat.completions.create, retrying failed attempts.

        Raises:
            AuthenticationError: On the first authentication failure.
            RateLimitError: When the last attempt was rate limited.
            ProviderError: When the last attempt failed otherwise.
        """
        request.update(model=self._model, frequency_penalty=0, presence_penalty=0)
        delay = self._retry_delay

        for attempt in range(1, self._max_retries + 1):
            try:
                return await self._client.chat.completions.create(**request)
            except Exception as e:
                kind = self._classify(e)
                if kind == _AUTH:
                    raise AuthenticationError(str(e), provider=PROVIDER_NAME) from e

                logger.warning(
                    "completion_attempt_failed",
                    attempt=attempt,
                    max_retries=self._max_retries,
                    error_type=kind,
                    error=str(e),
                )

                if attempt == self._max_retries:
                    if kind == _RATE_LIMIT:
                        raise RateLimitError(str(e), provider=PROVIDER_NAME) from e
                    raise ProviderError(
                        f"Request failed after {attempt} attempts: {e}",
                        provider=PROVIDER_NAME,
                        status_code=getattr(e, "status_code", None),
                    ) from e

                await asyncio.sleep(delay)
                delay *= 2

    @staticmethod
    def _classify(error: Exception) -> str:
        """Return 'auth', 'rate_limit' or 'other' for a failed attempt."""
        if isinstance(error, (openai.AuthenticationError, openai.PermissionDeniedError)):
            return _AUTH
        if isinstance(error, (openai.RateLimitError, RateLimitError)):
            return _RATE_LIMIT

        text = str(error).lower()
        if any(marker in text for marker in _AUTH_MARKERS):
            return _AUTH
        if any(marker in text for marker in _RATE_LIMIT_MARKERS):
            return _RATE_LIMIT
        return _OTHER
