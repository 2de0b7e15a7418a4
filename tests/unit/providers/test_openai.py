"""
Tests for the OpenAI completion provider.

The AsyncOpenAI client is patched; no network calls are made.

Test Categories:
- Construction and client configuration
- get_chat_completion(): request shape and usage mapping
- summarize(): label request and cleanup
- Retry logic with exponential backoff
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest


def _response(content="Hello there", prompt_tokens=11, completion_tokens=4, usage=True):
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    if usage:
        response.usage.prompt_tokens = prompt_tokens
        response.usage.completion_tokens = completion_tokens
    else:
        response.usage = None
    return response


def _provider(mock_create, **kwargs):
    from chat_cache.providers.openai import OpenAICompletionProvider

    with patch("chat_cache.providers.openai.AsyncOpenAI") as mock_client_class:
        mock_client = AsyncMock()
        mock_client.chat.completions.create = mock_create
        mock_client_class.return_value = mock_client
        kwargs.setdefault("retry_delay", 0)
        return OpenAICompletionProvider(api_key="test-key", model="gpt-4o", **kwargs)


# =============================================================================
# Construction
# =============================================================================


class TestOpenAICompletionProviderClass:
    def test_implements_completion_provider(self) -> None:
        from chat_cache.providers.base import CompletionProvider
        from chat_cache.providers.openai import OpenAICompletionProvider

        assert issubclass(OpenAICompletionProvider, CompletionProvider)

    @pytest.mark.parametrize("api_key,model", [("", "gpt-4o"), ("key", "")])
    def test_requires_api_key_and_model(self, api_key, model) -> None:
        from chat_cache.providers.openai import OpenAICompletionProvider

        with pytest.raises(ValueError):
            OpenAICompletionProvider(api_key=api_key, model=model)

    def test_passes_base_url_to_client(self) -> None:
        from chat_cache.providers.openai import OpenAICompletionProvider

        with patch("chat_cache.providers.openai.AsyncOpenAI") as mock_client_class:
            provider = OpenAICompletionProvider(
                api_key="test-key",
                model="gpt-35-turbo",
                base_url="https://example.openai.azure.com/openai/v1",
            )

        mock_client_class.assert_called_once_with(
            api_key="test-key", base_url="https://example.openai.azure.com/openai/v1"
        )
        assert provider.model == "gpt-35-turbo"


# =============================================================================
# Chat completion
# =============================================================================


class TestGetChatCompletion:
    @pytest.mark.asyncio
    async def test_maps_response_and_usage(self) -> None:
        mock_create = AsyncMock(return_value=_response())
        provider = _provider(mock_create)

        result = await provider.get_chat_completion("s-1", "b\na")

        assert result.text == "Hello there"
        assert result.prompt_tokens == 11
        assert result.response_tokens == 4

    @pytest.mark.asyncio
    async def test_request_shape(self) -> None:
        mock_create = AsyncMock(return_value=_response())
        provider = _provider(mock_create, temperature=0.3, top_p=0.5, max_tokens=4000)

        await provider.get_chat_completion("s-1", "b\na")

        call_kwargs = mock_create.call_args.kwargs
        assert call_kwargs["model"] == "gpt-4o"
        assert call_kwargs["messages"] == [{"role": "user", "content": "b\na"}]
        assert call_kwargs["user"] == "s-1"
        assert call_kwargs["max_tokens"] == 4000
        assert call_kwargs["temperature"] == 0.3
        assert call_kwargs["top_p"] == 0.5
        assert call_kwargs["frequency_penalty"] == 0
        assert call_kwargs["presence_penalty"] == 0

    @pytest.mark.asyncio
    async def test_optional_system_prompt(self) -> None:
        from chat_cache.providers.openai import SYSTEM_PROMPT

        mock_create = AsyncMock(return_value=_response())
        provider = _provider(mock_create, include_system_prompt=True)

        await provider.get_chat_completion("s-1", "hi")

        messages = mock_create.call_args.kwargs["messages"]
        assert messages[0] == {"role": "system", "content": SYSTEM_PROMPT}
        assert messages[1] == {"role": "user", "content": "hi"}

    @pytest.mark.asyncio
    async def test_missing_usage_counts_as_zero(self) -> None:
        mock_create = AsyncMock(return_value=_response(usage=False))
        provider = _provider(mock_create)

        result = await provider.get_chat_completion("s-1", "hi")

        assert (result.prompt_tokens, result.response_tokens) == (0, 0)

    @pytest.mark.asyncio
    async def test_records_token_metrics(self) -> None:
        from chat_cache.observability.metrics import TOKEN_USAGE_TOTAL

        counter = TOKEN_USAGE_TOTAL.labels(model="gpt-4o", type="prompt")
        before = counter._value.get()
        provider = _provider(AsyncMock(return_value=_response(prompt_tokens=9)))

        await provider.get_chat_completion("s-1", "hi")

        assert counter._value.get() == before + 9


# =============================================================================
# Summarize
# =============================================================================


class TestSummarize:
    @pytest.mark.asyncio
    async def test_sends_summarize_prompt(self) -> None:
        from chat_cache.providers.openai import SUMMARIZE_PROMPT

        mock_create = AsyncMock(return_value=_response(content="Redis Caching"))
        provider = _provider(mock_create, summary_max_tokens=200)

        label = await provider.summarize("s-1", "How do I cache in Redis?")

        assert label == "Redis Caching"
        call_kwargs = mock_create.call_args.kwargs
        assert call_kwargs["messages"] == [
            {"role": "system", "content": SUMMARIZE_PROMPT},
            {"role": "user", "content": "How do I cache in Redis?"},
        ]
        assert call_kwargs["max_tokens"] == 200
        assert call_kwargs["temperature"] == 0.0
        assert call_kwargs["top_p"] == 1.0
        assert call_kwargs["user"] == "s-1"

    @pytest.mark.asyncio
    async def test_strips_quotes_and_whitespace(self) -> None:
        provider = _provider(AsyncMock(return_value=_response(content=' "Redis Tips"\n')))

        assert await provider.summarize("s-1", "prompt") == "Redis Tips"


# =============================================================================
# Retry logic
# =============================================================================


class TestRetryLogic:
    @pytest.mark.asyncio
    async def test_retries_transient_errors(self) -> None:
        mock_create = AsyncMock(
            side_effect=[Exception("connection reset"), _response(content="ok")]
        )
        provider = _provider(mock_create, max_retries=3)

        result = await provider.get_chat_completion("s-1", "hi")

        assert result.text == "ok"
        assert mock_create.call_count == 2

    @pytest.mark.asyncio
    async def test_retry_exhausted_raises_provider_error(self) -> None:
        from chat_cache.core.exceptions import ProviderError, RateLimitError

        mock_create = AsyncMock(side_effect=Exception("server exploded"))
        provider = _provider(mock_create, max_retries=3)

        with pytest.raises(ProviderError) as exc_info:
            await provider.get_chat_completion("s-1", "hi")

        assert not isinstance(exc_info.value, RateLimitError)
        assert exc_info.value.provider == "openai"
        assert mock_create.call_count == 3

    @pytest.mark.asyncio
    async def test_rate_limit_exhausted_raises_rate_limit_error(self) -> None:
        from chat_cache.core.exceptions import RateLimitError

        mock_create = AsyncMock(side_effect=Exception("Rate limit reached (429)"))
        provider = _provider(mock_create, max_retries=2)

        with pytest.raises(RateLimitError):
            await provider.summarize("s-1", "hi")

        assert mock_create.call_count == 2

    @pytest.mark.asyncio
    async def test_authentication_errors_are_not_retried(self) -> None:
        from chat_cache.core.exceptions import AuthenticationError

        mock_create = AsyncMock(side_effect=Exception("Incorrect API key provided"))
        provider = _provider(mock_create, max_retries=3)

        with pytest.raises(AuthenticationError):
            await provider.get_chat_completion("s-1", "hi")

        assert mock_create.call_count == 1

    @pytest.mark.asyncio
    async def test_backoff_is_exponential(self) -> None:
        mock_create = AsyncMock(side_effect=Exception("temporary failure"))
        provider = _provider(mock_create, max_retries=3, retry_delay=0.5)

        with patch("chat_cache.providers.openai.asyncio.sleep", new=AsyncMock()) as sleep:
            with pytest.raises(Exception):
                await provider.get_chat_completion("s-1", "hi")

        assert [call.args[0] for call in sleep.await_args_list] == [0.5, 1.0]

    @pytest.mark.parametrize(
        "message,expected",
        [
            ("Error code: 401 - invalid", "auth"),
            ("Unauthorized", "auth"),
            ("rate limit exceeded", "rate_limit"),
            ("HTTP 429", "rate_limit"),
            ("timeout", "other"),
        ],
    )
    def test_classify_by_message(self, message, expected) -> None:
        from chat_cache.providers.openai import OpenAICompletionProvider

        assert OpenAICompletionProvider._classify(Exception(message)) == expected

    @pytest.mark.parametrize(
        "error_class,expected",
        [
            ("AuthenticationError", "auth"),
            ("PermissionDeniedError", "auth"),
            ("RateLimitError", "rate_limit"),
            ("InternalServerError", "other"),
        ],
    )
    def test_classify_by_sdk_type(self, error_class, expected) -> None:
        import openai

        from chat_cache.providers.openai import OpenAICompletionProvider

        error = MagicMock(spec=getattr(openai, error_class))
        error.__str__.return_value = "failure"

        assert OpenAICompletionProvider._classify(error) == expected

    @pytest.mark.asyncio
    async def test_provider_error_keeps_status_code(self) -> None:
        from chat_cache.core.exceptions import ProviderError

        failure = Exception("bad gateway")
        failure.status_code = 502
        provider = _provider(AsyncMock(side_effect=failure), max_retries=1)

        with pytest.raises(ProviderError) as exc_info:
            await provider.get_chat_completion("s-1", "hi")

        assert exc_info.value.status_code == 502
        assert exc_info.value.__cause__ is failure
