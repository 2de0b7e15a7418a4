"""
Core configuration module for the chat session cache.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the CHAT_CACHE_ prefix.

Sections:
- Service configuration (name, environment, logging)
- Document store (Redis) configuration
- Completion endpoint (OpenAI) configuration
- Conversation window budget
"""

import re
from functools import lru_cache
from typing import Any, Literal, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings


DEFAULT_MAX_CONVERSATION_TOKENS = 4000
MAX_CONVERSATION_TOKENS_LIMIT = 2**31 - 1

_INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")


def resolve_max_conversation_tokens(raw: Any) -> int:
    """
    Resolve the conversation token budget from a raw configuration value.

    Accepts ints and decimal strings made of ASCII digits with an optional
    sign. Anything that is not a non-negative integer up to
    MAX_CONVERSATION_TOKENS_LIMIT (None, "", "abc", "-5", "1_000", 12.5,
    True) falls back to DEFAULT_MAX_CONVERSATION_TOKENS.

    Args:
        raw: Raw configuration value.

    Returns:
        The token budget.

    Example:
        >>> resolve_max_conversation_tokens("2500")
        2500
        >>> resolve_max_conversation_tokens("lots")
        4000
    """
    if isinstance(raw, bool):
        return DEFAULT_MAX_CONVERSATION_TOKENS

    value: Optional[int] = None
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str):
        text = raw.strip()
        if _INTEGER_PATTERN.fullmatch(text):
            value = int(text)

    if value is None or not 0 <= value <= MAX_CONVERSATION_TOKENS_LIMIT:
        return DEFAULT_MAX_CONVERSATION_TOKENS
    return value


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All fields use the CHAT_CACHE_ prefix for environment variables.
    Example: CHAT_CACHE_MAX_CONVERSATION_TOKENS=2000
    """

    # =========================================================================
    # Service Configuration
    # =========================================================================
    service_name: str = Field(
        default="chat-cache",
        description="Name of the service for logging and identification",
    )
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    # =========================================================================
    # Document Store Configuration
    # =========================================================================
    redis_url: str = Field(
        default="redis://localhost:6379",
        description="Redis connection URL for the session/message document store",
    )
    redis_key_prefix: str = Field(
        default="chat:",
        description="Prefix for every document store key",
    )

    # =========================================================================
    # Completion Endpoint Configuration
    # Pattern: SecretStr masks values in logs/repr, use .get_secret_value()
    # =========================================================================
    openai_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="API key for the completion endpoint",
    )
    openai_base_url: Optional[str] = Field(
        default=None,
        description="Custom endpoint URL (Azure OpenAI or compatible proxies)",
    )
    openai_model: str = Field(
        default="gpt-35-turbo",
        description="Model or deployment name used for completions",
    )
    completion_max_tokens: int = Field(
        default=4000,
        ge=1,
        description="max_tokens sent with chat completions",
    )
    completion_temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for chat completions",
    )
    completion_top_p: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Nucleus sampling factor for chat completions",
    )
    summary_max_tokens: int = Field(
        default=200,
        ge=1,
        description="max_tokens sent with session name summarization",
    )
    include_system_prompt: bool = Field(
        default=False,
        description="Send the assistant system prompt with chat completions",
    )
    provider_max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per completion call before giving up",
    )
    provider_retry_delay_seconds: float = Field(
        default=1.0,
        ge=0.0,
        description="Initial backoff delay between completion attempts",
    )

    # =========================================================================
    # Conversation Configuration
    # =========================================================================
    max_conversation_tokens: int = Field(
        default=DEFAULT_MAX_CONVERSATION_TOKENS,
        description="Token budget for the conversation window",
    )
    default_session_name: str = Field(
        default="New Chat",
        description="Placeholder name given to new sessions",
    )

    model_config = {
        "env_prefix": "CHAT_CACHE_",
        "case_sensitive": False,
        "extra": "ignore",
    }

    # =========================================================================
    # Field Validators
    # =========================================================================
    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: str) -> str:
        """Validate Redis URL format."""
        if not v.startswith(("redis://", "rediss://")):
            raise ValueError("Redis URL must start with redis:// or rediss://")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the log level."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("max_conversation_tokens", mode="before")
    @classmethod
    def validate_max_conversation_tokens(cls, v: Any) -> int:
        """Fall back to the default budget for invalid values."""
        return resolve_max_conversation_tokens(v)


@lru_cache
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Uses functools.lru_cache to ensure only one Settings instance is created.

    Returns:
        Settings: The application settings instance.
    """
    return Settings()
