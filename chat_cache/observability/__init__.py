"""
Observability Package

This package provides:
- Structured JSON logging with correlation IDs (structlog)
- Prometheus metrics for token usage and cache behaviour
"""

from chat_cache.observability.logging import (
    clear_correlation_id,
    configure_logging,
    correlation_id_context,
    get_correlation_id,
    get_logger,
    set_correlation_id,
)
from chat_cache.observability.metrics import (
    CACHE_COLD,
    CACHE_HIT,
    CACHE_MISS,
    generate_metrics,
    record_cache_operation,
    record_token_usage,
    set_sessions_cached,
)

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    "set_correlation_id",
    "get_correlation_id",
    "clear_correlation_id",
    "correlation_id_context",
    # Metrics
    "CACHE_HIT",
    "CACHE_MISS",
    "CACHE_COLD",
    "generate_metrics",
    "record_cache_operation",
    "record_token_usage",
    "set_sessions_cached",
]
