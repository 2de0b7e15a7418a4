"""
Prometheus Metrics Module

Domain metrics for the session cache and conversation engine:
- token usage reported by the completion provider
- message cache hits, misses (hydration) and cold-cache reads
- number of sessions currently cached

Exposition is left to the embedding process; ``generate_metrics()`` renders
the default registry in Prometheus text format.
"""

from prometheus_client import REGISTRY, Counter, Gauge, generate_latest


# Cache result labels
CACHE_HIT = "hit"
CACHE_MISS = "miss"
CACHE_COLD = "cold"


TOKEN_USAGE_TOTAL = Counter(
    name="chat_cache_tokens_total",
    documentation="Total number of tokens reported by the completion provider",
    labelnames=["model", "type"],
)

CACHE_OPERATIONS_TOTAL = Counter(
    name="chat_cache_cache_operations_total",
    documentation="Session message reads by result (hit/miss/cold)",
    labelnames=["result"],
)

SESSIONS_CACHED = Gauge(
    name="chat_cache_sessions_cached",
    documentation="Number of sessions currently held in the cache",
)


# =============================================================================
# Helper Functions
# =============================================================================


def record_token_usage(model: str, token_type: str, count: int) -> None:
    """
    Record token usage for a completion.

    Args:
        model: Model or deployment name
        token_type: Type of tokens (prompt, completion)
        count: Number of tokens
    """
    TOKEN_USAGE_TOTAL.labels(model=model, type=token_type).inc(count)


def record_cache_operation(result: str) -> None:
    """
    Record a message cache read.

    Args:
        result: One of CACHE_HIT, CACHE_MISS, CACHE_COLD
    """
    CACHE_OPERATIONS_TOTAL.labels(result=result).inc()


def set_sessions_cached(count: int) -> None:
    """Update the cached session gauge."""
    SESSIONS_CACHED.set(count)


def generate_metrics() -> str:
    """
    Generate Prometheus metrics text format.

    Returns:
        Prometheus exposition format text
    """
    return generate_latest(REGISTRY).decode("utf-8")
