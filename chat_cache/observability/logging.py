"""
Structured logging for the chat cache.

Every log line is one JSON object carrying ``event``, ``level``,
``timestamp``, ``logger``, ``service`` and, while an exchange is in flight,
``correlation_id``. ChatService binds a fresh correlation id around each
completion unless the caller already set one, so the prompt insert, the
provider call and the batch upsert of one exchange can be grouped.

Pattern: Structured logging for observability
Pattern: Configure once, reconfigure explicitly (force=True)
"""

import contextvars
import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional, TextIO

import structlog
from structlog.types import EventDict, Processor, WrappedLogger


DEFAULT_SERVICE_NAME = "chat-cache"

_configured: bool = False
_service_name: str = DEFAULT_SERVICE_NAME

_correlation_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "chat_cache_correlation_id", default=None
)


# =============================================================================
# Correlation ID
# =============================================================================


def set_correlation_id(correlation_id: str) -> None:
    """Attach a correlation id to the current task or thread context."""
    _correlation_id.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    return _correlation_id.get()


def clear_correlation_id() -> None:
    _correlation_id.set(None)


@contextmanager
def correlation_id_context(correlation_id: str) -> Iterator[str]:
    """
    Bind a correlation id for the duration of a block.

    The previous value (or its absence) is restored on exit, also when the
    block raises.

    Example:
        >>> with correlation_id_context("req-12345"):
        ...     await service.get_chat_completion(session_id, prompt)
    """
    token = _correlation_id.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _correlation_id.reset(token)


# =============================================================================
# Processors
# =============================================================================


def add_correlation_id(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    correlation_id = _correlation_id.get()
    if correlation_id is not None:
        event_dict.setdefault("correlation_id", correlation_id)
    return event_dict


def add_service_name(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    event_dict.setdefault("service", _service_name)
    return event_dict


def rename_logger_name(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Render the name bound by get_logger() as ``logger``."""
    if "logger_name" in event_dict:
        event_dict["logger"] = event_dict.pop("logger_name")
    return event_dict


# =============================================================================
# Configuration
# =============================================================================


def configure_logging(
    level: str = "INFO",
    stream: Optional[TextIO] = None,
    force: bool = False,
    service_name: Optional[str] = None,
) -> None:
    """
    Configure structlog to render JSON lines.

    Only the first call takes effect unless ``force`` is set; the service
    factory forces it once with the configured level.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Unknown names fall back to INFO.
        stream: Destination for log lines (default: sys.stdout).
        force: Reconfigure even if logging was configured before.
        service_name: Value of the ``service`` field.
    """
    global _configured, _service_name

    if _configured and not force:
        return

    _service_name = service_name or DEFAULT_SERVICE_NAME

    processors: list[Processor] = [
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
        rename_logger_name,
        add_service_name,
        add_correlation_id,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_level_to_int(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stdout),
        cache_logger_on_first_use=False,
    )
    _configured = True


def reset_logging() -> None:
    """Forget the configuration so the next configure_logging() applies. Tests only."""
    global _configured, _service_name
    _configured = False
    _service_name = DEFAULT_SERVICE_NAME


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Return a logger whose lines carry ``logger=name``.

    The returned proxy resolves the configuration on every call, so
    module-level loggers follow a later configure_logging(force=True).

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("session_created", session_id="123")
    """
    configure_logging()
    return structlog.get_logger(logger_name=name)


def _level_to_int(level: str) -> int:
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.INFO
