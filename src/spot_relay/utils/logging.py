"""Structured logging setup.

structlog over the standard library, rendered as JSON or colored console output.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

from spot_relay.config import LogFormat, Settings, get_settings


def setup_logging(settings: Settings | None = None) -> None:
    """Configure structlog from the log level and format settings."""
    settings = settings or get_settings()

    log_level = getattr(logging, settings.log_level)
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=log_level,
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.log_format == LogFormat.JSON:
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structured logger.

    Args:
        name: Logger name. Defaults to the calling module.

    Returns:
        Bound structlog logger.
    """
    return structlog.get_logger(name)


def log_upstream_call(
    logger: structlog.stdlib.BoundLogger,
    *,
    method: str,
    path: str,
    success: bool,
    latency_ms: float,
    **kwargs: Any,
) -> None:
    """Record one exchange call."""
    level = "debug" if success else "warning"
    getattr(logger, level)(
        "upstream_call",
        method=method,
        path=path,
        success=success,
        latency_ms=round(latency_ms, 2),
        **kwargs,
    )


def log_order_submission(
    logger: structlog.stdlib.BoundLogger,
    *,
    symbol: str,
    side: str,
    quantity: str,
    price: str | None = None,
    order_id: int | str | None = None,
    status: str = "submitted",
    **kwargs: Any,
) -> None:
    """Record an order forwarded to the exchange."""
    logger.info(
        "order_submitted",
        symbol=symbol,
        side=side,
        quantity=quantity,
        price=price,
        order_id=order_id,
        status=status,
        **kwargs,
    )
