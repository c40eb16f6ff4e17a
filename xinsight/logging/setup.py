"""Structlog configuration for xinsight."""

import logging
import sys

import structlog

from xinsight.config import XinsightConfig, LogFormat


def configure_logging(config: XinsightConfig | None = None) -> None:
    """
    Configure structlog with appropriate processors and output format.

    Args:
        config: XinsightConfig instance, uses defaults if None
    """
    if config is None:
        config = XinsightConfig()

    log_level = getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=log_level,
    )

    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if config.log_format == LogFormat.JSON:
        processors.extend([
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ])
    else:
        processors.extend([
            structlog.dev.set_exc_info,
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ])

    # Logs go to stderr so exported CSV/JSON on stdout stays clean
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """
    Get a configured structlog logger.

    Args:
        name: Optional logger name for context

    Returns:
        Configured structlog BoundLogger
    """
    # Initial values keep the proxy lazy until first use, after configure_logging
    if name:
        return structlog.get_logger(logger_name=name)
    return structlog.get_logger()
