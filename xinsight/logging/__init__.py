"""Logging helpers for xinsight."""

from xinsight.logging.setup import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
