"""Structured logging setup and sinks for httplog."""

from httplog.logging.setup import LOGGER_NAME, configure_logging, get_logger, setup_logging
from httplog.logging.sink import StructlogFieldLogger, to_field_logger_debug, to_field_logger_info

__all__ = [
    "LOGGER_NAME",
    "StructlogFieldLogger",
    "configure_logging",
    "get_logger",
    "setup_logging",
    "to_field_logger_debug",
    "to_field_logger_info",
]
