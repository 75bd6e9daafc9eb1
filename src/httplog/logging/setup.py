"""Structlog configuration for applications using httplog.

Library code logs through the stdlib logger named :data:`LOGGER_NAME`, so a
host application that configures logging itself never needs this module.
:func:`setup_logging` is a convenience for applications that want httplog's
JSON/console rendering; it replaces only the handler it installed earlier and
leaves handlers owned by the host alone.
"""

import logging
import sys

import structlog

from httplog.config.settings import HTTPLogSettings
from httplog.logging.processors import add_app_name, censor_sensitive_data

LOGGER_NAME = "httplog"

_HANDLER_MARKER = "_httplog_handler"


def _shared_processors(app_name: str) -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        add_app_name(app_name),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        censor_sensitive_data,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _build_handler(app_name: str, log_format: str) -> logging.Handler:
    if log_format == "dev":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer(colors=True)
    else:
        renderer = structlog.processors.JSONRenderer()

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_shared_processors(app_name),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    setattr(handler, _HANDLER_MARKER, True)
    return handler


def setup_logging(
    app_name: str = LOGGER_NAME,
    log_level: str = "INFO",
    log_format: str = "json",
    logger_name: str | None = None,
) -> None:
    """Route structlog and stdlib records through a rendering stderr handler.

    Args:
        app_name: Bound as ``app`` on every event.
        log_level: Level of the logger the handler is attached to.
        log_format: ``json`` for one JSON object per line, ``dev`` for colored
            console output.
        logger_name: Attach the handler to this stdlib logger instead of the
            root logger. The named logger then stops propagating, so records
            are not rendered twice.
    """
    structlog.configure(
        processors=[
            *_shared_processors(app_name),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    target = logging.getLogger(logger_name)
    for existing in list(target.handlers):
        if getattr(existing, _HANDLER_MARKER, False):
            target.removeHandler(existing)
    target.addHandler(_build_handler(app_name, log_format))
    target.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    if logger_name is not None:
        target.propagate = False


def configure_logging(settings: HTTPLogSettings | None = None, logger_name: str | None = None) -> None:
    """Apply ``HTTPLOG_APP_NAME``/``HTTPLOG_LOG_LEVEL``/``HTTPLOG_LOG_FORMAT``."""
    settings = settings or HTTPLogSettings()
    setup_logging(
        app_name=settings.app_name,
        log_level=settings.log_level,
        log_format=settings.log_format,
        logger_name=logger_name,
    )


def get_logger(**initial_bindings: object) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger writing through the ``httplog`` stdlib logger."""
    return structlog.get_logger(LOGGER_NAME, **initial_bindings)
