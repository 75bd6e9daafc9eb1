"""Structlog implementations of the :class:`~httplog.protocols.FieldLogger` sink."""

from typing import Any

from httplog.protocols import FieldLogger, Fields


class StructlogFieldLogger:
    """Adapt a structlog bound logger to the field-logger contract.

    Args:
        logger: Any structlog logger supporting ``bind`` and level methods.
        level: Name of the level method used by :meth:`log` (``info``, ``debug``...).
    """

    def __init__(self, logger: Any, level: str = "info") -> None:
        self._logger = logger
        self.level = level

    def with_fields(self, fields: Fields) -> "StructlogFieldLogger":
        return StructlogFieldLogger(self._logger.bind(**fields), self.level)

    def with_error(self, exc: BaseException) -> "StructlogFieldLogger":
        return StructlogFieldLogger(self._logger.bind(error=str(exc)), self.level)

    def log(self, message: str) -> None:
        getattr(self._logger, self.level)(message)


def to_field_logger_info(logger: Any) -> FieldLogger:
    """Return a sink that writes every line at info level."""
    return StructlogFieldLogger(logger, level="info")


def to_field_logger_debug(logger: Any) -> FieldLogger:
    """Return a sink that writes every line at debug level."""
    return StructlogFieldLogger(logger, level="debug")
