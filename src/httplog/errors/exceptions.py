"""Exception hierarchy for httplog."""

from typing import Any


class HTTPLogError(Exception):
    """Base exception for httplog errors.

    Attributes:
        error_code: Machine-readable error identifier.
        context: Arbitrary key-value pairs providing additional error context.
    """

    def __init__(self, message: str, error_code: str = "HTTPLOG_ERROR", **context: Any) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.context = context


class ConfigurationError(HTTPLogError):
    """Settings could not be turned into a working logger configuration."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message, error_code="CONFIGURATION_ERROR", **context)
