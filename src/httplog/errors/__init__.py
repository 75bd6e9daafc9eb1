"""Structured error hierarchy for httplog."""

from httplog.errors.exceptions import ConfigurationError, HTTPLogError

__all__ = ["ConfigurationError", "HTTPLogError"]
