"""httplog - structured request/response logging for ASGI applications."""

__version__ = "0.1.0"

from httplog.compact import CompactionPolicy, format_compact_args
from httplog.config import (
    Config,
    HTTPLogSettings,
    default_req_res_config,
    default_response_only_config,
)
from httplog.errors import ConfigurationError, HTTPLogError
from httplog.fields import (
    NOT_SUPPORTED,
    FieldRegistry,
    RequestField,
    ResponseField,
    ResponseSnapshot,
)
from httplog.logger import RECEIVED_MESSAGE, HTTPLogger
from httplog.logging import (
    StructlogFieldLogger,
    configure_logging,
    get_logger,
    setup_logging,
    to_field_logger_debug,
    to_field_logger_info,
)
from httplog.middleware import HTTPLogMiddleware
from httplog.observer import (
    REDIRECTING_MESSAGE,
    RESPONDING_MESSAGE,
    ResponseObserver,
    no_body_supplement,
)
from httplog.protocols import FieldLogger

__all__ = [
    "NOT_SUPPORTED",
    "RECEIVED_MESSAGE",
    "REDIRECTING_MESSAGE",
    "RESPONDING_MESSAGE",
    "CompactionPolicy",
    "Config",
    "ConfigurationError",
    "FieldLogger",
    "FieldRegistry",
    "HTTPLogError",
    "HTTPLogMiddleware",
    "HTTPLogSettings",
    "HTTPLogger",
    "RequestField",
    "ResponseField",
    "ResponseObserver",
    "ResponseSnapshot",
    "StructlogFieldLogger",
    "configure_logging",
    "default_req_res_config",
    "default_response_only_config",
    "format_compact_args",
    "get_logger",
    "no_body_supplement",
    "setup_logging",
    "to_field_logger_debug",
    "to_field_logger_info",
]
