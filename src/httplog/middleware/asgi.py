"""ASGI middleware plugging :class:`~httplog.logger.HTTPLogger` into an app."""

from typing import Any

from starlette.requests import HTTPConnection
from starlette.types import ASGIApp, Receive, Scope, Send

from httplog.config import Config, HTTPLogSettings
from httplog.logger import HTTPLogger
from httplog.logging import (
    configure_logging,
    get_logger,
    to_field_logger_debug,
    to_field_logger_info,
)
from httplog.protocols import FieldLogger


class HTTPLogMiddleware:
    """Log each HTTP request on receipt and its response on completion.

    Usage::

        app.add_middleware(HTTPLogMiddleware, config=default_response_only_config())

    Args:
        app: The wrapped ASGI application.
        sink: Receives the log lines. Defaults to a structlog logger at the
            level named by ``settings.sink_level``.
        config: Field selection. Defaults to the preset named by ``settings``.
        settings: Environment-driven defaults, read when omitted.
        install_logging: Also configure process logging from ``settings``
            (app name, level and format) via :func:`configure_logging`.
        **logger_kwargs: Forwarded to :class:`HTTPLogger` (``clock``,
            ``body_parser``, ``registry``...).

    Websocket and lifespan scopes are passed through untouched.
    """

    def __init__(
        self,
        app: ASGIApp,
        sink: FieldLogger | None = None,
        config: Config | None = None,
        settings: HTTPLogSettings | None = None,
        install_logging: bool = False,
        **logger_kwargs: Any,
    ) -> None:
        self.app = app
        settings = settings or HTTPLogSettings()
        if install_logging:
            configure_logging(settings)
        if sink is None:
            if settings.sink_level == "debug":
                sink = to_field_logger_debug(get_logger())
            else:
                sink = to_field_logger_info(get_logger())
        logger_kwargs.setdefault("compaction", settings.compaction_policy)
        logger_kwargs.setdefault("max_value_length", settings.max_arg_length)
        self.http_logger = HTTPLogger(sink, config or settings.to_config(), **logger_kwargs)
        self._log_request = self.http_logger.request_handler()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = HTTPConnection(scope, receive)
        self._log_request(request)
        await self.app(scope, receive, self.http_logger.wrap_response(send, request))
