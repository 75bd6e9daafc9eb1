"""Entry points tying configuration, field registry and sink together."""

from collections.abc import Callable

from starlette.requests import HTTPConnection
from starlette.types import Send

from httplog.compact import DEFAULT_MAX_VALUE_LENGTH, CompactionPolicy
from httplog.config import Config
from httplog.fields import Clock, FieldRegistry, utc_now
from httplog.observer import BodyParser, ResponseObserver, no_body_supplement
from httplog.protocols import FieldLogger

RECEIVED_MESSAGE = "Received HTTP request"

RequestHandler = Callable[[HTTPConnection], None]


class HTTPLogger:
    """Log HTTP requests on receipt and responses on completion.

    Args:
        sink: Structured logger receiving every line.
        config: Which fields are logged at each emission point.
        clock: Time source for timestamp fields.
        compaction: How argument values are rendered.
        max_value_length: Cap for argument values under ``TRUNCATE``.
        body_parser: Hook for JSON response bodies, see :class:`ResponseObserver`.
        registry: Use a prepared registry (e.g. with custom fields) instead of
            building one from ``clock``, ``compaction`` and ``max_value_length``.
    """

    def __init__(
        self,
        sink: FieldLogger,
        config: Config,
        *,
        clock: Clock = utc_now,
        compaction: CompactionPolicy = CompactionPolicy.ELIDE,
        max_value_length: int = DEFAULT_MAX_VALUE_LENGTH,
        body_parser: BodyParser = no_body_supplement,
        registry: FieldRegistry | None = None,
    ) -> None:
        self.sink = sink
        self.config = config
        self.registry = registry or FieldRegistry(
            clock=clock, compaction=compaction, max_value_length=max_value_length
        )
        self.body_parser = body_parser

    def request_handler(self) -> RequestHandler:
        """Return the callable to run before the request is dispatched."""
        if not self.config.request_fields:
            return _noop
        return self.log_request

    def log_request(self, request: HTTPConnection) -> None:
        record = self.registry.request_record(self.config.request_fields, request)
        sink = self.sink.with_fields(record) if record else self.sink
        sink.log(RECEIVED_MESSAGE)

    def wrap_response(self, send: Send, request: HTTPConnection) -> ResponseObserver:
        """Return a ``send`` replacement logging the response of ``request``."""
        return ResponseObserver(
            send,
            request,
            config=self.config,
            registry=self.registry,
            sink=self.sink,
            body_parser=self.body_parser,
        )


def _noop(request: HTTPConnection) -> None:
    return None
