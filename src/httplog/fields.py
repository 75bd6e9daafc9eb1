"""Loggable request/response attributes and the registry that computes them.

Every computation is total: missing headers, malformed queries and absent
response state degrade to an empty string or a documented default. Empty
values are never written to a log record.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from operator import itemgetter
from urllib.parse import urlencode, urlsplit

from starlette.datastructures import Headers
from starlette.requests import HTTPConnection

from httplog.compact import DEFAULT_MAX_VALUE_LENGTH, CompactionPolicy, format_compact_args

NOT_SUPPORTED = "not supported"

Clock = Callable[[], datetime]
LogRecord = dict[str, str]
RequestComputation = Callable[[HTTPConnection], str]


class RequestField(str, Enum):
    """Attributes computable from the incoming request alone."""

    TIME = "req_time"
    ID = "req_id"
    REMOTE_IP = "req_remote_ip"
    HOST = "req_host"
    URI = "req_uri"
    ARGS = "req_args"
    METHOD = "req_method"
    PATH = "req_path"
    BYTES_IN = "req_bytes_in"
    AUTH = "req_auth_header"


class ResponseField(str, Enum):
    """Attributes computable only once the response has been committed."""

    STATUS = "res_status"
    BYTES_OUT = "res_bytes_out"
    TIME = "res_time"
    CONTENT_TYPE = "res_content_type"
    LOCATION = "res_location"
    LOCATION_ARGS = "res_location_args"
    LOCATION_HOST = "res_location_host"


@dataclass(frozen=True)
class ResponseSnapshot:
    """Response state as seen by the observer at emission time."""

    status: int | None
    bytes_out: int = 0
    headers: Headers = field(default_factory=Headers)


ResponseComputation = Callable[[ResponseSnapshot], str]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """Format ``moment`` as RFC 3339 with second precision."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    formatted = moment.isoformat(timespec="seconds")
    if formatted.endswith("+00:00"):
        formatted = formatted[: -len("+00:00")] + "Z"
    return formatted


def selector_key(name: str) -> str:
    """Return the plain string tag for an enum member or a string selector."""
    if isinstance(name, Enum):
        return name.value
    return name


def build_record(pairs: Iterable[tuple[str, str]]) -> LogRecord:
    """Collect ``(key, value)`` pairs into a record, skipping empty values."""
    record: LogRecord = {}
    for key, value in pairs:
        if value:
            record[selector_key(key)] = value
    return record


class FieldRegistry:
    """Maps field selectors to the functions computing their values.

    Args:
        clock: Time source for the timestamp fields.
        compaction: Policy applied to ``req_args`` and ``res_location_args``.
        max_value_length: Value length cap used by ``CompactionPolicy.TRUNCATE``.

    Selectors are looked up by their string value, so enum members and plain
    strings are interchangeable. Unknown selectors compute to
    :data:`NOT_SUPPORTED`.
    """

    def __init__(
        self,
        clock: Clock = utc_now,
        compaction: CompactionPolicy = CompactionPolicy.ELIDE,
        max_value_length: int = DEFAULT_MAX_VALUE_LENGTH,
    ) -> None:
        self.clock = clock
        self.compaction = CompactionPolicy(compaction)
        self.max_value_length = max_value_length
        self._request_fields: dict[str, RequestComputation] = {
            RequestField.TIME.value: self._request_time,
            RequestField.ID.value: self._request_id,
            RequestField.REMOTE_IP.value: self._remote_ip,
            RequestField.HOST.value: self._host,
            RequestField.URI.value: self._uri,
            RequestField.ARGS.value: self._args,
            RequestField.METHOD.value: self._method,
            RequestField.PATH.value: self._path,
            RequestField.BYTES_IN.value: self._bytes_in,
            RequestField.AUTH.value: self._auth_header,
        }
        self._response_fields: dict[str, ResponseComputation] = {
            ResponseField.STATUS.value: self._status,
            ResponseField.BYTES_OUT.value: self._bytes_out,
            ResponseField.TIME.value: self._response_time,
            ResponseField.CONTENT_TYPE.value: self._content_type,
            ResponseField.LOCATION.value: self._location,
            ResponseField.LOCATION_ARGS.value: self._location_args,
            ResponseField.LOCATION_HOST.value: self._location_host,
        }

    def register_request_field(self, name: str, computation: RequestComputation) -> None:
        """Add or replace a request-derived selector."""
        self._request_fields[selector_key(name)] = computation

    def register_response_field(self, name: str, computation: ResponseComputation) -> None:
        """Add or replace a response-derived selector."""
        self._response_fields[selector_key(name)] = computation

    def request_value(self, name: str, request: HTTPConnection) -> str:
        computation = self._request_fields.get(selector_key(name))
        if computation is None:
            return NOT_SUPPORTED
        return computation(request)

    def response_value(self, name: str, response: ResponseSnapshot) -> str:
        computation = self._response_fields.get(selector_key(name))
        if computation is None:
            return NOT_SUPPORTED
        return computation(response)

    def request_record(self, names: Iterable[str], request: HTTPConnection) -> LogRecord:
        return build_record((name, self.request_value(name, request)) for name in names)

    def response_record(self, names: Iterable[str], response: ResponseSnapshot) -> LogRecord:
        return build_record((name, self.response_value(name, response)) for name in names)

    def compact(self, raw_query: str) -> str:
        return format_compact_args(raw_query, self.compaction, self.max_value_length)

    # Request-derived fields.

    def _request_time(self, request: HTTPConnection) -> str:
        return format_timestamp(self.clock())

    def _request_id(self, request: HTTPConnection) -> str:
        return request.headers.get("x-request-id", "")

    def _remote_ip(self, request: HTTPConnection) -> str:
        forwarded = request.headers.get("x-forwarded-for", "")
        if forwarded:
            return forwarded
        real_ip = request.headers.get("x-real-ip", "")
        if real_ip:
            return real_ip
        # ASGI reports the client as (host, port), so the port is already split off.
        client = request.scope.get("client")
        if not client:
            return ""
        return str(client[0])

    def _host(self, request: HTTPConnection) -> str:
        return request.headers.get("host", "")

    def _uri(self, request: HTTPConnection) -> str:
        raw_path = request.scope.get("raw_path")
        if raw_path:
            path = raw_path.decode("latin-1")
        else:
            path = request.scope.get("path", "")
        query = request.scope.get("query_string", b"").decode("latin-1")
        if query:
            return f"{path}?{query}"
        return path

    def _args(self, request: HTTPConnection) -> str:
        # query_params is parsed once per connection and cached.
        items = sorted(request.query_params.multi_items(), key=itemgetter(0))
        return self.compact(urlencode(items))

    def _method(self, request: HTTPConnection) -> str:
        return request.scope.get("method", "")

    def _path(self, request: HTTPConnection) -> str:
        return request.scope.get("path") or "/"

    def _bytes_in(self, request: HTTPConnection) -> str:
        content_length = request.headers.get("content-length", "").strip()
        if not (content_length.isascii() and content_length.isdigit()):
            return "0"
        return content_length

    def _auth_header(self, request: HTTPConnection) -> str:
        return request.headers.get("authorization", "")

    # Response-derived fields.

    def _status(self, response: ResponseSnapshot) -> str:
        if response.status is None:
            return ""
        return str(response.status)

    def _bytes_out(self, response: ResponseSnapshot) -> str:
        return str(response.bytes_out)

    def _response_time(self, response: ResponseSnapshot) -> str:
        return format_timestamp(self.clock())

    def _content_type(self, response: ResponseSnapshot) -> str:
        return response.headers.get("content-type", "")

    def _location(self, response: ResponseSnapshot) -> str:
        return response.headers.get("location", "")

    def _location_args(self, response: ResponseSnapshot) -> str:
        location = response.headers.get("location", "")
        if not location:
            return ""
        try:
            query = urlsplit(location).query
        except ValueError:
            return ""
        return self.compact(query)

    def _location_host(self, response: ResponseSnapshot) -> str:
        location = response.headers.get("location", "")
        if not location:
            return ""
        try:
            parts = urlsplit(location)
        except ValueError:
            return ""
        return parts._replace(query="", fragment="").geturl()
