"""Per-request response observer.

The observer stands in for the ASGI ``send`` callable. It forwards every
message to the real ``send`` while tracking whether the response has been
committed, how many body bytes went out, and whether the completion line has
already been logged. The completion line is emitted exactly once: on header
commit when a ``Location`` header is present (redirects may carry no body),
otherwise on the first body write (including ``pathsend`` and ``zerocopysend``
file transfers).
"""

import os
from collections.abc import Callable, Mapping
from typing import Any

from starlette.datastructures import Headers, MutableHeaders
from starlette.requests import HTTPConnection
from starlette.types import Message, Send

from httplog.config import Config
from httplog.fields import FieldRegistry, ResponseSnapshot, build_record
from httplog.logging import get_logger
from httplog.protocols import FieldLogger

logger = get_logger()

RESPONDING_MESSAGE = "Responding to HTTP request"
REDIRECTING_MESSAGE = "Redirecting HTTP request"

DEFAULT_STATUS = 200

FILE_MESSAGE_TYPES = frozenset({"http.response.pathsend", "http.response.zerocopysend"})

BodyParser = Callable[[bytes, str], Mapping[str, str] | None]


def no_body_supplement(body: bytes, content_type: str) -> Mapping[str, str] | None:
    """Default body parser: contributes nothing to the record."""
    return None


def _file_message_size(message: Message) -> int:
    if message["type"] == "http.response.zerocopysend":
        count = message.get("count")
        if isinstance(count, int) and count >= 0:
            return count
        return 0
    try:
        return os.path.getsize(message["path"])
    except (KeyError, OSError, TypeError):
        return 0


def is_json_content_type(content_type: str) -> bool:
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


class ResponseObserver:
    """Wrap ``send`` and log the response once it is committed.

    Args:
        send: The ASGI ``send`` callable of the current request.
        request: The request being served.
        config: Selects the fields logged on completion.
        registry: Computes field values.
        sink: Receives the completion line.
        body_parser: Called with the first body chunk of JSON responses; any
            non-empty values it returns are added to the record.

    Attributes:
        headers: Response headers, editable until the response is committed.
        status_code: Committed status, ``None`` until then.
        bytes_written: Body bytes forwarded so far.
        committed: Whether the status line has been sent.
        logged: Whether the completion line has been emitted.
    """

    def __init__(
        self,
        send: Send,
        request: HTTPConnection,
        config: Config,
        registry: FieldRegistry,
        sink: FieldLogger,
        body_parser: BodyParser = no_body_supplement,
    ) -> None:
        self._send = send
        self._request = request
        self._config = config
        self._registry = registry
        self._sink = sink
        self._body_parser = body_parser
        self._start_extensions: dict[str, Any] = {}

        self.headers = MutableHeaders()
        self.status_code: int | None = None
        self.bytes_written = 0
        self.committed = False
        self.logged = False

    async def __call__(self, message: Message) -> None:
        message_type = message["type"]
        if message_type == "http.response.start":
            if self.committed:
                self._warn_superfluous(message["status"])
                return
            for key, value in message.get("headers", []):
                self.headers.append(key.decode("latin-1"), value.decode("latin-1"))
            self._start_extensions = {
                key: value
                for key, value in message.items()
                if key not in ("type", "status", "headers")
            }
            await self.write_header(message["status"])
        elif message_type == "http.response.body":
            await self.write(message.get("body", b""), more_body=message.get("more_body", False))
        elif message_type in FILE_MESSAGE_TYPES:
            await self.write_file(message)
        else:
            await self._send(message)

    async def write_header(self, status_code: int) -> None:
        """Commit the status line and headers."""
        if self.committed:
            self._warn_superfluous(status_code)
            return

        await self._send(
            {
                "type": "http.response.start",
                "status": status_code,
                "headers": list(self.headers.raw),
                **self._start_extensions,
            }
        )
        self.status_code = status_code
        self.committed = True

        if "location" in self.headers:
            self._emit(b"")

    async def write(self, body: bytes, more_body: bool = False) -> None:
        """Send a body chunk, committing a default 200 status first if needed."""
        if not self.committed:
            await self.write_header(DEFAULT_STATUS)

        await self._send({"type": "http.response.body", "body": body, "more_body": more_body})
        self.bytes_written += len(body)
        self._emit(body)

    async def write_file(self, message: Message) -> None:
        """Forward a ``pathsend`` or ``zerocopysend`` message as a body write."""
        if not self.committed:
            await self.write_header(DEFAULT_STATUS)

        await self._send(message)
        self.bytes_written += _file_message_size(message)
        self._emit(b"")

    def snapshot(self) -> ResponseSnapshot:
        return ResponseSnapshot(
            status=self.status_code,
            bytes_out=self.bytes_written,
            headers=Headers(raw=list(self.headers.raw)),
        )

    def _warn_superfluous(self, status_code: int) -> None:
        logger.warning(
            "superfluous_write_header",
            status=status_code,
            committed_status=self.status_code,
        )

    def _emit(self, body: bytes) -> None:
        if self.logged:
            return
        self.logged = True

        response = self.snapshot()
        record = self._registry.request_record(self._config.response_req_fields, self._request)
        record.update(self._registry.response_record(self._config.response_fields, response))

        content_type = response.headers.get("content-type", "")
        if body and is_json_content_type(content_type):
            supplement = self._body_parser(body, content_type)
            if supplement:
                for key, value in build_record(supplement.items()).items():
                    record.setdefault(key, value)

        if "location" in response.headers:
            message = REDIRECTING_MESSAGE
        else:
            message = RESPONDING_MESSAGE

        sink = self._sink.with_fields(record) if record else self._sink
        sink.log(message)
