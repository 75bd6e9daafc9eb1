"""Shared fixtures for httplog tests."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from starlette.requests import HTTPConnection

FIXED_NOW = datetime(2024, 5, 1, 12, 30, 45, tzinfo=timezone.utc)
FIXED_TIMESTAMP = "2024-05-01T12:30:45Z"

TEST_QUERY = b'arg1="arg1value"&arg2="arg2value"'


def fixed_clock() -> datetime:
    return FIXED_NOW


def make_request(
    path: str = "/some_endpoint",
    query: bytes = TEST_QUERY,
    headers: dict[str, str] | None = None,
    method: str = "GET",
    client: tuple[str, int] | None = None,
) -> HTTPConnection:
    scope = {
        "type": "http",
        "method": method,
        "path": path,
        "raw_path": path.encode("latin-1"),
        "query_string": query,
        "headers": [
            (key.lower().encode("latin-1"), value.encode("latin-1"))
            for key, value in (headers or {}).items()
        ],
        "client": client,
    }
    return HTTPConnection(scope)


class RecordingSend:
    """ASGI ``send`` double keeping every message it receives."""

    def __init__(self, fail_on: str | None = None) -> None:
        self.messages: list[dict] = []
        self.fail_on = fail_on

    async def __call__(self, message: dict) -> None:
        if message["type"] == self.fail_on:
            raise OSError("connection reset by peer")
        self.messages.append(message)


@pytest.fixture
def sink():
    """Field-logger double whose ``with_fields`` chains back to itself."""
    mock = MagicMock(name="sink")
    mock.with_fields.return_value = mock
    mock.with_error.return_value = mock
    return mock


@pytest.fixture
def sent():
    return RecordingSend()
