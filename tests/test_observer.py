"""Tests for the response observer state machine."""

from unittest.mock import MagicMock

import pytest

from conftest import FIXED_TIMESTAMP, RecordingSend, fixed_clock, make_request
from httplog.config import Config, default_req_res_config
from httplog.fields import FieldRegistry, RequestField, ResponseField
from httplog.observer import (
    REDIRECTING_MESSAGE,
    RESPONDING_MESSAGE,
    ResponseObserver,
    is_json_content_type,
)


def _observer(send, sink, config=None, **kwargs):
    return ResponseObserver(
        send,
        make_request(),
        config=config or default_req_res_config(),
        registry=FieldRegistry(clock=fixed_clock),
        sink=sink,
        **kwargs,
    )


class TestEmission:
    @pytest.mark.asyncio
    async def test_emits_exactly_once_over_many_writes(self, sent, sink):
        observer = _observer(sent, sink)
        await observer.write_header(200)
        await observer.write(b"one")
        await observer.write(b"two")
        await observer.write(b"three")

        sink.log.assert_called_once_with(RESPONDING_MESSAGE)
        assert observer.logged is True
        assert observer.bytes_written == len(b"onetwothree")

    @pytest.mark.asyncio
    async def test_record_reflects_first_write(self, sent, sink):
        observer = _observer(sent, sink)
        observer.headers["Content-Type"] = "text/plain"
        await observer.write(b"hello", more_body=True)
        await observer.write(b" world")

        sink.with_fields.assert_called_once_with(
            {
                "res_status": "200",
                "res_bytes_out": "5",
                "res_content_type": "text/plain",
                "res_time": FIXED_TIMESTAMP,
            }
        )

    @pytest.mark.asyncio
    async def test_header_commit_alone_does_not_emit(self, sent, sink):
        observer = _observer(sent, sink)
        await observer.write_header(204)

        assert observer.committed is True
        assert observer.status_code == 204
        sink.log.assert_not_called()

    @pytest.mark.asyncio
    async def test_nothing_written_nothing_logged(self, sent, sink):
        _observer(sent, sink)
        sink.with_fields.assert_not_called()
        sink.log.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_record_still_logs_message(self, sent, sink):
        observer = _observer(sent, sink, config=Config())
        await observer.write(b"x")

        sink.with_fields.assert_not_called()
        sink.log.assert_called_once_with(RESPONDING_MESSAGE)

    @pytest.mark.asyncio
    async def test_request_fields_are_folded_in(self, sent, sink):
        config = Config(
            response_req_fields=(RequestField.METHOD, RequestField.PATH, RequestField.ID),
            response_fields=(ResponseField.STATUS,),
        )
        observer = _observer(sent, sink, config=config)
        await observer.write(b"x")

        sink.with_fields.assert_called_once_with(
            {"req_method": "GET", "req_path": "/some_endpoint", "res_status": "200"}
        )


class TestDefaultStatus:
    @pytest.mark.asyncio
    async def test_write_without_status_matches_explicit_200(self, sink):
        implicit_send, explicit_send = RecordingSend(), RecordingSend()
        implicit_sink, explicit_sink = MagicMock(), MagicMock()
        implicit_sink.with_fields.return_value = implicit_sink
        explicit_sink.with_fields.return_value = explicit_sink

        implicit = _observer(implicit_send, implicit_sink)
        await implicit.write(b"payload")

        explicit = _observer(explicit_send, explicit_sink)
        await explicit.write_header(200)
        await explicit.write(b"payload")

        assert implicit_send.messages == explicit_send.messages
        assert implicit_sink.with_fields.call_args == explicit_sink.with_fields.call_args
        assert implicit.status_code == explicit.status_code == 200

    @pytest.mark.asyncio
    async def test_forwards_start_then_body(self, sent, sink):
        observer = _observer(sent, sink)
        observer.headers["X-Trace"] = "t1"
        await observer.write(b"payload")

        assert sent.messages == [
            {"type": "http.response.start", "status": 200, "headers": [(b"x-trace", b"t1")]},
            {"type": "http.response.body", "body": b"payload", "more_body": False},
        ]


class TestRedirect:
    @pytest.mark.asyncio
    async def test_redirect_emits_on_commit(self, sent, sink):
        observer = _observer(sent, sink)
        observer.headers["Location"] = "/wrong_endpoint?arg1=V1&arg2=V2"
        await observer.write_header(302)

        sink.log.assert_called_once_with(REDIRECTING_MESSAGE)
        sink.with_fields.assert_called_once_with(
            {
                "res_status": "302",
                "res_bytes_out": "0",
                "res_time": FIXED_TIMESTAMP,
                "res_location_args": "arg1=...&arg2=...",
                "res_location_host": "/wrong_endpoint",
            }
        )
        assert len(sent.messages) == 1

    @pytest.mark.asyncio
    async def test_body_after_redirect_does_not_reemit(self, sent, sink):
        observer = _observer(sent, sink)
        observer.headers["Location"] = "/elsewhere"
        await observer.write_header(302)
        await observer.write(b"<a href='/elsewhere'>Found</a>")

        sink.log.assert_called_once_with(REDIRECTING_MESSAGE)
        assert observer.bytes_written > 0

    @pytest.mark.asyncio
    async def test_location_set_after_body_keeps_first_message(self, sent, sink):
        observer = _observer(sent, sink)
        await observer.write(b"body")
        observer.headers["Location"] = "/late"
        await observer.write(b"more")

        sink.log.assert_called_once_with(RESPONDING_MESSAGE)


class TestSendInterface:
    @pytest.mark.asyncio
    async def test_asgi_messages_are_observed(self, sent, sink):
        observer = _observer(sent, sink)
        await observer(
            {
                "type": "http.response.start",
                "status": 201,
                "headers": [(b"content-type", b"application/json")],
            }
        )
        await observer({"type": "http.response.body", "body": b'{"id": 1}'})

        assert observer.status_code == 201
        assert observer.bytes_written == 9
        assert sent.messages[0]["headers"] == [(b"content-type", b"application/json")]
        sink.with_fields.assert_called_once_with(
            {
                "res_status": "201",
                "res_bytes_out": "9",
                "res_content_type": "application/json",
                "res_time": FIXED_TIMESTAMP,
            }
        )

    @pytest.mark.asyncio
    async def test_start_message_extensions_are_preserved(self, sent, sink):
        observer = _observer(sent, sink)
        await observer({"type": "http.response.start", "status": 200, "headers": [], "trailers": True})

        assert sent.messages[0]["trailers"] is True

    @pytest.mark.asyncio
    async def test_other_messages_pass_through(self, sent, sink):
        observer = _observer(sent, sink)
        message = {"type": "http.response.trailers", "headers": [], "more_trailers": False}
        await observer(message)

        assert sent.messages == [message]
        assert observer.committed is False

    @pytest.mark.asyncio
    async def test_pathsend_counts_as_body_write(self, sent, sink, tmp_path):
        report = tmp_path / "report.csv"
        report.write_bytes(b"a,b\n1,2\n")
        observer = _observer(sent, sink)
        await observer(
            {"type": "http.response.start", "status": 200, "headers": [(b"content-type", b"text/csv")]}
        )
        message = {"type": "http.response.pathsend", "path": str(report)}
        await observer(message)

        assert sent.messages[-1] is message
        assert observer.bytes_written == 8
        sink.log.assert_called_once_with(RESPONDING_MESSAGE)
        sink.with_fields.assert_called_once_with(
            {
                "res_status": "200",
                "res_bytes_out": "8",
                "res_content_type": "text/csv",
                "res_time": FIXED_TIMESTAMP,
            }
        )

    @pytest.mark.asyncio
    async def test_pathsend_for_missing_file_still_logs(self, sent, sink, tmp_path):
        observer = _observer(sent, sink)
        await observer({"type": "http.response.pathsend", "path": str(tmp_path / "gone.bin")})

        assert observer.status_code == 200
        assert observer.bytes_written == 0
        sink.log.assert_called_once_with(RESPONDING_MESSAGE)

    @pytest.mark.asyncio
    async def test_zerocopysend_uses_count(self, sent, sink):
        observer = _observer(sent, sink)
        await observer.write_header(200)
        await observer({"type": "http.response.zerocopysend", "file": 3, "count": 1024, "more_body": True})
        await observer({"type": "http.response.zerocopysend", "file": 3, "count": 512})

        assert observer.bytes_written == 1536
        assert sink.with_fields.call_args.args[0]["res_bytes_out"] == "1024"
        sink.log.assert_called_once_with(RESPONDING_MESSAGE)

    @pytest.mark.asyncio
    async def test_second_start_message_leaves_state_alone(self, sent, sink):
        observer = _observer(sent, sink)
        await observer({"type": "http.response.start", "status": 200, "headers": []})
        await observer(
            {
                "type": "http.response.start",
                "status": 302,
                "headers": [(b"location", b"/elsewhere")],
                "trailers": True,
            }
        )
        await observer({"type": "http.response.body", "body": b"ok"})

        assert "location" not in observer.headers
        assert observer.status_code == 200
        assert len(sent.messages) == 2
        sink.log.assert_called_once_with(RESPONDING_MESSAGE)
        assert "res_location_host" not in sink.with_fields.call_args.args[0]

    @pytest.mark.asyncio
    async def test_superfluous_write_header_is_ignored(self, sent, sink):
        observer = _observer(sent, sink)
        await observer.write_header(200)
        await observer.write_header(500)

        assert observer.status_code == 200
        assert len(sent.messages) == 1


class TestFailures:
    @pytest.mark.asyncio
    async def test_body_write_error_propagates(self, sink):
        send = RecordingSend(fail_on="http.response.body")
        observer = _observer(send, sink)

        with pytest.raises(OSError, match="connection reset"):
            await observer.write(b"payload")

        assert observer.committed is True
        assert observer.bytes_written == 0
        assert observer.logged is False
        sink.log.assert_not_called()

    @pytest.mark.asyncio
    async def test_header_write_error_propagates(self, sink):
        send = RecordingSend(fail_on="http.response.start")
        observer = _observer(send, sink)

        with pytest.raises(OSError):
            await observer.write_header(200)

        assert observer.committed is False
        assert observer.status_code is None


class TestBodyParser:
    @pytest.mark.asyncio
    async def test_json_body_goes_through_parser(self, sent, sink):
        parser = MagicMock(return_value={"res_body_kind": "object", "res_body_empty": ""})
        observer = _observer(sent, sink, config=Config(), body_parser=parser)
        observer.headers["Content-Type"] = "application/json; charset=utf-8"
        await observer.write(b"{}")

        parser.assert_called_once_with(b"{}", "application/json; charset=utf-8")
        sink.with_fields.assert_called_once_with({"res_body_kind": "object"})

    @pytest.mark.asyncio
    async def test_configured_fields_win_over_parser(self, sent, sink):
        parser = MagicMock(return_value={"res_status": "999"})
        config = Config(response_fields=(ResponseField.STATUS,))
        observer = _observer(sent, sink, config=config, body_parser=parser)
        observer.headers["Content-Type"] = "application/json"
        await observer.write(b"{}")

        sink.with_fields.assert_called_once_with({"res_status": "200"})

    @pytest.mark.asyncio
    async def test_non_json_body_skips_parser(self, sent, sink):
        parser = MagicMock(return_value={"x": "y"})
        observer = _observer(sent, sink, body_parser=parser)
        observer.headers["Content-Type"] = "text/html"
        await observer.write(b"<p>hi</p>")

        parser.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_body_skips_parser(self, sent, sink):
        parser = MagicMock(return_value={"x": "y"})
        observer = _observer(sent, sink, body_parser=parser)
        observer.headers["Content-Type"] = "application/json"
        await observer.write(b"")

        parser.assert_not_called()

    @pytest.mark.parametrize(
        ("content_type", "expected"),
        [
            ("application/json", True),
            ("Application/JSON; charset=utf-8", True),
            ("application/problem+json", True),
            ("text/plain", False),
            ("", False),
        ],
    )
    def test_is_json_content_type(self, content_type, expected):
        assert is_json_content_type(content_type) is expected
