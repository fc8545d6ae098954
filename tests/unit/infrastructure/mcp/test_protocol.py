"""Unit tests for the JSON-RPC codec and request correlator."""

import json

import pytest

from toolbridge.domain.exceptions.mcp import MCPProtocolError
from toolbridge.infrastructure.mcp.protocol import (
    MessageKind,
    RequestCorrelator,
    decode_message,
    encode_line,
    encode_notification,
    encode_request,
)


class TestEncoding:
    """Tests for request and notification encoding."""

    def test_encode_request_with_params(self):
        request = encode_request("tools/call", {"name": "echo", "arguments": {"x": 1}}, 7)

        assert request == {
            "jsonrpc": "2.0",
            "id": 7,
            "method": "tools/call",
            "params": {"name": "echo", "arguments": {"x": 1}},
        }

    def test_encode_request_omits_missing_params(self):
        request = encode_request("tools/list", None, 2)

        assert "params" not in request

    def test_encode_notification_has_no_id(self):
        notification = encode_notification("notifications/initialized")

        assert notification == {"jsonrpc": "2.0", "method": "notifications/initialized"}

    def test_encode_line_is_single_newline_terminated_line(self):
        line = encode_line(encode_request("ping", {"text": "a\nb"}, 1))

        assert line.endswith(b"\n")
        assert line.count(b"\n") == 1
        assert json.loads(line)["params"]["text"] == "a\nb"


class TestDecoding:
    """Tests for inbound message classification."""

    def test_response(self):
        message = decode_message(b'{"jsonrpc":"2.0","id":3,"result":{"tools":[]}}\n')

        assert message.kind == MessageKind.RESPONSE
        assert message.id == 3
        assert message.result == {"tools": []}

    def test_null_result_is_still_a_response(self):
        message = decode_message('{"jsonrpc":"2.0","id":1,"result":null}')

        assert message.kind == MessageKind.RESPONSE
        assert message.result is None

    def test_error(self):
        message = decode_message(
            '{"jsonrpc":"2.0","id":4,"error":{"code":-32601,"message":"not found"}}'
        )

        assert message.kind == MessageKind.ERROR
        assert message.error.code == -32601
        assert message.error.message == "not found"

    def test_notification(self):
        message = decode_message('{"jsonrpc":"2.0","method":"notifications/progress"}')

        assert message.kind == MessageKind.NOTIFICATION
        assert message.id is None

    @pytest.mark.parametrize(
        "line",
        ["", "   ", "Server starting on stdio...", "[1, 2]", "{not json", '"text"'],
    )
    def test_unparseable(self, line):
        assert decode_message(line).kind == MessageKind.UNPARSEABLE

    def test_non_integer_id_is_ignored(self):
        message = decode_message('{"jsonrpc":"2.0","id":"abc","result":{}}')

        assert message.kind == MessageKind.RESPONSE
        assert message.id is None


class TestRequestCorrelator:
    """Tests for RequestCorrelator."""

    def test_ids_start_at_one_and_increase(self):
        correlator = RequestCorrelator()

        ids = [correlator.next_id() for _ in range(3)]

        assert ids == [1, 2, 3]
        assert correlator.last_id == 3

    def test_response_matches_own_id_only(self):
        correlator = RequestCorrelator()
        message = decode_message('{"jsonrpc":"2.0","id":5,"result":{}}')

        assert correlator.matches(message, 5)
        assert not correlator.matches(message, 6)

    def test_error_with_null_id_matches(self):
        correlator = RequestCorrelator()
        message = decode_message(
            '{"jsonrpc":"2.0","id":null,"error":{"code":-32700,"message":"parse error"}}'
        )

        assert correlator.matches(message, 9)

    def test_notification_never_matches(self):
        correlator = RequestCorrelator()
        message = decode_message('{"jsonrpc":"2.0","method":"notifications/message"}')

        assert not correlator.matches(message, 1)

    def test_unwrap_raises_protocol_error(self):
        message = decode_message(
            '{"jsonrpc":"2.0","id":1,"error":{"code":-32602,"message":"bad params","data":{"x":1}}}'
        )

        with pytest.raises(MCPProtocolError) as exc_info:
            RequestCorrelator.unwrap(message)

        assert exc_info.value.code == -32602
        assert exc_info.value.data == {"x": 1}
        assert str(exc_info.value) == "RPC error -32602: bad params"

    def test_unwrap_returns_result(self):
        message = decode_message('{"jsonrpc":"2.0","id":1,"result":{"ok":true}}')

        assert RequestCorrelator.unwrap(message) == {"ok": True}
