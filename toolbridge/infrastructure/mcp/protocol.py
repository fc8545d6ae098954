"""
JSON-RPC 2.0 codec and request correlation for MCP.

Encodes requests, decodes inbound lines/bodies and classifies them as
responses, error responses, notifications or noise. The correlator hands
out request ids and decides whether a decoded message answers the
request currently being awaited.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from toolbridge.domain.exceptions.mcp import MCPProtocolError

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2024-11-05"


class MessageKind(str, Enum):
    """Classification of a decoded inbound message."""

    RESPONSE = "response"
    ERROR = "error"
    NOTIFICATION = "notification"
    UNPARSEABLE = "unparseable"


@dataclass(frozen=True)
class JSONRPCError:
    """JSON-RPC error object."""

    code: int | None
    message: str
    data: Any = None

    def to_exception(self) -> MCPProtocolError:
        return MCPProtocolError(self.code, self.message, self.data)

    @classmethod
    def from_dict(cls, data: Any) -> "JSONRPCError":
        if not isinstance(data, dict):
            return cls(code=None, message=str(data))
        code = data.get("code")
        return cls(
            code=code if isinstance(code, int) and not isinstance(code, bool) else None,
            message=str(data.get("message", "")),
            data=data.get("data"),
        )


@dataclass(frozen=True)
class DecodedMessage:
    """A classified inbound JSON-RPC message."""

    kind: MessageKind
    id: int | None = None
    result: Any = None
    error: JSONRPCError | None = None
    raw: dict[str, Any] | None = None


UNPARSEABLE = DecodedMessage(kind=MessageKind.UNPARSEABLE)


def encode_request(
    method: str,
    params: dict[str, Any] | None,
    request_id: int,
) -> dict[str, Any]:
    """Build a JSON-RPC 2.0 request object; ``params`` is omitted when None."""
    request: dict[str, Any] = {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "method": method,
    }
    if params is not None:
        request["params"] = params
    return request


def encode_notification(method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
    """Build a JSON-RPC 2.0 notification (no id, no reply expected)."""
    notification: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "method": method}
    if params is not None:
        notification["params"] = params
    return notification


def encode_line(message: dict[str, Any]) -> bytes:
    """Serialize a message as one newline-terminated line for stdio framing."""
    return (json.dumps(message, separators=(",", ":")) + "\n").encode("utf-8")


def _message_id(value: Any) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def decode_message(data: bytes | str) -> DecodedMessage:
    """
    Decode and classify one line or body.

    Anything that is blank, does not start with ``{``, is not valid JSON
    or is not an object is UNPARSEABLE. Objects carrying ``error`` are
    ERROR, objects carrying ``result`` are RESPONSE, everything else is a
    NOTIFICATION. Never raises.
    """
    if isinstance(data, bytes):
        text = data.decode("utf-8", errors="replace")
    else:
        text = data
    text = text.strip()

    if not text or not text.startswith("{"):
        return UNPARSEABLE

    try:
        obj = json.loads(text)
    except json.JSONDecodeError:
        return UNPARSEABLE

    if not isinstance(obj, dict):
        return UNPARSEABLE

    msg_id = _message_id(obj.get("id"))

    if "error" in obj and obj["error"] is not None:
        return DecodedMessage(
            kind=MessageKind.ERROR,
            id=msg_id,
            error=JSONRPCError.from_dict(obj["error"]),
            raw=obj,
        )

    if "result" in obj:
        return DecodedMessage(kind=MessageKind.RESPONSE, id=msg_id, result=obj["result"], raw=obj)

    return DecodedMessage(kind=MessageKind.NOTIFICATION, id=msg_id, raw=obj)


class RequestCorrelator:
    """
    Per-connection request id issuer and response matcher.

    Ids start at 1 and strictly increase; an id is consumed as soon as it
    is issued, so a failed call never causes reuse.
    """

    def __init__(self) -> None:
        self._last_id = 0

    @property
    def last_id(self) -> int:
        return self._last_id

    def next_id(self) -> int:
        """Issue the next request id."""
        self._last_id += 1
        return self._last_id

    def matches(self, message: DecodedMessage, request_id: int) -> bool:
        """
        Whether ``message`` settles the request ``request_id``.

        Responses match only on their own id. An error response also
        matches when it has no usable id, since servers answer unparseable
        requests with ``"id": null``.
        """
        if message.kind == MessageKind.RESPONSE:
            return message.id == request_id
        if message.kind == MessageKind.ERROR:
            return message.id is None or message.id == request_id
        return False

    @staticmethod
    def unwrap(message: DecodedMessage) -> Any:
        """Return the result of a matched message, raising on error responses."""
        if message.kind == MessageKind.ERROR and message.error is not None:
            raise message.error.to_exception()
        return message.result
