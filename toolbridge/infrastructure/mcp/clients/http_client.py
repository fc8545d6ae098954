"""MCP HTTP Connection for remote (HTTP/SSE) transport.

Every JSON-RPC request is an independent HTTP POST whose body is the
request envelope and whose response body is the JSON-RPC response. No
session, stream or subscription is held between calls.

SSE-flavoured servers publish an event stream alongside a separate
message-submission endpoint; this client only uses the latter, at
``<url>/message``.
"""

import logging
from typing import Any
from urllib.parse import urlparse

import httpx

from toolbridge.domain.exceptions.mcp import (
    MCPHttpStatusError,
    MCPProtocolError,
    MCPRequestTimeoutError,
    MCPTransportError,
    MCPTransportStartError,
)
from toolbridge.domain.model.mcp.connection import ConnectionState
from toolbridge.domain.model.mcp.server import MCPServerConfig
from toolbridge.infrastructure.mcp.clients.base import (
    DEFAULT_CLIENT_NAME,
    DEFAULT_CLIENT_VERSION,
    DEFAULT_TIMEOUT,
    BaseMCPConnection,
)
from toolbridge.infrastructure.mcp.protocol import (
    MessageKind,
    decode_message,
    encode_notification,
    encode_request,
)

SSE_MESSAGE_SUFFIX = "/message"


class MCPHttpConnection(BaseMCPConnection):
    """
    HTTP-based MCP connection for http and sse transports.

    Usage:
        conn = MCPHttpConnection(MCPServerConfig(name="search", transport_type=TransportType.HTTP,
                                                 url="https://mcp.example.com"))
        await conn.start()
        await conn.initialize()
        tools = await conn.list_tools()
        output = await conn.call_tool("search", {"query": "test"})
        await conn.close()
    """

    def __init__(
        self,
        config: MCPServerConfig,
        timeout: float = DEFAULT_TIMEOUT,
        headers: dict[str, str] | None = None,
        client_name: str = DEFAULT_CLIENT_NAME,
        client_version: str = DEFAULT_CLIENT_VERSION,
        logger: logging.Logger | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the HTTP connection.

        Args:
            config: http or sse server configuration.
            timeout: Per-request deadline in seconds.
            headers: Extra HTTP headers sent with every request.
            client_name: Name sent in ``clientInfo``.
            client_version: Version sent in ``clientInfo``.
            logger: Logger to report to.
            transport: Optional httpx transport (used by tests to mock the server).
        """
        super().__init__(
            config,
            timeout=timeout,
            client_name=client_name,
            client_version=client_version,
            logger=logger,
        )
        self.headers = {"Content-Type": "application/json", **(headers or {})}
        self._transport = transport
        self._started = False

    @property
    def endpoint_url(self) -> str:
        """URL requests are POSTed to."""
        base = (self._config.url or "").rstrip("/")
        if self._config.is_sse:
            return base + SSE_MESSAGE_SUFFIX
        return self._config.url or ""

    async def start(self) -> None:
        """
        Validate the endpoint; no connection is opened until the first request.

        Raises:
            MCPTransportStartError: If the URL is not an absolute http(s) URL.
        """
        self._ensure_open()
        parsed = urlparse(self._config.url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise MCPTransportStartError(
                endpoint=self._config.url,
                message=f"Invalid URL for MCP server '{self.name}'",
            )
        self._started = True
        self._logger.info(
            f"Using {self.transport_type.value} MCP server {self.name} at {self.endpoint_url}"
        )

    async def close(self) -> None:
        """Mark the connection closed; there are no held resources."""
        self._started = False
        self._set_state(ConnectionState.CLOSED)

    async def _post(
        self,
        payload: dict[str, Any],
        method: str,
        request_id: int | None,
    ) -> httpx.Response:
        url = self.endpoint_url
        try:
            async with httpx.AsyncClient(
                headers=self.headers,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            ) as client:
                return await client.post(url, json=payload)
        except httpx.TimeoutException as e:
            raise MCPRequestTimeoutError(method, request_id or 0, self.timeout) from e
        except httpx.HTTPError as e:
            self._logger.error(f"HTTP request to {self.name} failed: {e}")
            raise MCPTransportError(
                endpoint=url,
                message=f"HTTP request failed: {e}",
                original_error=e,
            ) from e

    async def _send_request(self, method: str, params: dict[str, Any] | None = None) -> Any:
        """POST a JSON-RPC request and return the ``result`` of its response."""
        self._ensure_open()
        if not self._started:
            raise MCPTransportError(
                endpoint=self._config.url,
                message=f"MCP server '{self.name}' not started",
            )
        request_id = self._correlator.next_id()
        self._logger.debug(f"Sending HTTP request to {self.name}: {method} (id={request_id})")

        response = await self._post(encode_request(method, params, request_id), method, request_id)
        if response.status_code != 200:
            raise MCPHttpStatusError(self.endpoint_url, response.status_code, response.text)

        message = decode_message(response.content)
        if message.kind == MessageKind.ERROR:
            return self._correlator.unwrap(message)
        if message.kind != MessageKind.RESPONSE:
            raise MCPProtocolError(
                None, f"invalid JSON-RPC response from '{self.name}': {response.text[:200]}"
            )
        return message.result

    async def _send_notification(self, method: str, params: dict[str, Any] | None = None) -> None:
        """POST a JSON-RPC notification; the response body is ignored."""
        self._ensure_open()
        response = await self._post(encode_notification(method, params), method, None)
        if response.status_code >= 400:
            self._logger.warning(
                f"MCP server {self.name} rejected {method} with HTTP {response.status_code}"
            )
