"""
Base MCP connection.

Implements the transport-independent half of an MCP connection: the
lifecycle state machine, the initialize handshake, tool discovery and
tool invocation. Subclasses provide the wire: ``start``, ``close``,
``_send_request`` and ``_send_notification``.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

from toolbridge import __version__
from toolbridge.domain.exceptions.mcp import (
    MCPConnectionClosedError,
    MCPDiscoveryError,
    MCPError,
    MCPInitializeError,
    MCPProtocolError,
    MCPToolExecutionError,
)
from toolbridge.domain.model.mcp.connection import ConnectionState
from toolbridge.domain.model.mcp.server import MCPServerConfig
from toolbridge.domain.model.mcp.tool import MCPToolResult, MCPToolSchema
from toolbridge.domain.model.mcp.transport import TransportType
from toolbridge.infrastructure.mcp.protocol import PROTOCOL_VERSION, RequestCorrelator

# Default request deadline in seconds
DEFAULT_TIMEOUT = 120.0

DEFAULT_CLIENT_NAME = "toolbridge"
DEFAULT_CLIENT_VERSION = __version__


class BaseMCPConnection(ABC):
    """
    Abstract base class for MCP connections.

    Provides request id management, state tracking and the MCP methods
    shared by all transports.
    """

    def __init__(
        self,
        config: MCPServerConfig,
        timeout: float = DEFAULT_TIMEOUT,
        client_name: str = DEFAULT_CLIENT_NAME,
        client_version: str = DEFAULT_CLIENT_VERSION,
        logger: logging.Logger | None = None,
    ) -> None:
        """
        Initialize the connection.

        Args:
            config: Server configuration.
            timeout: Per-request deadline in seconds.
            client_name: Name sent in ``clientInfo`` during initialize.
            client_version: Version sent in ``clientInfo`` during initialize.
            logger: Logger to report to; defaults to the implementing module's logger.
        """
        self._config = config
        self.timeout = timeout
        self.client_name = client_name
        self.client_version = client_version
        self._logger = logger or logging.getLogger(type(self).__module__)
        self._correlator = RequestCorrelator()
        self._state = ConnectionState.STARTING
        self._tools: list[MCPToolSchema] = []
        self.server_info: dict[str, Any] | None = None

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def config(self) -> MCPServerConfig:
        return self._config

    @property
    def transport_type(self) -> TransportType:
        return self._config.transport_type

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def tools(self) -> list[MCPToolSchema]:
        return list(self._tools)

    @property
    def last_request_id(self) -> int:
        """The most recently issued request id (0 before the first request)."""
        return self._correlator.last_id

    def _set_state(self, state: ConnectionState) -> None:
        if self._state == state:
            return
        if not self._state.can_transition_to(state):
            self._logger.debug(
                f"Ignoring MCP state change {self._state.value} -> {state.value} for {self.name}"
            )
            return
        self._logger.debug(f"MCP server {self.name}: {self._state.value} -> {state.value}")
        self._state = state

    def mark_failed(self) -> None:
        """Move the connection to the terminal failed state."""
        self._set_state(ConnectionState.FAILED)

    def _ensure_open(self) -> None:
        if self._state.is_terminal:
            raise MCPConnectionClosedError(
                endpoint=self._config.endpoint,
                message=f"MCP server '{self.name}' is {self._state.value}",
            )

    @abstractmethod
    async def start(self) -> None:
        """Spawn the process or prepare the HTTP endpoint."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release transport resources. Must be idempotent."""
        ...

    @abstractmethod
    async def _send_request(self, method: str, params: dict[str, Any] | None = None) -> Any:
        """Send a request and return the ``result`` of the matching response."""
        ...

    @abstractmethod
    async def _send_notification(self, method: str, params: dict[str, Any] | None = None) -> None:
        """Send a notification; no response is awaited."""
        ...

    async def initialize(self) -> None:
        """
        Perform the initialize handshake and send ``notifications/initialized``.

        Raises:
            MCPInitializeError: If any RPC-level or transport error occurs.
        """
        params = {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {},
            "clientInfo": {"name": self.client_name, "version": self.client_version},
        }
        try:
            result = await self._send_request("initialize", params)
            if isinstance(result, dict):
                server_info = result.get("serverInfo")
                self.server_info = server_info if isinstance(server_info, dict) else None
            await self._send_notification("notifications/initialized")
        except MCPError as e:
            raise MCPInitializeError(self.name, original_error=e) from e

        self._set_state(ConnectionState.INITIALIZED)
        self._logger.debug(f"MCP server {self.name} initialized: {self.server_info}")

    async def list_tools(self) -> list[MCPToolSchema]:
        """
        Discover tools and cache them on the connection.

        Raises:
            MCPDiscoveryError: If tools/list fails or returns a malformed payload.
        """
        try:
            result = await self._send_request("tools/list")
            if not isinstance(result, dict):
                raise MCPProtocolError(None, f"unexpected tools/list result: {result!r}")
            tools_data = result.get("tools") or []
            if not isinstance(tools_data, list):
                raise MCPProtocolError(None, "tools/list result 'tools' is not a list")
            tools = [MCPToolSchema.from_dict(t) for t in tools_data if isinstance(t, dict)]
        except MCPError as e:
            raise MCPDiscoveryError(self.name, original_error=e) from e

        self._tools = tools
        self._set_state(ConnectionState.READY)
        return list(tools)

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> str:
        """
        Call a tool and return the concatenated text content.

        Raises:
            MCPToolExecutionError: If the result is flagged ``isError``.
            MCPError: On protocol or transport failure.
        """
        self._logger.info(f"Calling MCP tool: {name} on {self.name}")
        self._logger.debug(f"Tool arguments: {arguments}")

        result = await self._send_request(
            "tools/call",
            {"name": name, "arguments": arguments},
        )
        if not isinstance(result, dict):
            raise MCPProtocolError(None, f"unexpected tools/call result: {result!r}")

        tool_result = MCPToolResult.from_dict(result)
        if tool_result.is_error:
            raise MCPToolExecutionError(name, tool_result.text_output())
        return tool_result.text_output()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self.name!r}, "
            f"transport={self.transport_type.value}, state={self._state.value})"
        )
