"""
MCPConnectionPort - Abstract interface for one MCP server connection.

Both transport variants (subprocess stdio and HTTP/SSE) satisfy this
contract, so the manager never depends on a concrete transport.
"""

from abc import abstractmethod
from typing import Any, Protocol, runtime_checkable

from toolbridge.domain.model.mcp.connection import ConnectionState
from toolbridge.domain.model.mcp.server import MCPServerConfig
from toolbridge.domain.model.mcp.tool import MCPToolSchema
from toolbridge.domain.model.mcp.transport import TransportType


@runtime_checkable
class MCPConnectionPort(Protocol):
    """
    Abstract interface for MCP connection operations.

    Lifecycle: start -> initialize -> list_tools -> (call_tool)* -> close.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Configured server name."""
        ...

    @property
    @abstractmethod
    def config(self) -> MCPServerConfig:
        """Configuration the connection was created from."""
        ...

    @property
    @abstractmethod
    def transport_type(self) -> TransportType:
        """Transport kind of this connection."""
        ...

    @property
    @abstractmethod
    def state(self) -> ConnectionState:
        """Current lifecycle state."""
        ...

    @property
    @abstractmethod
    def tools(self) -> list[MCPToolSchema]:
        """Tools cached by the last successful list_tools call."""
        ...

    @abstractmethod
    async def start(self) -> None:
        """
        Spawn the process or prepare the HTTP endpoint.

        Raises:
            MCPTransportStartError: If the transport cannot be started.
        """
        ...

    @abstractmethod
    async def initialize(self) -> None:
        """
        Perform the initialize handshake.

        Raises:
            MCPInitializeError: If the server rejects or fails the handshake.
        """
        ...

    @abstractmethod
    async def list_tools(self) -> list[MCPToolSchema]:
        """
        Discover the server's tools and cache them.

        Raises:
            MCPDiscoveryError: If tools/list fails.
        """
        ...

    @abstractmethod
    async def call_tool(self, name: str, arguments: dict[str, Any]) -> str:
        """
        Invoke a tool and return its concatenated text output.

        Raises:
            MCPToolExecutionError: If the server flags the result as an error.
            MCPError: On protocol or transport failure.
        """
        ...

    @abstractmethod
    def mark_failed(self) -> None:
        """Move the connection to the terminal failed state."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """
        Release all transport resources.

        Idempotent - closing an already closed connection is a no-op.
        """
        ...
