"""
MCP Manager.

Owns the connections to every configured MCP server and routes tool
calls to the server that provides each tool.

Loading reads the whole config document first, then starts every server
concurrently. A server that fails to start, initialize or list its tools
is closed and left out; the others are registered and their tools merged
in configuration order. When two servers expose a tool with the same
name, the one later in the configuration owns it.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any

from toolbridge.configuration.config import Settings, get_settings
from toolbridge.domain.exceptions.mcp import MCPManagerStateError, MCPToolNotFoundError
from toolbridge.domain.model.mcp.server import MCPServerConfig, MCPServerInfo
from toolbridge.domain.model.mcp.tool import MCPToolSchema
from toolbridge.domain.ports.mcp.connection_port import MCPConnectionPort
from toolbridge.infrastructure.mcp.clients.factory import MCPConnectionFactory
from toolbridge.infrastructure.mcp.config import load_mcp_config, resolve_config_path


class MCPManager:
    """
    Manager for MCP server connections and tool routing.

    Usage:
        async with MCPManager() as manager:
            await manager.load_from_config("~/.config/mcp/mcp.json")
            for server in manager.get_servers():
                print(server.name, server.tool_count)
            output = await manager.execute_tool("fetch", {"url": "https://example.com"})
    """

    def __init__(
        self,
        settings: Settings | None = None,
        logger: logging.Logger | None = None,
        connection_factory: MCPConnectionFactory | None = None,
    ) -> None:
        """
        Initialize the manager.

        Args:
            settings: Application settings; defaults to :func:`get_settings`.
            logger: Logger for the manager and every connection it creates.
            connection_factory: Creates connections from server configs.
        """
        self._settings = settings or get_settings()
        self._logger = logger or logging.getLogger(__name__)
        self._factory = connection_factory or MCPConnectionFactory(
            timeout=self._settings.mcp_request_timeout,
            max_read_attempts=self._settings.mcp_max_read_attempts,
            client_name=self._settings.mcp_client_name,
            client_version=self._settings.mcp_client_version,
            logger=self._logger,
        )

        # server name -> live connection, in registration order
        self._connections: dict[str, MCPConnectionPort] = {}
        # tool name -> owning server name
        self._tool_servers: dict[str, str] = {}
        # tool name -> schema from the owning server
        self._tool_schemas: dict[str, MCPToolSchema] = {}

        # server name -> reason, for entries that never became ready
        self.rejected: dict[str, str] = {}
        self.failed: dict[str, str] = {}

        self.config_path: Path | None = None
        self._loaded = False
        self._closed = False

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def tool_count(self) -> int:
        """Number of routable tools."""
        return len(self._tool_servers)

    async def load_from_config(self, path: str | Path | None = None) -> None:
        """
        Load the config document and start every server in it.

        Args:
            path: Config file; falls back to ``MCP_CONFIG_PATH`` and then the
                default locations.

        Raises:
            MCPConfigLoadError: If the document is unreadable or malformed.
                Nothing is started in that case.
            MCPManagerStateError: If the manager was already loaded or closed.
        """
        if self._loaded or self._closed:
            raise MCPManagerStateError("MCP manager has already been loaded")

        config_path = resolve_config_path(path, self._settings)
        config = load_mcp_config(config_path)
        self._loaded = True
        self.config_path = config_path
        self.rejected = dict(config.rejected)

        if not config.servers:
            self._logger.info(f"No MCP servers configured in {config_path}")
            return

        self._logger.info(f"Starting {len(config.servers)} MCP servers from {config_path}")
        tasks = [asyncio.ensure_future(self._start_server(s)) for s in config.servers.values()]
        try:
            connections = await asyncio.gather(*tasks)
        except BaseException:
            # Cancelled mid-load: servers that already came up were never
            # registered, so nothing else would close them.
            started = [
                t.result()
                for t in tasks
                if t.done() and not t.cancelled() and t.exception() is None
            ]
            await self._close_connections([c for c in started if c is not None])
            self._loaded = False
            self.config_path = None
            self.rejected.clear()
            self.failed.clear()
            raise

        for connection in connections:
            if connection is not None:
                self._register(connection)

        self._logger.info(
            f"Loaded {len(self._connections)} MCP servers with {self.tool_count} tools"
        )

    async def _start_server(self, config: MCPServerConfig) -> MCPConnectionPort | None:
        """Start, initialize and discover one server; ``None`` on any failure."""
        connection: MCPConnectionPort | None = None
        try:
            connection = self._factory.create(config)
            await connection.start()
            await connection.initialize()
            await connection.list_tools()
        except Exception as e:
            self._logger.warning(f"Failed to start MCP server {config.name}: {e}")
            self.failed[config.name] = str(e)
            await self._discard(connection)
            return None
        except BaseException:
            self._logger.warning(f"Start of MCP server {config.name} was interrupted")
            await self._discard(connection)
            raise
        return connection

    async def _discard(self, connection: MCPConnectionPort | None) -> None:
        """Fail and close a connection that never became ready."""
        if connection is None:
            return
        connection.mark_failed()
        try:
            await connection.close()
        except Exception as e:
            self._logger.error(f"Error closing MCP server {connection.name}: {e}")

    def _register(self, connection: MCPConnectionPort) -> None:
        self._connections[connection.name] = connection
        tools = connection.tools
        for tool in tools:
            previous = self._tool_servers.get(tool.name)
            if previous is not None and previous != connection.name:
                self._logger.warning(
                    f"MCP tool {tool.name} from server {connection.name} "
                    f"overrides the one from server {previous}"
                )
            self._tool_servers[tool.name] = connection.name
            self._tool_schemas[tool.name] = tool
        self._logger.info(f"Registered MCP server {connection.name} with {len(tools)} tools")

    def has_tool(self, name: str) -> bool:
        return name in self._tool_servers

    def get_tool_server(self, name: str) -> str | None:
        """Name of the server that owns tool ``name``, if any."""
        return self._tool_servers.get(name)

    def get_tools(self) -> list[MCPToolSchema]:
        """Schemas of all routable tools."""
        return list(self._tool_schemas.values())

    def get_function_tools(self) -> list[dict[str, Any]]:
        """Routable tools as LLM function-calling definitions."""
        return [tool.to_function_tool() for tool in self._tool_schemas.values()]

    def get_servers(self) -> list[MCPServerInfo]:
        """Snapshot of every live server, in registration order."""
        servers = []
        for connection in self._connections.values():
            tools = connection.tools
            servers.append(
                MCPServerInfo(
                    name=connection.name,
                    transport=connection.transport_type,
                    tool_count=len(tools),
                    tool_names=[t.name for t in tools],
                    description=connection.config.description,
                )
            )
        return servers

    async def execute_tool(self, name: str, arguments: dict[str, Any] | None = None) -> str:
        """
        Call tool ``name`` on the server that owns it.

        Raises:
            MCPToolNotFoundError: If no live server provides the tool.
            MCPToolExecutionError: If the server flags the result as an error.
            MCPError: On protocol or transport failure.
        """
        server_name = self._tool_servers.get(name)
        connection = self._connections.get(server_name) if server_name else None
        if connection is None:
            raise MCPToolNotFoundError(name)
        return await connection.call_tool(name, arguments or {})

    async def close(self) -> None:
        """Close every connection. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True

        connections = list(self._connections.values())
        self._connections.clear()
        self._tool_servers.clear()
        self._tool_schemas.clear()
        await self._close_connections(connections)

    async def _close_connections(self, connections: list[MCPConnectionPort]) -> None:
        if not connections:
            return
        results = await asyncio.gather(
            *(c.close() for c in connections), return_exceptions=True
        )
        for connection, result in zip(connections, results):
            if isinstance(result, Exception):
                self._logger.error(f"Error closing MCP server {connection.name}: {result}")
            else:
                self._logger.info(f"Closed MCP server: {connection.name}")

    async def __aenter__(self) -> "MCPManager":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
