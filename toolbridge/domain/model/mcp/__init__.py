"""
MCP (Model Context Protocol) Domain Models.

Key entities:
- MCPServerConfig: declarative server definition
- MCPServerInfo: introspection snapshot of a live server
- MCPToolSchema / MCPToolResult: tool definition and call result
- TransportType: stdio, http or sse
- ConnectionState: connection lifecycle
"""

from toolbridge.domain.model.mcp.connection import ConnectionState
from toolbridge.domain.model.mcp.server import MCPServerConfig, MCPServerInfo
from toolbridge.domain.model.mcp.tool import MCPToolResult, MCPToolSchema
from toolbridge.domain.model.mcp.transport import TransportType

__all__ = [
    # Server
    "MCPServerConfig",
    "MCPServerInfo",
    # Tool
    "MCPToolSchema",
    "MCPToolResult",
    # Transport
    "TransportType",
    # Connection
    "ConnectionState",
]
