"""MCP Transport Connections.

Components:
- MCPProcessConnection: stdio transport (spawned subprocess)
- MCPHttpConnection: http/sse transport (one POST per request)
- MCPConnectionFactory: picks the variant for a server configuration
"""

from toolbridge.infrastructure.mcp.clients.base import BaseMCPConnection
from toolbridge.infrastructure.mcp.clients.factory import MCPConnectionFactory
from toolbridge.infrastructure.mcp.clients.http_client import MCPHttpConnection
from toolbridge.infrastructure.mcp.clients.subprocess_client import MCPProcessConnection

__all__ = [
    "BaseMCPConnection",
    "MCPConnectionFactory",
    "MCPHttpConnection",
    "MCPProcessConnection",
]
