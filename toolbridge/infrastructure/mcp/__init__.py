"""MCP (Model Context Protocol) infrastructure.

Components:
- protocol: JSON-RPC 2.0 codec and request correlation
- clients: stdio and HTTP/SSE server connections
- config: ``mcp.json`` loading
- manager: connection lifecycle and tool routing
"""

from toolbridge.infrastructure.mcp.clients import (
    BaseMCPConnection,
    MCPConnectionFactory,
    MCPHttpConnection,
    MCPProcessConnection,
)
from toolbridge.infrastructure.mcp.config import (
    MCPConfigFile,
    default_config_path,
    load_mcp_config,
    resolve_config_path,
)
from toolbridge.infrastructure.mcp.manager import MCPManager

__all__ = [
    "BaseMCPConnection",
    "MCPConfigFile",
    "MCPConnectionFactory",
    "MCPHttpConnection",
    "MCPManager",
    "MCPProcessConnection",
    "default_config_path",
    "load_mcp_config",
    "resolve_config_path",
]
