"""
MCP Port Definitions.

This package defines the abstract interfaces (ports) for MCP functionality,
following hexagonal architecture principles. Implementations are provided
by infrastructure adapters.
"""

from toolbridge.domain.ports.mcp.connection_port import MCPConnectionPort

__all__ = [
    "MCPConnectionPort",
]
