"""
Domain exceptions for toolbridge.

All errors raised by configuration loading, transports and the tool
router derive from :class:`MCPError`.
"""

from toolbridge.domain.exceptions.mcp import (
    MCPConfigError,
    MCPConfigLoadError,
    MCPConnectionClosedError,
    MCPConnectionError,
    MCPCorrelationExhaustedError,
    MCPDiscoveryError,
    MCPError,
    MCPHttpStatusError,
    MCPInitializeError,
    MCPManagerStateError,
    MCPProtocolError,
    MCPRequestTimeoutError,
    MCPToolError,
    MCPToolExecutionError,
    MCPToolNotFoundError,
    MCPTransportError,
    MCPTransportStartError,
)

__all__ = [
    "MCPError",
    "MCPConfigError",
    "MCPConfigLoadError",
    "MCPConnectionError",
    "MCPTransportStartError",
    "MCPTransportError",
    "MCPHttpStatusError",
    "MCPConnectionClosedError",
    "MCPInitializeError",
    "MCPDiscoveryError",
    "MCPProtocolError",
    "MCPCorrelationExhaustedError",
    "MCPRequestTimeoutError",
    "MCPToolError",
    "MCPToolNotFoundError",
    "MCPToolExecutionError",
    "MCPManagerStateError",
]
