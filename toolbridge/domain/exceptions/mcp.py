"""
MCP domain exceptions.

Exception hierarchy for configuration loading, transport, protocol
correlation and tool routing.

Exception Hierarchy:
    MCPError (base)
    ├── MCPConfigError                   - Invalid server definition
    │   └── MCPConfigLoadError           - Config document unreadable/malformed
    ├── MCPConnectionError               - Transport failure
    │   ├── MCPTransportStartError       - Spawn / HTTP setup failed
    │   ├── MCPTransportError            - I/O failed on a live connection
    │   │   └── MCPHttpStatusError       - Non-200 HTTP status
    │   └── MCPConnectionClosedError     - Connection not open / server exited
    ├── MCPInitializeError               - initialize failed
    ├── MCPDiscoveryError                - tools/list failed
    ├── MCPProtocolError                 - JSON-RPC error object / bad payload
    ├── MCPCorrelationExhaustedError     - No matching response within attempt cap
    ├── MCPRequestTimeoutError           - No matching response within deadline
    ├── MCPToolError
    │   ├── MCPToolNotFoundError         - Name not in routing table
    │   └── MCPToolExecutionError        - Server flagged the result as error
    └── MCPManagerStateError             - Manager used out of order
"""

from typing import Any


class MCPError(Exception):
    """Base exception for all MCP-related errors."""

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error
        self.details = details or {}

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message} (caused by: {self.original_error})"
        return self.message


class MCPConfigError(MCPError):
    """Raised when a server definition is invalid."""


class MCPConfigLoadError(MCPConfigError):
    """Raised when the configuration document cannot be read or parsed."""

    def __init__(
        self,
        path: str,
        message: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        self.path = path
        msg = message or f"Failed to load MCP config from '{path}'"
        super().__init__(msg, original_error=original_error, details={"path": path})


class MCPConnectionError(MCPError):
    """Raised when MCP connection or transport fails."""

    def __init__(
        self,
        endpoint: str | None = None,
        message: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        self.endpoint = endpoint
        msg = message or "MCP connection failed"
        if endpoint:
            msg += f" (endpoint: {endpoint})"
        super().__init__(msg, original_error=original_error, details={"endpoint": endpoint})


class MCPTransportStartError(MCPConnectionError):
    """Raised when a subprocess cannot be spawned or an HTTP endpoint is unusable."""


class MCPTransportError(MCPConnectionError):
    """Raised when reading from or writing to a live transport fails."""


class MCPHttpStatusError(MCPTransportError):
    """Raised when an HTTP MCP server answers with a non-200 status."""

    def __init__(self, endpoint: str, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(endpoint=endpoint, message=f"HTTP error {status_code}: {body}")
        self.details.update({"status_code": status_code, "body": body})


class MCPConnectionClosedError(MCPConnectionError):
    """Raised when the connection is not open or the server went away."""


class MCPInitializeError(MCPError):
    """Raised when the initialize handshake fails."""

    def __init__(self, server_name: str, original_error: Exception | None = None) -> None:
        self.server_name = server_name
        super().__init__(
            f"initialize failed for MCP server '{server_name}'",
            original_error=original_error,
            details={"server_name": server_name},
        )


class MCPDiscoveryError(MCPError):
    """Raised when tools/list fails or returns an unusable payload."""

    def __init__(self, server_name: str, original_error: Exception | None = None) -> None:
        self.server_name = server_name
        super().__init__(
            f"tools/list failed for MCP server '{server_name}'",
            original_error=original_error,
            details={"server_name": server_name},
        )


class MCPProtocolError(MCPError):
    """Raised when the server answers with a JSON-RPC error object."""

    def __init__(self, code: int | None, rpc_message: str, data: Any = None) -> None:
        self.code = code
        self.rpc_message = rpc_message
        self.data = data
        super().__init__(
            f"RPC error {code}: {rpc_message}",
            details={"code": code, "message": rpc_message, "data": data},
        )


class MCPCorrelationExhaustedError(MCPError):
    """Raised when no matching response arrived within the read attempt cap."""

    def __init__(self, method: str, request_id: int, attempts: int) -> None:
        self.method = method
        self.request_id = request_id
        self.attempts = attempts
        super().__init__(
            f"no response received for '{method}' (id={request_id}) after {attempts} attempts",
            details={"method": method, "request_id": request_id, "attempts": attempts},
        )


class MCPRequestTimeoutError(MCPError):
    """Raised when no matching response arrived before the request deadline."""

    def __init__(self, method: str, request_id: int, timeout: float) -> None:
        self.method = method
        self.request_id = request_id
        self.timeout = timeout
        super().__init__(
            f"MCP request '{method}' (id={request_id}) timed out after {timeout}s",
            details={"method": method, "request_id": request_id, "timeout": timeout},
        )


class MCPToolError(MCPError):
    """Base exception for MCP tool errors."""


class MCPToolNotFoundError(MCPToolError):
    """Raised when a tool name is not present in the routing table."""

    def __init__(self, tool_name: str, message: str | None = None) -> None:
        self.tool_name = tool_name
        msg = message or f"unknown MCP tool: {tool_name}"
        super().__init__(msg, details={"tool_name": tool_name})


class MCPToolExecutionError(MCPToolError):
    """Raised when a tool call result is flagged as an error by the server."""

    def __init__(
        self,
        tool_name: str,
        message: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        self.tool_name = tool_name
        msg = f"tool error: {message}" if message is not None else f"Tool '{tool_name}' failed"
        super().__init__(msg, original_error=original_error, details={"tool_name": tool_name})


class MCPManagerStateError(MCPError):
    """Raised when the manager is used out of order (e.g. loaded twice)."""
