"""
MCP Server Domain Models.

Defines the server configuration value object and the read-only
introspection snapshot returned by the manager.
"""

from dataclasses import dataclass, field
from typing import Any

from toolbridge.domain.exceptions.mcp import MCPConfigError
from toolbridge.domain.model.mcp.transport import TransportType


@dataclass(frozen=True)
class MCPServerConfig:
    """
    MCP server configuration.

    Exactly one transport applies: stdio servers carry a command (plus
    arguments and an environment overlay), http/sse servers carry a URL.
    Immutable once loaded.
    """

    name: str
    transport_type: TransportType = TransportType.STDIO

    # stdio transport config
    command: str | None = None
    args: tuple[str, ...] = ()
    env: dict[str, str] = field(default_factory=dict)

    # http/sse transport config
    url: str | None = None

    description: str = ""

    def __post_init__(self) -> None:
        """Validate configuration based on transport type."""
        if not self.name:
            raise MCPConfigError("MCP server name must not be empty")
        if self.transport_type == TransportType.STDIO:
            if not self.command:
                raise MCPConfigError(
                    f"Command is required for stdio MCP server '{self.name}'",
                    details={"server_name": self.name},
                )
        elif not self.url:
            raise MCPConfigError(
                f"URL is required for {self.transport_type.value} MCP server '{self.name}'",
                details={"server_name": self.name},
            )

    @property
    def is_stdio(self) -> bool:
        return self.transport_type == TransportType.STDIO

    @property
    def is_http(self) -> bool:
        return self.transport_type == TransportType.HTTP

    @property
    def is_sse(self) -> bool:
        return self.transport_type == TransportType.SSE

    @property
    def endpoint(self) -> str:
        """Human readable endpoint (command line or URL) for log messages."""
        if self.is_stdio:
            return " ".join([self.command or "", *self.args]).strip()
        return self.url or ""

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> "MCPServerConfig":
        """Create from an ``mcpServers`` entry.

        Raises:
            MCPConfigError: If the transport type is unknown or the entry
                lacks the fields its transport requires.
        """
        try:
            transport_type = TransportType.normalize(data.get("type"))
        except ValueError as e:
            raise MCPConfigError(
                f"Unsupported transport type '{data.get('type')}' for MCP server '{name}'",
                original_error=e,
                details={"server_name": name},
            ) from e

        return cls(
            name=name,
            transport_type=transport_type,
            command=data.get("command") or None,
            args=tuple(data.get("args") or ()),
            env=dict(data.get("env") or {}),
            url=data.get("url") or None,
            description=data.get("description") or "",
        )


@dataclass(frozen=True)
class MCPServerInfo:
    """Introspection snapshot of one live MCP server connection."""

    name: str
    transport: TransportType
    tool_count: int
    tool_names: list[str] = field(default_factory=list)
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for display or serialization."""
        return {
            "name": self.name,
            "transport": self.transport.value,
            "tool_count": self.tool_count,
            "tool_names": list(self.tool_names),
            "description": self.description,
        }
