"""
Connection factory for MCP.

Creates the connection variant matching a server's transport type.
"""

import logging

from toolbridge.domain.exceptions.mcp import MCPConfigError
from toolbridge.domain.model.mcp.server import MCPServerConfig
from toolbridge.domain.model.mcp.transport import TransportType
from toolbridge.infrastructure.mcp.clients.base import (
    DEFAULT_CLIENT_NAME,
    DEFAULT_CLIENT_VERSION,
    DEFAULT_TIMEOUT,
    BaseMCPConnection,
)
from toolbridge.infrastructure.mcp.clients.http_client import MCPHttpConnection
from toolbridge.infrastructure.mcp.clients.subprocess_client import (
    DEFAULT_MAX_READ_ATTEMPTS,
    MCPProcessConnection,
)


class MCPConnectionFactory:
    """
    Factory for creating MCP connections.

    The set of variants is closed: stdio servers get an
    :class:`MCPProcessConnection`, http and sse servers an
    :class:`MCPHttpConnection`.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        max_read_attempts: int = DEFAULT_MAX_READ_ATTEMPTS,
        client_name: str = DEFAULT_CLIENT_NAME,
        client_version: str = DEFAULT_CLIENT_VERSION,
        logger: logging.Logger | None = None,
    ) -> None:
        self.timeout = timeout
        self.max_read_attempts = max_read_attempts
        self.client_name = client_name
        self.client_version = client_version
        self.logger = logger

    def create(self, config: MCPServerConfig) -> BaseMCPConnection:
        """
        Create a connection for ``config``.

        Raises:
            MCPConfigError: If the transport type has no connection variant.
        """
        if config.transport_type == TransportType.STDIO:
            return MCPProcessConnection(
                config,
                timeout=self.timeout,
                max_read_attempts=self.max_read_attempts,
                client_name=self.client_name,
                client_version=self.client_version,
                logger=self.logger,
            )
        if config.transport_type in (TransportType.HTTP, TransportType.SSE):
            return MCPHttpConnection(
                config,
                timeout=self.timeout,
                client_name=self.client_name,
                client_version=self.client_version,
                logger=self.logger,
            )
        raise MCPConfigError(
            f"Unsupported transport type: {config.transport_type.value}",
            details={"server_name": config.name},
        )
