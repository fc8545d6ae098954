"""MCP Subprocess Connection for stdio transport.

Runs a local MCP server as a subprocess and talks JSON-RPC with it over
stdin/stdout, one newline-terminated JSON object per message. The
server's stderr is inherited so its diagnostics reach the terminal.

Requests on one connection are serialized: a lock guards the write and
the subsequent scan of stdout for the matching response, which skips
blank lines, non-JSON noise, notifications and responses to other ids.
The scan is bounded both by a line-count cap and a wall-clock deadline.
"""

import asyncio
import logging
import os
from typing import Any

from toolbridge.domain.exceptions.mcp import (
    MCPConnectionClosedError,
    MCPCorrelationExhaustedError,
    MCPRequestTimeoutError,
    MCPTransportError,
    MCPTransportStartError,
)
from toolbridge.domain.model.mcp.connection import ConnectionState
from toolbridge.domain.model.mcp.server import MCPServerConfig
from toolbridge.infrastructure.mcp.clients.base import (
    DEFAULT_CLIENT_NAME,
    DEFAULT_CLIENT_VERSION,
    DEFAULT_TIMEOUT,
    BaseMCPConnection,
)
from toolbridge.infrastructure.mcp.protocol import (
    MessageKind,
    decode_message,
    encode_line,
    encode_notification,
    encode_request,
)

# Maximum stdout lines scanned while waiting for one response
DEFAULT_MAX_READ_ATTEMPTS = 50

# Large tool outputs (e.g. base64 payloads) exceed asyncio's 64KiB default
STDOUT_LIMIT = 16 * 1024 * 1024


class MCPProcessConnection(BaseMCPConnection):
    """
    Subprocess-based MCP connection for stdio transport.

    Usage:
        conn = MCPProcessConnection(MCPServerConfig(name="fetch", command="uvx",
                                                    args=("mcp-server-fetch",)))
        await conn.start()
        await conn.initialize()
        tools = await conn.list_tools()
        output = await conn.call_tool("fetch", {"url": "https://example.com"})
        await conn.close()
    """

    def __init__(
        self,
        config: MCPServerConfig,
        timeout: float = DEFAULT_TIMEOUT,
        max_read_attempts: int = DEFAULT_MAX_READ_ATTEMPTS,
        client_name: str = DEFAULT_CLIENT_NAME,
        client_version: str = DEFAULT_CLIENT_VERSION,
        logger: logging.Logger | None = None,
    ) -> None:
        """
        Initialize the subprocess connection.

        Args:
            config: stdio server configuration (command, args, env).
            timeout: Per-request deadline in seconds.
            max_read_attempts: Stdout lines scanned before giving up on a response.
            client_name: Name sent in ``clientInfo``.
            client_version: Version sent in ``clientInfo``.
            logger: Logger to report to.
        """
        super().__init__(
            config,
            timeout=timeout,
            client_name=client_name,
            client_version=client_version,
            logger=logger,
        )
        self.max_read_attempts = max_read_attempts
        self._proc: asyncio.subprocess.Process | None = None
        self._lock = asyncio.Lock()
        # set once close has reaped the subprocess
        self._closed_event: asyncio.Event | None = None

    @property
    def pid(self) -> int | None:
        return self._proc.pid if self._proc else None

    @property
    def is_running(self) -> bool:
        """Check if the subprocess is alive."""
        return self._proc is not None and self._proc.returncode is None

    def _build_env(self) -> dict[str, str]:
        env = os.environ.copy()
        if self._config.env:
            env.update(self._config.env)
        return env

    async def start(self) -> None:
        """
        Spawn the server subprocess.

        Raises:
            MCPTransportStartError: If the command cannot be executed.
        """
        if self._proc is not None:
            self._logger.debug(f"MCP subprocess for {self.name} already started")
            return
        self._ensure_open()

        command = self._config.command or ""
        self._logger.info(f"Starting MCP subprocess: {self._config.endpoint}")

        try:
            self._proc = await asyncio.create_subprocess_exec(
                command,
                *self._config.args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=None,
                env=self._build_env(),
                limit=STDOUT_LIMIT,
            )
        except FileNotFoundError as e:
            raise MCPTransportStartError(
                endpoint=self._config.endpoint,
                message=f"Command not found: {command}",
                original_error=e,
            ) from e
        except OSError as e:
            raise MCPTransportStartError(
                endpoint=self._config.endpoint,
                message=f"Failed to start MCP server '{self.name}'",
                original_error=e,
            ) from e

        self._logger.info(f"Started MCP server {self.name} (pid={self._proc.pid})")

    async def close(self) -> None:
        """
        Close stdin, kill the subprocess if still running and reap it.

        Safe to call any number of times. A call made while another close
        is reaping the process waits for it to finish.
        """
        if self._closed_event is not None:
            await self._closed_event.wait()
            return
        self._closed_event = asyncio.Event()

        proc, self._proc = self._proc, None
        self._set_state(ConnectionState.CLOSED)
        try:
            if proc is not None:
                await self._terminate(proc)
        finally:
            self._closed_event.set()

    async def _terminate(self, proc: asyncio.subprocess.Process) -> None:
        self._logger.info(f"Closing MCP subprocess {self.name} (pid={proc.pid})")
        if proc.stdin is not None and not proc.stdin.is_closing():
            proc.stdin.close()
        if proc.returncode is None:
            try:
                proc.kill()
            except ProcessLookupError:
                pass
        try:
            await proc.wait()
        except Exception as e:
            self._logger.error(f"Error waiting for MCP subprocess {self.name}: {e}")

    async def _write(self, message: dict[str, Any]) -> None:
        proc = self._proc
        if proc is None or proc.stdin is None:
            raise MCPConnectionClosedError(
                endpoint=self._config.endpoint,
                message=f"MCP subprocess '{self.name}' not connected",
            )
        try:
            proc.stdin.write(encode_line(message))
            await proc.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            self._set_state(ConnectionState.CLOSED)
            raise MCPConnectionClosedError(
                endpoint=self._config.endpoint,
                message=f"MCP subprocess '{self.name}' closed its input",
                original_error=e,
            ) from e

    async def _read_response(self, method: str, request_id: int) -> Any:
        """Scan stdout lines until the response for ``request_id`` shows up."""
        proc = self._proc
        if proc is None or proc.stdout is None:
            raise MCPConnectionClosedError(
                endpoint=self._config.endpoint,
                message=f"MCP subprocess '{self.name}' not connected",
            )

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout

        for _ in range(self.max_read_attempts):
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise MCPRequestTimeoutError(method, request_id, self.timeout)
            try:
                line = await asyncio.wait_for(proc.stdout.readline(), timeout=remaining)
            except asyncio.TimeoutError as e:
                raise MCPRequestTimeoutError(method, request_id, self.timeout) from e
            except (ValueError, asyncio.LimitOverrunError) as e:
                raise MCPTransportError(
                    endpoint=self._config.endpoint,
                    message=f"MCP response line from '{self.name}' exceeds buffer limit",
                    original_error=e,
                ) from e

            if not line:
                self._set_state(ConnectionState.CLOSED)
                raise MCPConnectionClosedError(
                    endpoint=self._config.endpoint,
                    message=f"MCP subprocess '{self.name}' closed its output",
                )

            message = decode_message(line)
            if message.kind == MessageKind.UNPARSEABLE:
                if line.strip():
                    self._logger.debug(f"Skipping non-JSON output from {self.name}: {line[:200]!r}")
                continue
            if message.kind == MessageKind.NOTIFICATION:
                self._logger.debug(f"Skipping notification from {self.name}: {message.raw}")
                continue
            if not self._correlator.matches(message, request_id):
                self._logger.debug(
                    f"Skipping response id={message.id} from {self.name}, awaiting id={request_id}"
                )
                continue

            return self._correlator.unwrap(message)

        raise MCPCorrelationExhaustedError(method, request_id, self.max_read_attempts)

    async def _send_request(self, method: str, params: dict[str, Any] | None = None) -> Any:
        """Send a JSON-RPC request and wait for the matching response."""
        async with self._lock:
            self._ensure_open()
            request_id = self._correlator.next_id()
            request = encode_request(method, params, request_id)
            self._logger.debug(f"MCP request to {self.name}: {method} (id={request_id})")

            await self._write(request)
            return await self._read_response(method, request_id)

    async def _send_notification(self, method: str, params: dict[str, Any] | None = None) -> None:
        """Send a JSON-RPC notification (no response expected)."""
        async with self._lock:
            self._ensure_open()
            self._logger.debug(f"MCP notification to {self.name}: {method}")
            await self._write(encode_notification(method, params))
