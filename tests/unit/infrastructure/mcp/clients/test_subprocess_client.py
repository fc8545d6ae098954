"""Unit tests for MCPProcessConnection against a real fake-server subprocess."""

import asyncio
import json

import pytest

from toolbridge.domain.exceptions.mcp import (
    MCPConnectionClosedError,
    MCPCorrelationExhaustedError,
    MCPDiscoveryError,
    MCPInitializeError,
    MCPProtocolError,
    MCPRequestTimeoutError,
    MCPToolExecutionError,
    MCPTransportStartError,
)
from toolbridge.domain.model.mcp.connection import ConnectionState
from toolbridge.domain.model.mcp.server import MCPServerConfig
from toolbridge.domain.ports.mcp.connection_port import MCPConnectionPort
from toolbridge.infrastructure.mcp.clients.subprocess_client import MCPProcessConnection


async def _ready_connection(config: MCPServerConfig, **kwargs) -> MCPProcessConnection:
    conn = MCPProcessConnection(config, timeout=10.0, **kwargs)
    await conn.start()
    await conn.initialize()
    await conn.list_tools()
    return conn


class TestMCPProcessConnection:
    """Tests for the stdio connection."""

    def test_satisfies_connection_port(self, fake_config):
        conn = MCPProcessConnection(fake_config())

        assert isinstance(conn, MCPConnectionPort)
        assert conn.state == ConnectionState.STARTING
        assert conn.pid is None
        assert conn.config.name == "fake"

    @pytest.mark.asyncio
    async def test_handshake_discovery_and_echo(self, fake_config):
        """A full round trip returns the echoed arguments as text."""
        conn = await _ready_connection(fake_config("fake", "--tools", "echo,reverse"))
        try:
            assert conn.state == ConnectionState.READY
            assert conn.server_info == {"name": "fake-mcp", "version": "1.0.0"}
            assert [t.name for t in conn.tools] == ["echo", "reverse"]
            assert conn.tools[0].input_schema["required"] == ["x"]

            output = await conn.call_tool("echo", {"x": 1})

            assert json.loads(output) == {"x": 1}
        finally:
            await conn.close()

    @pytest.mark.asyncio
    async def test_skips_noise_notifications_and_stray_responses(self, fake_config):
        conn = await _ready_connection(fake_config("noisy", "--noise", "--stray-response"))
        try:
            output = await conn.call_tool("echo", {"x": 2})

            assert json.loads(output) == {"x": 2}
            assert conn.state == ConnectionState.READY
        finally:
            await conn.close()

    @pytest.mark.asyncio
    async def test_request_ids_increase_across_failed_calls(self, fake_config):
        conn = await _ready_connection(fake_config("fake", "--rpc-error-tool", "bad"))
        try:
            # initialize=1, tools/list=2
            assert conn.last_request_id == 2

            with pytest.raises(MCPProtocolError) as exc_info:
                await conn.call_tool("bad", {})
            assert exc_info.value.code == -32602
            assert conn.last_request_id == 3

            output = await conn.call_tool("echo", {"x": 1})
            assert json.loads(output) == {"x": 1}
            assert conn.last_request_id == 4
        finally:
            await conn.close()

    @pytest.mark.asyncio
    async def test_is_error_result_raises_tool_execution_error(self, fake_config):
        conn = await _ready_connection(
            fake_config("fake", "--tools", "explode", "--error-tool", "explode")
        )
        try:
            with pytest.raises(MCPToolExecutionError) as exc_info:
                await conn.call_tool("explode", {"x": 5})

            assert exc_info.value.tool_name == "explode"
            assert str(exc_info.value) == 'tool error: {"x": 5}'
        finally:
            await conn.close()

    @pytest.mark.asyncio
    async def test_concurrent_calls_are_serialized(self, fake_config):
        conn = await _ready_connection(fake_config("fake", "--noise"))
        try:
            outputs = await asyncio.gather(*(conn.call_tool("echo", {"x": i}) for i in range(5)))

            assert [json.loads(o) for o in outputs] == [{"x": i} for i in range(5)]
            assert conn.last_request_id == 7
        finally:
            await conn.close()

    @pytest.mark.asyncio
    async def test_read_attempt_cap(self, fake_config):
        conn = await _ready_connection(
            fake_config("flood", "--flood-on-call", "20"), max_read_attempts=5
        )
        try:
            with pytest.raises(MCPCorrelationExhaustedError) as exc_info:
                await conn.call_tool("echo", {"x": 1})

            assert exc_info.value.attempts == 5
            assert exc_info.value.method == "tools/call"
        finally:
            await conn.close()

    @pytest.mark.asyncio
    async def test_request_deadline(self, fake_config):
        conn = await _ready_connection(fake_config("hang", "--hang-on-call"))
        conn.timeout = 0.3
        try:
            with pytest.raises(MCPRequestTimeoutError):
                await conn.call_tool("echo", {"x": 1})
        finally:
            await conn.close()

    @pytest.mark.asyncio
    async def test_server_exit_closes_connection(self, fake_config):
        conn = await _ready_connection(fake_config("quitter", "--exit-on-call"))
        try:
            with pytest.raises(MCPConnectionClosedError):
                await conn.call_tool("echo", {"x": 1})

            assert conn.state == ConnectionState.CLOSED

            with pytest.raises(MCPConnectionClosedError):
                await conn.call_tool("echo", {"x": 1})
        finally:
            await conn.close()

    @pytest.mark.asyncio
    async def test_close_kills_process_and_is_idempotent(self, fake_config):
        conn = await _ready_connection(fake_config())
        proc = conn._proc
        assert conn.is_running

        await conn.close()

        assert proc.returncode is not None
        assert not conn.is_running
        assert conn.state == ConnectionState.CLOSED

        await conn.close()
        assert conn.state == ConnectionState.CLOSED

    @pytest.mark.asyncio
    async def test_concurrent_close_waits_for_process_exit(self, fake_config):
        conn = await _ready_connection(fake_config())
        proc = conn._proc
        first = asyncio.create_task(conn.close())
        await asyncio.sleep(0)

        await conn.close()

        assert proc.returncode is not None
        await first
        assert conn.state == ConnectionState.CLOSED

    @pytest.mark.asyncio
    async def test_spawn_failure(self):
        conn = MCPProcessConnection(
            MCPServerConfig(name="missing", command="/nonexistent/toolbridge-mcp-server")
        )

        with pytest.raises(MCPTransportStartError, match="Command not found"):
            await conn.start()

        assert conn.pid is None

    @pytest.mark.asyncio
    async def test_initialize_error(self, fake_config):
        conn = MCPProcessConnection(fake_config("fake", "--fail-initialize"), timeout=10.0)
        await conn.start()
        try:
            with pytest.raises(MCPInitializeError) as exc_info:
                await conn.initialize()

            assert isinstance(exc_info.value.original_error, MCPProtocolError)
            assert conn.state == ConnectionState.STARTING
        finally:
            await conn.close()

    @pytest.mark.asyncio
    async def test_discovery_error(self, fake_config):
        conn = MCPProcessConnection(fake_config("fake", "--fail-list"), timeout=10.0)
        await conn.start()
        try:
            await conn.initialize()

            with pytest.raises(MCPDiscoveryError, match="tools/list failed"):
                await conn.list_tools()

            assert conn.state == ConnectionState.INITIALIZED
            assert conn.tools == []
        finally:
            await conn.close()
