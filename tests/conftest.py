"""Pytest configuration and shared fixtures for testing."""

import json
import sys
from pathlib import Path

import pytest

from toolbridge.configuration.config import Settings
from toolbridge.domain.model.mcp.server import MCPServerConfig

FAKE_SERVER = Path(__file__).parent / "fixtures" / "fake_mcp_server.py"


def fake_server_entry(*flags: str) -> dict:
    """An ``mcpServers`` entry that runs the fake server with ``flags``."""
    return {"command": sys.executable, "args": [str(FAKE_SERVER), *flags]}


def fake_server_config(name: str = "fake", *flags: str) -> MCPServerConfig:
    """A stdio server config that runs the fake server with ``flags``."""
    return MCPServerConfig(
        name=name,
        command=sys.executable,
        args=(str(FAKE_SERVER), *flags),
    )


@pytest.fixture
def settings() -> Settings:
    """Settings with short timeouts and no config path from the environment."""
    return Settings(
        mcp_config_path=None,
        mcp_request_timeout=10.0,
        mcp_max_read_attempts=50,
        mcp_client_name="toolbridge-tests",
        mcp_client_version="0.0.1",
    )


@pytest.fixture
def write_config(tmp_path):
    """Write an mcp.json with the given ``mcpServers`` mapping and return its path."""

    def _write(servers: dict, filename: str = "mcp.json") -> Path:
        path = tmp_path / filename
        path.write_text(json.dumps({"mcpServers": servers}), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def fake_config():
    """Factory for stdio configs running the fake MCP server."""
    return fake_server_config


@pytest.fixture
def fake_entry():
    """Factory for ``mcpServers`` entries running the fake MCP server."""
    return fake_server_entry
