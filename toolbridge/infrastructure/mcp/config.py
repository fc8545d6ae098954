"""
MCP Configuration Loading.

Reads the ``mcp.json`` document:

    {
        "mcpServers": {
            "fetch": {"command": "uvx", "args": ["mcp-server-fetch"], "env": {"DEBUG": "1"}},
            "search": {"type": "http", "url": "https://mcp.example.com/rpc"},
            "events": {"type": "sse", "url": "http://localhost:8081/sse"}
        }
    }

A missing file means no servers are configured. A malformed document is
a load error. An individual entry that does not describe a valid server
is rejected with a warning while the remaining entries still load.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from toolbridge.domain.exceptions.mcp import MCPConfigError, MCPConfigLoadError
from toolbridge.domain.model.mcp.server import MCPServerConfig

if TYPE_CHECKING:
    from toolbridge.configuration.config import Settings

logger = logging.getLogger(__name__)

LOCAL_CONFIG_NAME = "mcp.json"
USER_CONFIG_PATH = Path(".config") / "mcp" / "mcp.json"


class McpServerEntry(BaseModel):
    """
    One ``mcpServers`` entry as written in the config file.

    Example:
        {
            "command": "docker",
            "args": ["run", "-i", "--rm", "mcp/fetch"],
            "env": {"DEBUG": "true"},
            "description": "Fetch web pages"
        }
    """

    model_config = ConfigDict(extra="ignore")

    command: str | None = Field(default=None, description="Executable for stdio servers")
    args: list[str] = Field(default_factory=list, description="Arguments for the command")
    env: dict[str, str] = Field(
        default_factory=dict, description="Variables overlaid on the inherited environment"
    )
    type: str | None = Field(default=None, description='"stdio" (default), "http" or "sse"')
    url: str | None = Field(default=None, description="Endpoint for http/sse servers")
    description: str | None = Field(default=None, description="Optional free text")

    @field_validator("args", mode="before")
    @classmethod
    def _null_args(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("env", mode="before")
    @classmethod
    def _null_env(cls, value: Any) -> Any:
        return {} if value is None else value

    def to_server_config(self, name: str) -> MCPServerConfig:
        """Convert to the domain configuration, validating the transport."""
        return MCPServerConfig.from_dict(name, self.model_dump())


class McpConfigDocument(BaseModel):
    """Top-level shape of the config document."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    mcp_servers: dict[str, Any] = Field(default_factory=dict, alias="mcpServers")

    @field_validator("mcp_servers", mode="before")
    @classmethod
    def _null_servers(cls, value: Any) -> Any:
        return {} if value is None else value


@dataclass
class MCPConfigFile:
    """Result of loading a config document."""

    path: Path | None = None
    servers: dict[str, MCPServerConfig] = field(default_factory=dict)
    rejected: dict[str, str] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.servers)


def default_config_path(cwd: Path | None = None, home: Path | None = None) -> Path:
    """
    Resolve the default config location.

    ``mcp.json`` in the working directory wins when it exists; otherwise
    ``~/.config/mcp/mcp.json``.
    """
    local = (cwd or Path.cwd()) / LOCAL_CONFIG_NAME
    if local.exists():
        return local
    return (home or Path.home()) / USER_CONFIG_PATH


def expand_path(path: str | Path) -> Path:
    """Expand a leading ``~`` to the user's home directory."""
    return Path(path).expanduser()


def resolve_config_path(
    path: str | Path | None = None, settings: "Settings | None" = None
) -> Path:
    """
    Pick the config file to load.

    Order: explicit ``path``, then ``MCP_CONFIG_PATH``, then
    :func:`default_config_path`.
    """
    if path:
        return expand_path(path)
    if settings is not None and settings.mcp_config_path:
        return expand_path(settings.mcp_config_path)
    return default_config_path()


def parse_mcp_config(data: Any, path: Path | None = None) -> MCPConfigFile:
    """
    Validate an already-decoded config document.

    Raises:
        MCPConfigLoadError: If the document or its ``mcpServers`` member is
            not an object.
    """
    location = str(path) if path else "<memory>"
    if not isinstance(data, dict):
        raise MCPConfigLoadError(location, message=f"MCP config '{location}' is not a JSON object")

    try:
        document = McpConfigDocument.model_validate(data)
    except ValidationError as e:
        raise MCPConfigLoadError(
            location,
            message=f"MCP config '{location}' has an invalid 'mcpServers' section",
            original_error=e,
        ) from e

    result = MCPConfigFile(path=path)
    for name, raw in document.mcp_servers.items():
        try:
            if not isinstance(raw, dict):
                raise MCPConfigError(f"MCP server '{name}' must be a JSON object")
            server = McpServerEntry.model_validate(raw).to_server_config(name)
        except (ValidationError, MCPConfigError) as e:
            reason = str(e)
            logger.warning(f"Rejecting MCP server {name}: {reason}")
            result.rejected[name] = reason
            continue
        result.servers[name] = server

    return result


def load_mcp_config(path: str | Path) -> MCPConfigFile:
    """
    Load the config document at ``path``.

    Returns an empty config when the file does not exist.

    Raises:
        MCPConfigLoadError: If the file cannot be read or is not valid JSON.
    """
    resolved = expand_path(path)
    try:
        text = resolved.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.debug(f"No MCP config at {resolved}")
        return MCPConfigFile(path=resolved)
    except OSError as e:
        raise MCPConfigLoadError(str(resolved), original_error=e) from e

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MCPConfigLoadError(
            str(resolved),
            message=f"MCP config '{resolved}' is not valid JSON",
            original_error=e,
        ) from e

    return parse_mcp_config(data, path=resolved)
