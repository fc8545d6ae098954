#!/usr/bin/env python3
"""
MCP server status and tool invocation CLI.

Loads the MCP config, starts every server in it and either reports what
came up or calls one tool.

Usage:
    toolbridge-mcp status
    toolbridge-mcp status --config ./mcp.json
    toolbridge-mcp call fetch --args '{"url": "https://example.com"}'

Examples:
    # Show the servers and tools from the default config locations
    python -m toolbridge.cli.mcp status

    # Call a tool with JSON arguments
    python -m toolbridge.cli.mcp call echo --args '{"x": 1}'
"""

import argparse
import asyncio
import json
import logging
import sys

from toolbridge.configuration.config import get_settings
from toolbridge.domain.exceptions.mcp import MCPError
from toolbridge.domain.model.mcp.server import MCPServerInfo
from toolbridge.infrastructure.mcp.manager import MCPManager

# Tool names listed per server before the rest are summarized
MAX_LISTED_TOOLS = 5

logger = logging.getLogger(__name__)


def format_server_status(
    servers: list[MCPServerInfo],
    rejected: dict[str, str] | None = None,
    failed: dict[str, str] | None = None,
) -> str:
    """
    Render the server list.

    Servers are sorted by name. Each shows at most five tool names followed
    by ``... and N more``.
    """
    lines: list[str] = []
    if not servers:
        lines.append("No MCP servers loaded")
    else:
        lines.append("MCP Servers:")
        for server in sorted(servers, key=lambda s: s.name):
            lines.append(
                f"  • {server.name} ({server.transport.value}) - {server.tool_count} tools"
            )
            if server.tool_names:
                shown = ", ".join(server.tool_names[:MAX_LISTED_TOOLS])
                suffix = ""
                if len(server.tool_names) > MAX_LISTED_TOOLS:
                    suffix = f" ... and {len(server.tool_names) - MAX_LISTED_TOOLS} more"
                lines.append(f"    Tools: {shown}{suffix}")

    problems = {**(rejected or {}), **(failed or {})}
    if problems:
        lines.append("")
        lines.append("Unavailable:")
        for name, reason in sorted(problems.items()):
            lines.append(f"  ✗ {name}: {reason}")

    return "\n".join(lines)


async def run_status(config_path: str | None) -> int:
    async with MCPManager() as manager:
        await manager.load_from_config(config_path)
        print(format_server_status(manager.get_servers(), manager.rejected, manager.failed))
    return 0


async def run_call(config_path: str | None, tool_name: str, arguments: dict) -> int:
    async with MCPManager() as manager:
        await manager.load_from_config(config_path)
        try:
            output = await manager.execute_tool(tool_name, arguments)
        except MCPError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        print(output)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="toolbridge-mcp",
        description="Inspect and call tools on configured MCP servers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s status
  %(prog)s status --config ./mcp.json
  %(prog)s call echo --args '{"x": 1}'
        """,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        default=None,
        help="Path to mcp.json (default: MCP_CONFIG_PATH, ./mcp.json, ~/.config/mcp/mcp.json)",
    )
    common.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("status", parents=[common], help="List MCP servers and their tools")

    call_parser = subparsers.add_parser("call", parents=[common], help="Call an MCP tool")
    call_parser.add_argument("tool", help="Tool name")
    call_parser.add_argument(
        "--args",
        dest="arguments",
        default="{}",
        help="Tool arguments as a JSON object",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        if args.command == "call":
            try:
                arguments = json.loads(args.arguments)
            except json.JSONDecodeError as e:
                print(f"Error: --args is not valid JSON: {e}", file=sys.stderr)
                return 2
            if not isinstance(arguments, dict):
                print("Error: --args must be a JSON object", file=sys.stderr)
                return 2
            return asyncio.run(run_call(args.config, args.tool, arguments))
        return asyncio.run(run_status(args.config))
    except MCPError as e:
        logger.error(f"MCP error: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
