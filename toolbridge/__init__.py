"""toolbridge - unified MCP tool-provider client and router."""

__version__ = "0.1.0"
