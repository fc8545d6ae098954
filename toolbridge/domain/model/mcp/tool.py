"""
MCP Tool Domain Models.

Defines the tool schema and tool-call result value objects.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class MCPToolSchema:
    """
    MCP tool schema definition.

    Describes a tool's interface including its name, description,
    and JSON Schema for input parameters.
    """

    name: str
    description: str = ""
    input_schema: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a transport-neutral tool definition."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.input_schema,
        }

    def to_function_tool(self) -> dict[str, Any]:
        """Convert to the function-calling definition accepted by LLM backends.

        Only ``type`` and ``description`` of each property are carried over;
        ``required`` keeps its string entries.
        """
        properties: dict[str, dict[str, Any]] = {}
        raw_properties = self.input_schema.get("properties")
        if isinstance(raw_properties, dict):
            for prop_name, prop_def in raw_properties.items():
                if not isinstance(prop_def, dict):
                    continue
                prop: dict[str, Any] = {}
                if isinstance(prop_def.get("type"), str):
                    prop["type"] = prop_def["type"]
                if isinstance(prop_def.get("description"), str):
                    prop["description"] = prop_def["description"]
                properties[prop_name] = prop

        required: list[str] = []
        raw_required = self.input_schema.get("required")
        if isinstance(raw_required, list):
            required = [r for r in raw_required if isinstance(r, str)]

        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": {
                    "type": "object",
                    "properties": properties,
                    "required": required,
                },
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MCPToolSchema":
        """Create from dictionary (MCP protocol format)."""
        input_schema = data.get("inputSchema")
        return cls(
            name=data.get("name", ""),
            description=data.get("description") or "",
            input_schema=input_schema if isinstance(input_schema, dict) else {},
        )


@dataclass
class MCPToolResult:
    """
    MCP tool execution result.

    Only ``text`` content blocks are interpreted; images, resources and
    other block types are ignored.
    """

    content: list[dict[str, Any]] = field(default_factory=list)
    is_error: bool = False

    def text_output(self) -> str:
        """Concatenate the text of all text-typed content blocks."""
        return "".join(
            str(item.get("text", ""))
            for item in self.content
            if isinstance(item, dict) and item.get("type") == "text"
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MCPToolResult":
        """Create from dictionary (MCP protocol format)."""
        content = data.get("content")
        return cls(
            content=content if isinstance(content, list) else [],
            is_error=bool(data.get("isError", False)),
        )
