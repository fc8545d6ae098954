"""
MCP Transport Domain Models.

Defines the closed set of transport kinds a configured server may use.
"""

from enum import Enum


class TransportType(str, Enum):
    """MCP transport protocol types."""

    STDIO = "stdio"  # subprocess stdin/stdout
    HTTP = "http"  # one POST per request
    SSE = "sse"  # POST to the message endpoint of an SSE server

    @classmethod
    def normalize(cls, value: str | None) -> "TransportType":
        """Normalize a configured transport string to the enum.

        An absent or empty value means stdio. Unknown values raise
        ``ValueError`` instead of falling back to a default.
        """
        if value is None:
            return cls.STDIO
        normalized = value.lower().strip()
        if not normalized:
            return cls.STDIO
        return cls(normalized)

    @property
    def is_remote(self) -> bool:
        """Whether this transport talks to a URL rather than a subprocess."""
        return self in (TransportType.HTTP, TransportType.SSE)
