"""
MCP Connection Domain Models.

Defines the connection lifecycle state machine.
"""

from enum import Enum


class ConnectionState(str, Enum):
    """MCP connection state.

    starting -> initialized -> ready -> closed, with failed reachable
    from any non-terminal state.
    """

    STARTING = "starting"
    INITIALIZED = "initialized"
    READY = "ready"
    CLOSED = "closed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ConnectionState.CLOSED, ConnectionState.FAILED)

    def can_transition_to(self, target: "ConnectionState") -> bool:
        """Check whether moving to ``target`` is a legal transition."""
        if self.is_terminal:
            return False
        if target in (ConnectionState.FAILED, ConnectionState.CLOSED):
            return True
        return _FORWARD.get(self) == target


_FORWARD = {
    ConnectionState.STARTING: ConnectionState.INITIALIZED,
    ConnectionState.INITIALIZED: ConnectionState.READY,
}
