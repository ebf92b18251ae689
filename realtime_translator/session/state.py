"""
Authoritative session state enumeration.

Rules:
- This enum defines ONLY the connection lifecycle states.
- No behavior, no helper methods, no side effects.
- Transitions are performed exclusively by SessionClient.
"""

from __future__ import annotations

from enum import Enum


class SessionState(str, Enum):
    """
    Lifecycle states of a single translation session.

    TERMINATED is absorbing.
    """

    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"
    INITIALIZING = "INITIALIZING"
    READY = "READY"
    RECONNECTING = "RECONNECTING"
    TERMINATED = "TERMINATED"
