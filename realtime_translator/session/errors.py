"""
Session error taxonomy.

Only SessionClient.connect() raises these to callers. Everything that
happens after the first READY is handled inside the session (retry or log)
and surfaced through the event stream instead.
"""

from __future__ import annotations


class SessionError(Exception):
    """Base class for session lifecycle errors."""


class SessionConnectionError(SessionError, ConnectionError):
    """
    Transport-level failure to open or keep the connection.

    Triggers reconnect evaluation, including on the first connect.
    """


class TransportClosedError(SessionConnectionError):
    """The transport opened but closed before the session reached READY."""


class SessionTimeoutError(SessionError, TimeoutError):
    """
    Connect or session initialization did not finish within the deadline.

    Treated like SessionConnectionError for retry purposes.
    """


class ReconnectExhausted(SessionError):
    """The reconnect attempt budget is spent; the session is terminated."""


class SessionClosedError(SessionError):
    """The session was stopped; no further connects are possible."""
