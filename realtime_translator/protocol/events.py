"""
Unified event definitions delivered to session consumers.

Rules:
- Events describe facts that have occurred.
- Events carry data only (no behavior).
- Inbound events are created exclusively by protocol/codec.py.
- Lifecycle events are created exclusively by session/client.py.
- Every event is published to each subscriber exactly once.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Tuple, Union


# =============================================================================
# Event Type Enumeration
# =============================================================================

class EventType(str, Enum):
    """
    Canonical event types seen by consumers.
    """

    # ------------------------------------------------------------------
    # Inbound (decoded from the wire)
    # ------------------------------------------------------------------
    SESSION_CREATED = "SESSION_CREATED"
    SESSION_UPDATED = "SESSION_UPDATED"
    TEXT_DELTA = "TEXT_DELTA"
    TRANSCRIPT_DELTA = "TRANSCRIPT_DELTA"
    TRANSCRIPT_DONE = "TRANSCRIPT_DONE"
    INPUT_TRANSCRIPT_DONE = "INPUT_TRANSCRIPT_DONE"
    TRANSLATION_DONE = "TRANSLATION_DONE"
    AUDIO_DELTA = "AUDIO_DELTA"
    RESPONSE_COMPLETE = "RESPONSE_COMPLETE"
    API_ERROR = "API_ERROR"

    # ------------------------------------------------------------------
    # Session lifecycle (published by SessionClient)
    # ------------------------------------------------------------------
    SESSION_READY = "SESSION_READY"
    RECONNECTING = "RECONNECTING"
    DISCONNECTED = "DISCONNECTED"


# =============================================================================
# Base Event
# =============================================================================

@dataclass(frozen=True)
class Event:
    """
    Base event type.

    All events must specify:
    - event_type: discriminant
    - ts_ms: timestamp when the event was decoded or raised
    """

    event_type: EventType
    ts_ms: int


# =============================================================================
# Inbound Events
# =============================================================================

@dataclass(frozen=True)
class SessionCreated(Event):
    session_id: str


@dataclass(frozen=True)
class SessionUpdated(Event):
    pass


@dataclass(frozen=True)
class TextDelta(Event):
    text: str


@dataclass(frozen=True)
class TranscriptDelta(Event):
    """Incremental transcript of the service's audio output."""
    text: str


@dataclass(frozen=True)
class TranscriptDone(Event):
    text: str


@dataclass(frozen=True)
class InputTranscriptDone(Event):
    """The service's transcription of the submitted input audio."""
    text: str


@dataclass(frozen=True)
class TranslationDone(Event):
    text: str


@dataclass(frozen=True)
class AudioDelta(Event):
    """Decoded PCM16LE mono 24kHz output audio."""
    pcm_bytes: bytes


@dataclass(frozen=True)
class ResponseSummary:
    """
    Condensed view of a response.done payload.

    texts holds every text content part of every message output, in order.
    """
    response_id: str | None
    status: str | None
    texts: Tuple[str, ...] = ()
    usage: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ResponseComplete(Event):
    summary: ResponseSummary


@dataclass(frozen=True)
class ApiError(Event):
    """
    Application-level error reported by the service.

    The transport stays open; the service may continue the session.
    """
    code: str | None
    message: str
    error_type: str | None = None


# =============================================================================
# Lifecycle Events
# =============================================================================

@dataclass(frozen=True)
class SessionReady(Event):
    """Session reached READY; audio may be sent."""
    session_id: str


@dataclass(frozen=True)
class Reconnecting(Event):
    """Informational: a reconnect attempt is scheduled."""
    attempt: int
    delay_ms: int
    reason: str


@dataclass(frozen=True)
class Disconnected(Event):
    """
    Terminal disconnect.

    exhausted=True means the reconnect budget ran out; False means stop()
    was called.
    """
    reason: str
    attempts: int
    exhausted: bool


InboundEvent = Union[
    SessionCreated,
    SessionUpdated,
    TextDelta,
    TranscriptDelta,
    TranscriptDone,
    InputTranscriptDone,
    TranslationDone,
    AudioDelta,
    ResponseComplete,
    ApiError,
]

LifecycleEvent = Union[SessionReady, Reconnecting, Disconnected]
