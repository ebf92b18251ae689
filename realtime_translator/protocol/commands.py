"""
Outbound command definitions (client -> realtime service).

Rules:
- Commands describe intent; they carry data only (no behavior, no IO).
- The set is closed: SessionConfig, AppendAudio, CommitAudio, CreateResponse.
- Wire shape lives exclusively in protocol/codec.py.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Any, Mapping, Tuple, Union

from realtime_translator.spec import (
    SESSION_INPUT_AUDIO_FORMAT,
    SESSION_INSTRUCTIONS_DEFAULT,
    SESSION_MAX_OUTPUT_TOKENS,
    SESSION_MODALITIES_DEFAULT,
    SESSION_TEMPERATURE,
    SESSION_TRANSCRIPTION_MODEL,
    TURN_DETECTION_PREFIX_PADDING_MS,
    TURN_DETECTION_SILENCE_DURATION_MS,
    TURN_DETECTION_THRESHOLD,
    TURN_DETECTION_TYPE,
)


def default_turn_detection() -> dict[str, Any]:
    return {
        "type": TURN_DETECTION_TYPE,
        "threshold": TURN_DETECTION_THRESHOLD,
        "prefix_padding_ms": TURN_DETECTION_PREFIX_PADDING_MS,
        "silence_duration_ms": TURN_DETECTION_SILENCE_DURATION_MS,
    }


@dataclass(frozen=True)
class SessionSettings:
    """
    Per-connection session configuration.

    Sent once per connection, immediately after the transport opens.
    turn_detection=None disables server-side VAD (commit/response must
    then be driven explicitly by the client).
    """
    modalities: Tuple[str, ...] = SESSION_MODALITIES_DEFAULT
    instructions: str = SESSION_INSTRUCTIONS_DEFAULT
    input_audio_format: str = SESSION_INPUT_AUDIO_FORMAT
    transcription_model: str = SESSION_TRANSCRIPTION_MODEL
    turn_detection: Mapping[str, Any] | None = field(default_factory=default_turn_detection)
    temperature: float = SESSION_TEMPERATURE
    max_output_tokens: int = SESSION_MAX_OUTPUT_TOKENS


@dataclass(frozen=True)
class SessionConfig:
    """session.update"""
    settings: SessionSettings


@dataclass(frozen=True)
class AppendAudio:
    """input_audio_buffer.append (one frame, base64-encoded)"""
    frame_base64: str

    @staticmethod
    def from_pcm(pcm_bytes: bytes) -> AppendAudio:
        return AppendAudio(frame_base64=base64.b64encode(pcm_bytes).decode("ascii"))


@dataclass(frozen=True)
class CommitAudio:
    """input_audio_buffer.commit"""


@dataclass(frozen=True)
class CreateResponse:
    """response.create"""
    modalities: Tuple[str, ...] = SESSION_MODALITIES_DEFAULT


Command = Union[SessionConfig, AppendAudio, CommitAudio, CreateResponse]
