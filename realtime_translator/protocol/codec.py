"""
Realtime wire codec.

Wire format: JSON text frames, envelope {"type": str, ...payload}.

Outbound (client -> service):
    session.update              <- SessionConfig
    input_audio_buffer.append   <- AppendAudio   (payload: base64 PCM16 frame)
    input_audio_buffer.commit   <- CommitAudio
    response.create             <- CreateResponse

Inbound (service -> client):
    session.created, session.updated, conversation.item.created,
    response.audio.delta, response.text.delta, response.text.done,
    response.audio_transcript.delta, response.audio_transcript.done,
    conversation.item.input_audio_transcription.completed,
    response.done, error

Any other inbound type decodes to no events (logged at debug) so protocol
additions never break a session. This module is the only place that knows
message type strings.
"""

from __future__ import annotations

import base64
import binascii
import json
import time
from typing import Any, Callable, Mapping

from realtime_translator.observability.logger import log_event
from realtime_translator.protocol.commands import (
    AppendAudio,
    Command,
    CommitAudio,
    CreateResponse,
    SessionConfig,
)
from realtime_translator.protocol.events import (
    ApiError,
    AudioDelta,
    EventType,
    InboundEvent,
    InputTranscriptDone,
    ResponseComplete,
    ResponseSummary,
    SessionCreated,
    SessionUpdated,
    TextDelta,
    TranscriptDelta,
    TranscriptDone,
    TranslationDone,
)


# -------------------------
# Exceptions
# -------------------------

class ProtocolError(Exception):
    """Base class for wire protocol errors."""


class CodecError(ProtocolError):
    """
    Raised when an inbound message cannot be decoded.

    Covers invalid JSON, a non-object envelope, a missing type field, and
    payloads whose required fields are absent or malformed. The message is
    unsafe to dispatch and must be dropped; the session continues.
    """


class UnsupportedCommand(ProtocolError):
    """Raised when encode() is given something that is not a Command."""


def _now_ms() -> int:
    return int(time.time() * 1000)


# -------------------------
# Payload helpers
# -------------------------

def _require_mapping(msg: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = msg.get(key)
    if not isinstance(value, Mapping):
        raise CodecError(f"{msg.get('type')}: field {key!r} must be an object")
    return value


def _optional_text(msg: Mapping[str, Any], key: str) -> str:
    value = msg.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise CodecError(f"{msg.get('type')}: field {key!r} must be a string")
    return value


def _message_texts(output: Any) -> tuple[str, ...]:
    """Collect text parts from response.output[*] message items."""
    texts: list[str] = []
    if not isinstance(output, list):
        return ()
    for item in output:
        if not isinstance(item, Mapping) or item.get("type") != "message":
            continue
        content = item.get("content")
        if not isinstance(content, list):
            continue
        for part in content:
            if isinstance(part, Mapping) and part.get("type") == "text":
                text = part.get("text")
                if isinstance(text, str) and text:
                    texts.append(text)
    return tuple(texts)


class MessageCodec:
    """
    Stateless translator between typed commands/events and JSON text frames.
    """

    # -------------------------------------------------------------------------
    # Encode
    # -------------------------------------------------------------------------

    def encode(self, command: Command) -> str:
        """
        Encode an outbound command to a JSON text frame.

        Raises:
            UnsupportedCommand for anything outside the closed command set.
        """
        return json.dumps(self.to_wire(command), ensure_ascii=False, separators=(",", ":"))

    def to_wire(self, command: Command) -> dict[str, Any]:
        if isinstance(command, AppendAudio):
            return {"type": "input_audio_buffer.append", "audio": command.frame_base64}

        if isinstance(command, CommitAudio):
            return {"type": "input_audio_buffer.commit"}

        if isinstance(command, CreateResponse):
            return {
                "type": "response.create",
                "response": {"modalities": list(command.modalities)},
            }

        if isinstance(command, SessionConfig):
            s = command.settings
            return {
                "type": "session.update",
                "session": {
                    "modalities": list(s.modalities),
                    "instructions": s.instructions,
                    "input_audio_format": s.input_audio_format,
                    "input_audio_transcription": {"model": s.transcription_model},
                    "turn_detection": (
                        dict(s.turn_detection) if s.turn_detection is not None else None
                    ),
                    "tools": [],
                    "tool_choice": "none",
                    "temperature": s.temperature,
                    "max_response_output_tokens": s.max_output_tokens,
                },
            }

        raise UnsupportedCommand(f"Cannot encode {type(command).__name__}")

    # -------------------------------------------------------------------------
    # Decode
    # -------------------------------------------------------------------------

    def decode(self, raw: str | bytes) -> tuple[InboundEvent, ...]:
        """
        Decode one inbound text frame into zero or more events.

        Returns:
            A tuple of events in the order they should be dispatched.
            Empty for unknown message types and for known types whose
            payload carries nothing worth publishing (e.g. empty deltas).

        Raises:
            CodecError if the frame is malformed.
        """
        try:
            msg = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise CodecError(f"invalid JSON: {e}") from e

        if not isinstance(msg, dict):
            raise CodecError(f"envelope must be an object, got {type(msg).__name__}")

        msg_type = msg.get("type")
        if not isinstance(msg_type, str):
            raise CodecError("envelope has no string 'type' field")

        handler = self._DECODERS.get(msg_type)
        if handler is None:
            log_event(
                {"event_type": "codec_unhandled_message", "message_type": msg_type},
                level="debug",
            )
            return ()

        return handler(msg, _now_ms())

    # -------------------------------------------------------------------------
    # Per-type decoders
    # -------------------------------------------------------------------------

    @staticmethod
    def _session_created(msg: Mapping[str, Any], ts_ms: int) -> tuple[InboundEvent, ...]:
        session = _require_mapping(msg, "session")
        session_id = session.get("id")
        if not isinstance(session_id, str) or not session_id:
            raise CodecError("session.created: session.id missing")
        return (
            SessionCreated(
                event_type=EventType.SESSION_CREATED,
                ts_ms=ts_ms,
                session_id=session_id,
            ),
        )

    @staticmethod
    def _session_updated(msg: Mapping[str, Any], ts_ms: int) -> tuple[InboundEvent, ...]:
        return (SessionUpdated(event_type=EventType.SESSION_UPDATED, ts_ms=ts_ms),)

    @staticmethod
    def _item_created(msg: Mapping[str, Any], ts_ms: int) -> tuple[InboundEvent, ...]:
        item = _require_mapping(msg, "item")
        if item.get("role") != "assistant":
            return ()
        content = item.get("content")
        if not isinstance(content, list) or not content:
            return ()
        first = content[0]
        if not isinstance(first, Mapping) or first.get("type") != "text":
            return ()
        text = first.get("text")
        if not isinstance(text, str) or not text:
            return ()
        return (
            TranslationDone(event_type=EventType.TRANSLATION_DONE, ts_ms=ts_ms, text=text),
        )

    @staticmethod
    def _audio_delta(msg: Mapping[str, Any], ts_ms: int) -> tuple[InboundEvent, ...]:
        delta = _optional_text(msg, "delta")
        if not delta:
            return ()
        try:
            pcm = base64.b64decode(delta, validate=True)
        except (binascii.Error, ValueError) as e:
            raise CodecError(f"response.audio.delta: invalid base64: {e}") from e
        return (AudioDelta(event_type=EventType.AUDIO_DELTA, ts_ms=ts_ms, pcm_bytes=pcm),)

    @staticmethod
    def _text_delta(msg: Mapping[str, Any], ts_ms: int) -> tuple[InboundEvent, ...]:
        delta = _optional_text(msg, "delta")
        if not delta:
            return ()
        return (TextDelta(event_type=EventType.TEXT_DELTA, ts_ms=ts_ms, text=delta),)

    @staticmethod
    def _text_done(msg: Mapping[str, Any], ts_ms: int) -> tuple[InboundEvent, ...]:
        text = _optional_text(msg, "text")
        if not text:
            return ()
        return (
            TranslationDone(event_type=EventType.TRANSLATION_DONE, ts_ms=ts_ms, text=text),
        )

    @staticmethod
    def _transcript_delta(msg: Mapping[str, Any], ts_ms: int) -> tuple[InboundEvent, ...]:
        delta = _optional_text(msg, "delta")
        if not delta:
            return ()
        return (
            TranscriptDelta(event_type=EventType.TRANSCRIPT_DELTA, ts_ms=ts_ms, text=delta),
        )

    @staticmethod
    def _transcript_done(msg: Mapping[str, Any], ts_ms: int) -> tuple[InboundEvent, ...]:
        transcript = _optional_text(msg, "transcript")
        if not transcript:
            return ()
        return (
            TranscriptDone(
                event_type=EventType.TRANSCRIPT_DONE, ts_ms=ts_ms, text=transcript
            ),
        )

    @staticmethod
    def _input_transcript_done(
        msg: Mapping[str, Any], ts_ms: int
    ) -> tuple[InboundEvent, ...]:
        transcript = _optional_text(msg, "transcript")
        if not transcript:
            return ()
        return (
            InputTranscriptDone(
                event_type=EventType.INPUT_TRANSCRIPT_DONE, ts_ms=ts_ms, text=transcript
            ),
        )

    @staticmethod
    def _response_done(msg: Mapping[str, Any], ts_ms: int) -> tuple[InboundEvent, ...]:
        response = msg.get("response")
        if response is None:
            response = {}
        if not isinstance(response, Mapping):
            raise CodecError("response.done: field 'response' must be an object")

        texts = _message_texts(response.get("output"))
        usage = response.get("usage")
        summary = ResponseSummary(
            response_id=response.get("id") if isinstance(response.get("id"), str) else None,
            status=response.get("status") if isinstance(response.get("status"), str) else None,
            texts=texts,
            usage=dict(usage) if isinstance(usage, Mapping) else {},
        )

        out: list[InboundEvent] = [
            TranslationDone(event_type=EventType.TRANSLATION_DONE, ts_ms=ts_ms, text=t)
            for t in texts
        ]
        out.append(
            ResponseComplete(
                event_type=EventType.RESPONSE_COMPLETE, ts_ms=ts_ms, summary=summary
            )
        )
        return tuple(out)

    @staticmethod
    def _error(msg: Mapping[str, Any], ts_ms: int) -> tuple[InboundEvent, ...]:
        error = msg.get("error")
        if isinstance(error, Mapping):
            code = error.get("code")
            message = error.get("message")
            error_type = error.get("type")
        else:
            code, message, error_type = None, error, None
        return (
            ApiError(
                event_type=EventType.API_ERROR,
                ts_ms=ts_ms,
                code=str(code) if code is not None else None,
                message=str(message) if message is not None else "unknown error",
                error_type=str(error_type) if error_type is not None else None,
            ),
        )

    _DECODERS: dict[
        str, Callable[[Mapping[str, Any], int], tuple[InboundEvent, ...]]
    ] = {
        "session.created": _session_created,
        "session.updated": _session_updated,
        "conversation.item.created": _item_created,
        "response.audio.delta": _audio_delta,
        "response.text.delta": _text_delta,
        "response.text.done": _text_done,
        "response.audio_transcript.delta": _transcript_delta,
        "response.audio_transcript.done": _transcript_done,
        "conversation.item.input_audio_transcription.completed": _input_transcript_done,
        "response.done": _response_done,
        "error": _error,
    }
