"""
BEHAVIORAL CONSTANTS
--------------------
Single source of truth for all behavioral invariants in the translator.

Rules:
- If changing a value changes runtime behavior, it belongs here.
- No magic numbers elsewhere in the codebase.
- Other modules MUST import from this file.
"""

from __future__ import annotations

from typing import Final, Tuple

# =============================================================================
# Audio Format (PCM16 mono @ 24kHz)
# =============================================================================

AUDIO_SAMPLE_RATE_HZ: Final[int] = 24_000
AUDIO_CHANNELS: Final[int] = 1
AUDIO_SAMPLE_WIDTH_BYTES: Final[int] = 2  # PCM16 (signed 16-bit, little-endian)
AUDIO_BYTES_PER_SECOND: Final[int] = (
    AUDIO_SAMPLE_RATE_HZ * AUDIO_CHANNELS * AUDIO_SAMPLE_WIDTH_BYTES
)

# Capture devices hand us small reads; the network layer sends larger frames.
CAPTURE_FRAME_BYTES: Final[int] = 4096
SEND_FRAME_BYTES: Final[int] = 8192

# Bytes read from a subprocess pipe per iteration (arbitrary, not a frame size)
SOURCE_READ_BYTES: Final[int] = 4096

# =============================================================================
# Wire Protocol
# =============================================================================

REALTIME_URL_TEMPLATE: Final[str] = "wss://api.openai.com/v1/realtime?model={model}"
REALTIME_MODEL_DEFAULT: Final[str] = "gpt-4o-realtime-preview-2024-12-17"
REALTIME_BETA_HEADER: Final[str] = "realtime=v1"

# Inbound frames can carry large audio deltas
WS_MAX_MESSAGE_BYTES: Final[int] = 2**22

# =============================================================================
# Session Defaults
# =============================================================================

SESSION_MODALITIES_DEFAULT: Final[Tuple[str, ...]] = ("text",)
SESSION_INPUT_AUDIO_FORMAT: Final[str] = "pcm16"
SESSION_TRANSCRIPTION_MODEL: Final[str] = "whisper-1"
SESSION_TEMPERATURE: Final[float] = 0.7
SESSION_MAX_OUTPUT_TOKENS: Final[int] = 4096

SESSION_INSTRUCTIONS_DEFAULT: Final[str] = (
    "You are a real-time translator. Listen to the audio input in any language "
    "and translate it to English. Always respond with the English translation "
    "of what you hear. If it's already in English, provide a transcription."
)

TURN_DETECTION_TYPE: Final[str] = "server_vad"
TURN_DETECTION_THRESHOLD: Final[float] = 0.5
TURN_DETECTION_PREFIX_PADDING_MS: Final[int] = 300
TURN_DETECTION_SILENCE_DURATION_MS: Final[int] = 500

# =============================================================================
# Connection Lifecycle
# =============================================================================

CONNECT_TIMEOUT_S: Final[float] = 10.0
RECONNECT_BASE_DELAY_MS: Final[int] = 1_000
RECONNECT_MAX_ATTEMPTS: Final[int] = 5

# =============================================================================
# Backpressure (frames held while the session is not READY)
# =============================================================================

# 64 x 8192 bytes ~= 11s of audio at 24kHz PCM16
PENDING_QUEUE_MAX_FRAMES: Final[int] = 64
BACKPRESSURE_POLICY_DEFAULT: Final[str] = "drop_oldest"

# =============================================================================
# File Translation Flow
# =============================================================================

RESPONSE_REQUEST_DELAY_MS: Final[int] = 1_000
RESPONSE_TIMEOUT_S: Final[float] = 60.0
PROGRESS_EVERY_N_FRAMES: Final[int] = 10

# Periodic capture statistics in live mode
CAPTURE_STATS_EVERY_N_FRAMES: Final[int] = 50

# =============================================================================
# Batch Translation (whole-file, non-streaming)
# =============================================================================

BATCH_MODEL_DEFAULT: Final[str] = "whisper-1"
