"""
Audio frame primitives.

Pure data containers only.
No behavior, no queues, no timing logic.
"""

from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class AudioFrame:
    """
    Canonical audio frame sent to the realtime service.

    sequence_num:
        Monotonic sequence number assigned by the ChunkBuffer that produced
        the frame. Used for ordering checks and debugging only.

    pcm_bytes:
        Raw PCM16LE mono 24kHz audio. Length equals the producer's configured
        frame size, except for the final frame returned by flush().

    ts_ms:
        Wall-clock timestamp (milliseconds) when the frame was cut.
        Used for observability only.

    final:
        True only for the short remainder emitted at end-of-stream.
    """
    sequence_num: int
    pcm_bytes: bytes
    ts_ms: int
    final: bool = False

    def __len__(self) -> int:
        return len(self.pcm_bytes)
