"""
Producer pipeline: AudioSource -> ChunkBuffer -> SessionClient.queue_audio.

Owns the ChunkBuffer for its source (one buffer per producer).
Frames are handed to the session in the order they were cut.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Protocol

from realtime_translator.audio.chunk_buffer import ChunkBuffer
from realtime_translator.audio.frames import AudioFrame
from realtime_translator.audio.pcm import bytes_to_seconds, rms_dbfs
from realtime_translator.audio.sources import AudioSource
from realtime_translator.observability.logger import log_event
from realtime_translator.spec import (
    CAPTURE_STATS_EVERY_N_FRAMES,
    SEND_FRAME_BYTES,
)


class FrameConsumer(Protocol):
    """The slice of SessionClient a producer needs."""

    async def queue_audio(self, frame: AudioFrame) -> bool: ...


@dataclass
class CaptureStats:
    frames_cut: int = 0
    frames_accepted: int = 0
    frames_rejected: int = 0
    bytes_in: int = 0

    @property
    def seconds_in(self) -> float:
        return bytes_to_seconds(self.bytes_in)


async def stream_source(
    source: AudioSource,
    session: FrameConsumer,
    *,
    frame_size: int = SEND_FRAME_BYTES,
    flush_at_end: bool = True,
    stats_every: int = CAPTURE_STATS_EVERY_N_FRAMES,
    on_frame: Callable[[int], Awaitable[None] | None] | None = None,
) -> CaptureStats:
    """
    Pump a source into the session until the source ends.

    Args:
        flush_at_end:
            Emit the short remainder as a final frame once the source is
            exhausted (file mode). Live capture passes False and drops the
            partial frame left when the microphone stops.
        stats_every:
            Log an `audio_capture_stats` line (level in dBFS) every N frames.
            0 disables it.
        on_frame:
            Called with the running count of cut frames (progress display).

    Returns:
        CaptureStats for the run.
    """
    buffer = ChunkBuffer(frame_size=frame_size)
    stats = CaptureStats()

    async def _submit(frame: AudioFrame) -> None:
        stats.frames_cut += 1
        if await session.queue_audio(frame):
            stats.frames_accepted += 1
        else:
            stats.frames_rejected += 1

        if stats_every and stats.frames_cut % stats_every == 0:
            log_event({
                "event_type": "audio_capture_stats",
                "frames": stats.frames_cut,
                "seconds": round(stats.seconds_in, 2),
                "level_dbfs": round(rms_dbfs(frame.pcm_bytes), 1),
                "rejected": stats.frames_rejected,
            }, level="debug")

        if on_frame is not None:
            result = on_frame(stats.frames_cut)
            if result is not None:
                await result

    async for data in source.chunks():
        stats.bytes_in += len(data)
        for frame in buffer.accumulate(data):
            await _submit(frame)

    final = buffer.flush()
    if final is not None and flush_at_end:
        await _submit(final)

    log_event({
        "event_type": "audio_capture_finished",
        "frames": stats.frames_cut,
        "accepted": stats.frames_accepted,
        "rejected": stats.frames_rejected,
        "bytes": stats.bytes_in,
        "final_frame_bytes": len(final) if final is not None else 0,
    })
    return stats
