"""
Fixed-size PCM frame reassembly.

Purpose:
- Accept arbitrarily sized byte buffers from an AudioSource
  (microphone reads, transcoder pipe reads) and cut them into
  fixed-size frames for transmission.

Invariants:
- Order preserving: frames are cut from the front of the remainder.
- No data loss: concatenating every frame ever produced, including the
  one returned by flush(), equals the input byte stream.
- Every frame is exactly frame_size bytes except the flush() remainder.

Ownership:
- One ChunkBuffer per producer pipeline. Never shared.
"""

from __future__ import annotations

import time
from typing import Iterator, Optional

from realtime_translator.audio.frames import AudioFrame
from realtime_translator.spec import SEND_FRAME_BYTES


class ChunkBufferClosed(ValueError):
    """Raised when accumulate() is called after flush() without reset()."""


def _now_ms() -> int:
    return int(time.time() * 1000)


class ChunkBuffer:
    """
    Accumulates byte buffers into fixed-size AudioFrames.

    accumulate() appends eagerly and cuts frames lazily: the returned
    iterator pops full frames from the shared remainder as it is consumed.
    Bytes are never lost if an iterator is abandoned; unconsumed full
    frames stay in the remainder and are yielded by the next iterator.
    """

    def __init__(self, *, frame_size: int = SEND_FRAME_BYTES) -> None:
        if frame_size <= 0:
            raise ValueError("frame_size must be > 0")

        self._frame_size = frame_size
        self._remainder = bytearray()
        self._next_seq = 1
        self._closed = False

    @property
    def frame_size(self) -> int:
        return self._frame_size

    @property
    def pending_bytes(self) -> int:
        """Bytes held that have not been emitted as a frame yet."""
        return len(self._remainder)

    def accumulate(self, data: bytes) -> Iterator[AudioFrame]:
        """
        Append data and return a lazy iterator of full frames.

        Raises:
            ChunkBufferClosed if flush() was called and reset() was not.
        """
        if self._closed:
            raise ChunkBufferClosed("ChunkBuffer was flushed; call reset() to reuse")

        if data:
            self._remainder.extend(data)
        return self._drain()

    def flush(self) -> Optional[AudioFrame]:
        """
        Emit whatever remains as a final (possibly short) frame.

        Callers should exhaust accumulate() iterators first. If an
        iterator was abandoned and more than one frame's worth of bytes
        remains, everything is emitted as a single final frame so the
        concatenation law still holds.

        Returns None when nothing is buffered. The buffer is closed after
        this call until reset().
        """
        self._closed = True
        if not self._remainder:
            return None

        frame = AudioFrame(
            sequence_num=self._next_seq,
            pcm_bytes=bytes(self._remainder),
            ts_ms=_now_ms(),
            final=True,
        )
        self._next_seq += 1
        self._remainder.clear()
        return frame

    def reset(self) -> None:
        """
        Reopen the buffer for a deliberately restarted producer pipeline.

        Discards any remainder and restarts sequence numbering.
        """
        self._remainder.clear()
        self._next_seq = 1
        self._closed = False

    def _drain(self) -> Iterator[AudioFrame]:
        while len(self._remainder) >= self._frame_size:
            chunk = bytes(self._remainder[: self._frame_size])
            del self._remainder[: self._frame_size]
            seq = self._next_seq
            self._next_seq += 1
            yield AudioFrame(sequence_num=seq, pcm_bytes=chunk, ts_ms=_now_ms())
