"""
Bounded pending-frame queue with explicit drop policy.

Holds frames submitted while the session is not READY (connecting,
initializing, reconnecting). Drained in FIFO order once READY.

Requirements:
- Bounded by frame count
- Explicit, configurable policy when full
- Drop reasons distinguishable for observability
- Deterministic, synchronous behavior (the BLOCK policy's waiting is
  implemented by the async caller, see SessionClient.queue_audio)
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, Optional

from realtime_translator.audio.frames import AudioFrame


class BackpressurePolicy(str, Enum):
    """
    What to do when a frame arrives and the queue is full.

    DROP_OLDEST: evict the head to keep audio fresh, then enqueue.
    DROP_NEWEST: reject the incoming frame.
    BLOCK: caller waits for space (queue itself rejects, caller retries).
    """
    DROP_OLDEST = "drop_oldest"
    DROP_NEWEST = "drop_newest"
    BLOCK = "block"

    @classmethod
    def parse(cls, raw: str) -> BackpressurePolicy:
        try:
            return cls(raw.strip().lower())
        except ValueError as e:
            allowed = ", ".join(p.value for p in cls)
            raise ValueError(
                f"Unknown backpressure policy {raw!r} (expected one of: {allowed})"
            ) from e


@dataclass
class DropCounters:
    """
    Drop counters for observability.
    """
    oldest: int = 0
    newest: int = 0


class PendingFrameQueue:
    """
    Bounded FIFO queue for AudioFrame objects.
    """

    def __init__(
        self,
        *,
        max_frames: int,
        policy: BackpressurePolicy = BackpressurePolicy.DROP_OLDEST,
    ) -> None:
        if max_frames <= 0:
            raise ValueError("max_frames must be > 0")

        self._max_frames = max_frames
        self._policy = policy
        self._frames: Deque[AudioFrame] = deque()
        self.drops: DropCounters = DropCounters()

    @property
    def policy(self) -> BackpressurePolicy:
        return self._policy

    # -------------------------
    # Core queue operations
    # -------------------------

    def enqueue(self, frame: AudioFrame) -> bool:
        """
        Enqueue an AudioFrame.

        Returns:
            True if enqueued
            False if rejected (DROP_NEWEST dropped it, or BLOCK and full)
        """
        if self.is_full():
            if self._policy is BackpressurePolicy.DROP_OLDEST:
                self._frames.popleft()
                self.drops.oldest += 1
            elif self._policy is BackpressurePolicy.DROP_NEWEST:
                self.drops.newest += 1
                return False
            else:
                return False

        self._frames.append(frame)
        return True

    def dequeue(self) -> Optional[AudioFrame]:
        """
        Dequeue the oldest AudioFrame.

        Returns None if queue is empty.
        """
        if not self._frames:
            return None
        return self._frames.popleft()

    def push_front(self, frame: AudioFrame) -> None:
        """
        Return a just-dequeued frame to the head (failed send).

        Not subject to the drop policy: the slot was freed by the dequeue.
        """
        self._frames.appendleft(frame)

    def peek(self) -> Optional[AudioFrame]:
        """View the oldest frame without removing it."""
        return self._frames[0] if self._frames else None

    def clear(self) -> int:
        """
        Drop all queued frames without counting them as drops.

        Returns the number of frames discarded.
        """
        n = len(self._frames)
        self._frames.clear()
        return n

    # -------------------------
    # Introspection helpers
    # -------------------------

    def __len__(self) -> int:
        return len(self._frames)

    def is_empty(self) -> bool:
        """Check if the queue is empty."""
        return not self._frames

    def is_full(self) -> bool:
        return len(self._frames) >= self._max_frames

    def total_drops(self) -> int:
        """Total frames dropped for any reason."""
        return self.drops.oldest + self.drops.newest

    def snapshot(self) -> dict[str, int | str]:
        """
        Lightweight snapshot for logging.
        """
        return {
            "frames": len(self._frames),
            "max_frames": self._max_frames,
            "policy": self._policy.value,
            "dropped_oldest": self.drops.oldest,
            "dropped_newest": self.drops.newest,
            "dropped_total": self.total_drops(),
        }
