# pylint: disable=missing-module-docstring,missing-function-docstring

import time

import pytest

from realtime_translator.audio.frames import AudioFrame
from realtime_translator.audio.queues import BackpressurePolicy, PendingFrameQueue


def make_frame(seq: int) -> AudioFrame:
    return AudioFrame(
        sequence_num=seq,
        pcm_bytes=b"\x00\x00" * 16,
        ts_ms=int(time.time() * 1000),
    )


# ---------------------------------------------------------------------
# FIFO
# ---------------------------------------------------------------------

def test_fifo_order():
    q = PendingFrameQueue(max_frames=4)

    for i in range(1, 4):
        assert q.enqueue(make_frame(i)) is True

    assert q.peek().sequence_num == 1
    assert [q.dequeue().sequence_num for _ in range(3)] == [1, 2, 3]
    assert q.dequeue() is None
    assert q.is_empty()


# ---------------------------------------------------------------------
# Full-queue policies
# ---------------------------------------------------------------------

def test_drop_oldest_evicts_head():
    q = PendingFrameQueue(max_frames=2, policy=BackpressurePolicy.DROP_OLDEST)

    q.enqueue(make_frame(1))
    q.enqueue(make_frame(2))
    assert q.enqueue(make_frame(3)) is True

    assert q.drops.oldest == 1
    assert q.total_drops() == 1
    assert [q.dequeue().sequence_num, q.dequeue().sequence_num] == [2, 3]


def test_drop_newest_rejects_incoming():
    q = PendingFrameQueue(max_frames=2, policy=BackpressurePolicy.DROP_NEWEST)

    q.enqueue(make_frame(1))
    q.enqueue(make_frame(2))
    assert q.enqueue(make_frame(3)) is False

    assert q.drops.newest == 1
    assert len(q) == 2
    assert q.peek().sequence_num == 1


def test_block_rejects_without_counting_a_drop():
    q = PendingFrameQueue(max_frames=1, policy=BackpressurePolicy.BLOCK)

    q.enqueue(make_frame(1))
    assert q.is_full()
    assert q.enqueue(make_frame(2)) is False
    assert q.total_drops() == 0


def test_push_front_restores_head():
    q = PendingFrameQueue(max_frames=2)
    q.enqueue(make_frame(1))
    q.enqueue(make_frame(2))

    head = q.dequeue()
    q.push_front(head)

    assert [q.dequeue().sequence_num, q.dequeue().sequence_num] == [1, 2]


def test_clear_returns_count():
    q = PendingFrameQueue(max_frames=8)
    for i in range(5):
        q.enqueue(make_frame(i))

    assert q.clear() == 5
    assert len(q) == 0
    assert q.total_drops() == 0


def test_snapshot_fields():
    q = PendingFrameQueue(max_frames=3, policy=BackpressurePolicy.DROP_NEWEST)
    q.enqueue(make_frame(1))

    snap = q.snapshot()

    assert snap["frames"] == 1
    assert snap["max_frames"] == 3
    assert snap["policy"] == "drop_newest"


# ---------------------------------------------------------------------
# Policy parsing
# ---------------------------------------------------------------------

def test_parse_policy_names():
    assert BackpressurePolicy.parse("DROP_OLDEST") is BackpressurePolicy.DROP_OLDEST
    assert BackpressurePolicy.parse(" block ") is BackpressurePolicy.BLOCK

    with pytest.raises(ValueError):
        BackpressurePolicy.parse("sometimes")


def test_invalid_bound():
    with pytest.raises(ValueError):
        PendingFrameQueue(max_frames=0)
