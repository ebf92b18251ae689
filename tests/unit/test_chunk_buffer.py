# pylint: disable=missing-module-docstring,missing-function-docstring

import pytest

from realtime_translator.audio.chunk_buffer import ChunkBuffer, ChunkBufferClosed


def test_ten_bytes_frame_size_four():
    buf = ChunkBuffer(frame_size=4)

    frames = list(buf.accumulate(bytes(range(10))))

    assert [f.pcm_bytes for f in frames] == [bytes([0, 1, 2, 3]), bytes([4, 5, 6, 7])]
    assert buf.pending_bytes == 2

    final = buf.flush()
    assert final is not None
    assert final.pcm_bytes == bytes([8, 9])
    assert final.final is True


def test_concatenation_law_across_uneven_pushes():
    buf = ChunkBuffer(frame_size=8192)
    data = bytes(i % 251 for i in range(50_000))
    pushes = [data[0:1], data[1:4097], data[4097:4100], data[4100:20_000], data[20_000:]]

    out = []
    for p in pushes:
        out.extend(buf.accumulate(p))
    final = buf.flush()

    assert all(len(f) == 8192 for f in out)
    assert final is not None
    assert b"".join(f.pcm_bytes for f in out) + final.pcm_bytes == data


def test_sequence_numbers_are_contiguous():
    buf = ChunkBuffer(frame_size=2)

    frames = list(buf.accumulate(b"\x00" * 7))
    frames.append(buf.flush())

    assert [f.sequence_num for f in frames] == [1, 2, 3, 4]


def test_empty_input_yields_nothing():
    buf = ChunkBuffer(frame_size=4)

    assert list(buf.accumulate(b"")) == []
    assert buf.flush() is None


def test_exact_multiple_leaves_no_final_frame():
    buf = ChunkBuffer(frame_size=4)

    assert len(list(buf.accumulate(b"\x01" * 8))) == 2
    assert buf.flush() is None


def test_iterator_is_lazy_and_abandoned_frames_are_kept():
    buf = ChunkBuffer(frame_size=2)

    it = buf.accumulate(b"abcdef")
    assert next(it).pcm_bytes == b"ab"

    # Remaining full frames come out of the next iterator
    rest = list(buf.accumulate(b"g"))
    assert [f.pcm_bytes for f in rest] == [b"cd", b"ef"]
    assert buf.flush().pcm_bytes == b"g"


def test_accumulate_after_flush_raises_until_reset():
    buf = ChunkBuffer(frame_size=4)
    list(buf.accumulate(b"abc"))
    buf.flush()

    with pytest.raises(ChunkBufferClosed):
        buf.accumulate(b"x")

    buf.reset()
    assert buf.pending_bytes == 0
    frames = list(buf.accumulate(b"wxyz"))
    assert frames[0].sequence_num == 1


def test_invalid_frame_size():
    with pytest.raises(ValueError):
        ChunkBuffer(frame_size=0)
