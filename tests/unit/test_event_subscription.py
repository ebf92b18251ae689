# pylint: disable=missing-module-docstring,missing-function-docstring

import asyncio

import pytest

from realtime_translator.protocol.events import EventType, TextDelta
from realtime_translator.session.subscription import EventSubscription


def delta(text: str) -> TextDelta:
    return TextDelta(event_type=EventType.TEXT_DELTA, ts_ms=0, text=text)


@pytest.mark.asyncio
async def test_events_delivered_in_order_then_end_of_stream():
    sub = EventSubscription()
    sub.publish(delta("a"))
    sub.publish(delta("b"))
    sub.close()

    seen = [e.text async for e in sub]

    assert seen == ["a", "b"]
    assert await sub.next() is None


@pytest.mark.asyncio
async def test_publish_after_close_is_ignored():
    sub = EventSubscription()
    sub.close()
    sub.close()
    sub.publish(delta("late"))

    assert sub.drain_nowait() == ()
    assert await sub.next() is None


@pytest.mark.asyncio
async def test_next_times_out():
    sub = EventSubscription()

    with pytest.raises(asyncio.TimeoutError):
        await sub.next(timeout=0.01)


@pytest.mark.asyncio
async def test_drain_nowait_keeps_end_marker():
    sub = EventSubscription()
    sub.publish(delta("x"))
    sub.close()

    assert [e.text for e in sub.drain_nowait()] == ["x"]
    assert sub.closed
    assert await sub.next() is None
