"""
Event subscription channel.

One subscription per consumer (printer, player, test harness).
Publishing never blocks: each subscription owns an unbounded asyncio.Queue,
so a slow consumer cannot stall the session's reader task.
"""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, Union

from realtime_translator.protocol.events import Event


class _Closed:
    """End-of-stream marker."""


_CLOSED = _Closed()


class EventSubscription:
    """
    Async-iterable stream of session events.

    Iteration ends after the session closes the subscription (stop() or
    terminal disconnect) and every event published before that has been
    consumed.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Union[Event, _Closed]] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, event: Event) -> None:
        """Deliver one event. No-op once closed."""
        if self._closed:
            return
        self._queue.put_nowait(event)

    def close(self) -> None:
        """Mark end-of-stream. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    async def next(self, timeout: float | None = None) -> Event | None:
        """
        Wait for the next event.

        Returns None at end-of-stream.

        Raises:
            asyncio.TimeoutError if timeout elapses first.
        """
        item = await asyncio.wait_for(self._queue.get(), timeout=timeout)
        if isinstance(item, _Closed):
            # Keep the marker so repeated calls also observe end-of-stream
            self._queue.put_nowait(item)
            return None
        return item

    def drain_nowait(self) -> tuple[Event, ...]:
        """
        Pop every event already delivered, without waiting.

        The end-of-stream marker is left in place.
        """
        out: list[Event] = []
        while True:
            try:
                item = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            if isinstance(item, _Closed):
                self._queue.put_nowait(item)
                break
            out.append(item)
        return tuple(out)

    def __aiter__(self) -> AsyncIterator[Event]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[Event]:
        while True:
            event = await self.next()
            if event is None:
                return
            yield event
