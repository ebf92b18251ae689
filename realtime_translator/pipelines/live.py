"""
Live translation flow: microphone in, translations and audio out.

Runs until the source is stopped, the session terminates, or the task
is cancelled. Server-side VAD decides when responses are produced.
"""

from __future__ import annotations

import asyncio
import contextlib

from realtime_translator.audio.sinks import AudioSink
from realtime_translator.audio.sources import AudioSource
from realtime_translator.observability.logger import log_event
from realtime_translator.pipelines.capture import CaptureStats, stream_source
from realtime_translator.pipelines.output import TranslationPrinter, consume_events
from realtime_translator.session.client import SessionClient
from realtime_translator.spec import SEND_FRAME_BYTES


async def run_live(
    session: SessionClient,
    source: AudioSource,
    *,
    printer: TranslationPrinter | None = None,
    sink: AudioSink | None = None,
    frame_size: int = SEND_FRAME_BYTES,
) -> CaptureStats | None:
    """
    Run capture and output concurrently.

    Returns the capture stats if the source ended, or None if the session
    ended first (consumer reached end-of-stream).
    """
    printer = printer if printer is not None else TranslationPrinter()
    subscription = session.subscribe()

    producer = asyncio.create_task(
        stream_source(source, session, frame_size=frame_size, flush_at_end=False)
    )
    consumer = asyncio.create_task(
        consume_events(subscription, printer=printer, sink=sink)
    )

    try:
        done, _ = await asyncio.wait(
            {producer, consumer},
            return_when=asyncio.FIRST_COMPLETED,
        )
    finally:
        if not producer.done():
            await source.stop()
        for task in (producer, consumer):
            if not task.done():
                task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if sink is not None:
            await sink.close()

    stats = producer.result() if producer in done and not producer.cancelled() else None
    log_event({
        "event_type": "live_finished",
        "source_ended": stats is not None,
        **session.log_context(),
    })
    return stats
