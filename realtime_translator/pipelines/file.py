"""
File translation flow.

    transcode -> frames -> flush remainder -> commit -> (delay) -> response.create
    -> wait for response.done (or timeout)

The session must already be READY; the caller owns connect() and stop().
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from realtime_translator.audio.sources import AudioSource
from realtime_translator.observability.logger import log_event
from realtime_translator.pipelines.capture import CaptureStats, stream_source
from realtime_translator.pipelines.output import TranslationPrinter, consume_events
from realtime_translator.protocol.events import (
    Disconnected,
    Event,
    ResponseComplete,
)
from realtime_translator.session.client import SessionClient
from realtime_translator.spec import (
    PROGRESS_EVERY_N_FRAMES,
    RESPONSE_REQUEST_DELAY_MS,
    RESPONSE_TIMEOUT_S,
    SEND_FRAME_BYTES,
)


@dataclass
class FileTranslationResult:
    capture: CaptureStats
    completed: bool = False
    timed_out: bool = False
    translations: list[str] = field(default_factory=list)
    response_status: str | None = None


def _is_terminal(event: Event) -> bool:
    return isinstance(event, ResponseComplete) or (
        isinstance(event, Disconnected) and event.exhausted
    )


async def translate_file(
    session: SessionClient,
    source: AudioSource,
    *,
    printer: TranslationPrinter | None = None,
    frame_size: int = SEND_FRAME_BYTES,
    request_delay_ms: int = RESPONSE_REQUEST_DELAY_MS,
    response_timeout_s: float = RESPONSE_TIMEOUT_S,
    on_progress: Callable[[int], Awaitable[None] | None] | None = None,
) -> FileTranslationResult:
    """
    Stream a whole source through the session and wait for the response.

    on_progress is called every PROGRESS_EVERY_N_FRAMES frames with the
    running frame count.
    """
    printer = printer if printer is not None else TranslationPrinter()
    subscription = session.subscribe()
    consumer = asyncio.create_task(
        consume_events(subscription, printer=printer, stop_when=_is_terminal)
    )

    def _progress(frames: int) -> Awaitable[None] | None:
        if on_progress is not None and frames % PROGRESS_EVERY_N_FRAMES == 0:
            return on_progress(frames)
        return None

    try:
        capture = await stream_source(
            source,
            session,
            frame_size=frame_size,
            on_frame=_progress,
        )
        result = FileTranslationResult(capture=capture)

        await session.commit_audio()
        await asyncio.sleep(request_delay_ms / 1000.0)
        await session.create_response()

        log_event({
            "event_type": "file_audio_submitted",
            "frames": capture.frames_cut,
            "seconds": round(capture.seconds_in, 2),
            **session.log_context(),
        })

        try:
            last = await asyncio.wait_for(asyncio.shield(consumer), timeout=response_timeout_s)
        except asyncio.TimeoutError:
            result.timed_out = True
            log_event({
                "event_type": "file_response_timeout",
                "timeout_s": response_timeout_s,
                **session.log_context(),
            }, level="warning")
        else:
            if isinstance(last, ResponseComplete):
                result.completed = True
                result.response_status = last.summary.status
    finally:
        if not consumer.done():
            consumer.cancel()
            try:
                await consumer
            except asyncio.CancelledError:
                pass

    result.translations = list(printer.translations)
    return result
