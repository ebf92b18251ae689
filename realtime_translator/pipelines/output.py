"""
Consumer side: render session events for a human.

- Translations and streamed text go to stdout (the program's output)
- Lifecycle notices go to stderr
- Audio deltas are written to an optional AudioSink

Logs (observability) are separate and also go to stderr as JSONL.
"""

from __future__ import annotations

import sys
from typing import Callable, TextIO

from realtime_translator.audio.sinks import AudioSink
from realtime_translator.protocol.events import (
    ApiError,
    AudioDelta,
    Disconnected,
    Event,
    InputTranscriptDone,
    Reconnecting,
    ResponseComplete,
    SessionReady,
    TextDelta,
    TranscriptDelta,
    TranslationDone,
)
from realtime_translator.session.subscription import EventSubscription


class TranslationPrinter:
    """
    Stateful renderer.

    Streamed deltas are written inline; a completed translation closes the
    line. When deltas were already shown for a response, the full text
    from TranslationDone is not printed again, and a translation equal to
    the previous one is recorded once.
    """

    def __init__(
        self,
        *,
        out: TextIO | None = None,
        err: TextIO | None = None,
        show_original: bool = True,
    ) -> None:
        self._out = out if out is not None else sys.stdout
        self._err = err if err is not None else sys.stderr
        self._show_original = show_original
        self._streaming = False
        self.translations: list[str] = []

    def _emit(self, stream: TextIO, text: str) -> None:
        stream.write(text)
        stream.flush()

    def _end_line(self) -> None:
        if self._streaming:
            self._emit(self._out, "\n")
            self._streaming = False

    def handle(self, event: Event) -> None:
        if isinstance(event, (TextDelta, TranscriptDelta)):
            self._emit(self._out, event.text)
            self._streaming = True
        elif isinstance(event, TranslationDone):
            if self.translations and self.translations[-1] == event.text:
                # response.done repeats the text already closed by text.done
                self._end_line()
                return
            self.translations.append(event.text)
            if self._streaming:
                self._end_line()
            else:
                self._emit(self._out, f"[translation] {event.text}\n")
        elif isinstance(event, InputTranscriptDone):
            if self._show_original and event.text.strip():
                self._end_line()
                self._emit(self._err, f"[original] {event.text.strip()}\n")
        elif isinstance(event, ResponseComplete):
            self._end_line()
        elif isinstance(event, SessionReady):
            self._emit(self._err, f"[session] ready ({event.session_id})\n")
        elif isinstance(event, Reconnecting):
            self._end_line()
            self._emit(
                self._err,
                f"[session] connection lost, reconnecting "
                f"(attempt {event.attempt}, in {event.delay_ms} ms)\n",
            )
        elif isinstance(event, Disconnected):
            self._end_line()
            if event.exhausted:
                self._emit(
                    self._err,
                    f"[session] gave up after {event.attempts} attempts: {event.reason}\n",
                )
        elif isinstance(event, ApiError):
            self._end_line()
            self._emit(self._err, f"[error] {event.code or 'api_error'}: {event.message}\n")


async def consume_events(
    subscription: EventSubscription,
    *,
    printer: TranslationPrinter | None = None,
    sink: AudioSink | None = None,
    stop_when: Callable[[Event], bool] | None = None,
) -> Event | None:
    """
    Drain a subscription into the printer and sink.

    Returns the event that satisfied stop_when, or None at end-of-stream.
    """
    async for event in subscription:
        if printer is not None:
            printer.handle(event)
        if sink is not None and isinstance(event, AudioDelta):
            await sink.write(event.pcm_bytes)
        if stop_when is not None and stop_when(event):
            return event
    return None
