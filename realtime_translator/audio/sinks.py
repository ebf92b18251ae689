"""
Audio sinks for translated audio (PCM16 mono @ 24kHz).

- SpeakerSink: pipes PCM into sox `play` on stdin
- WavFileSink: writes a WAV file (stdlib wave)

Sinks accept arbitrary-sized byte buffers; write order is playback order.
"""

from __future__ import annotations

import asyncio
import contextlib
import shutil
import wave
from typing import Protocol

from realtime_translator.audio.sources import AudioToolMissing
from realtime_translator.observability.logger import log_event
from realtime_translator.spec import (
    AUDIO_CHANNELS,
    AUDIO_SAMPLE_RATE_HZ,
    AUDIO_SAMPLE_WIDTH_BYTES,
)


class AudioSink(Protocol):
    async def write(self, pcm: bytes) -> None: ...

    async def close(self) -> None: ...


def speaker_argv() -> list[str]:
    return [
        "play",
        "-q",
        "-t", "raw",
        "-b", str(AUDIO_SAMPLE_WIDTH_BYTES * 8),
        "-e", "signed-integer",
        "-c", str(AUDIO_CHANNELS),
        "-r", str(AUDIO_SAMPLE_RATE_HZ),
        "-",
    ]


class SpeakerSink:
    """
    Plays PCM through the default output device.

    The player process is started lazily on the first write.
    """

    def __init__(self) -> None:
        self._proc: asyncio.subprocess.Process | None = None
        self._closed = False
        self._bytes_written = 0

    async def _ensure_started(self) -> asyncio.subprocess.Process:
        if self._proc is not None:
            return self._proc
        argv = speaker_argv()
        if shutil.which(argv[0]) is None:
            raise AudioToolMissing(f"{argv[0]} not found (required for playback)")
        self._proc = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
        log_event({"event_type": "speaker_started", "pid": self._proc.pid})
        return self._proc

    async def write(self, pcm: bytes) -> None:
        if self._closed or not pcm:
            return
        proc = await self._ensure_started()
        assert proc.stdin is not None
        proc.stdin.write(pcm)
        await proc.stdin.drain()
        self._bytes_written += len(pcm)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        proc = self._proc
        self._proc = None
        if proc is None:
            return
        if proc.stdin is not None:
            proc.stdin.close()
            with contextlib.suppress(BrokenPipeError, ConnectionResetError):
                await proc.stdin.wait_closed()
        await proc.wait()
        log_event({
            "event_type": "speaker_stopped",
            "bytes": self._bytes_written,
            "returncode": proc.returncode,
        })


class WavFileSink:
    """Collects translated audio into a WAV file."""

    def __init__(self, path: str) -> None:
        self._path = path
        self._wav: wave.Wave_write | None = wave.open(path, "wb")  # pylint: disable=consider-using-with
        self._wav.setnchannels(AUDIO_CHANNELS)
        self._wav.setsampwidth(AUDIO_SAMPLE_WIDTH_BYTES)
        self._wav.setframerate(AUDIO_SAMPLE_RATE_HZ)
        self._bytes_written = 0

    @property
    def path(self) -> str:
        return self._path

    @property
    def bytes_written(self) -> int:
        return self._bytes_written

    async def write(self, pcm: bytes) -> None:
        if self._wav is None or not pcm:
            return
        self._wav.writeframes(pcm)
        self._bytes_written += len(pcm)

    async def close(self) -> None:
        if self._wav is None:
            return
        self._wav.close()
        self._wav = None
        log_event({
            "event_type": "wav_written",
            "path": self._path,
            "bytes": self._bytes_written,
        })
