"""
Audio sources (raw PCM16 mono @ 24kHz byte streams).

Both sources wrap an external tool running as a child process and expose
its stdout as an async iterator of byte buffers. Buffer sizes are
arbitrary; framing is the producer pipeline's job (ChunkBuffer).

Must NOT:
- Cut frames
- Know about sessions or the wire protocol
"""

from __future__ import annotations

import asyncio
import contextlib
import os
import shutil
import sys
from typing import AsyncIterator, Protocol, Sequence

from realtime_translator.observability.logger import log_event
from realtime_translator.spec import (
    AUDIO_CHANNELS,
    AUDIO_SAMPLE_RATE_HZ,
    CAPTURE_FRAME_BYTES,
    SOURCE_READ_BYTES,
)


class AudioSourceError(RuntimeError):
    """The underlying tool failed (non-zero exit)."""


class AudioToolMissing(AudioSourceError):
    """The required executable is not on PATH."""


class AudioSource(Protocol):
    """Anything that can be iterated for PCM16 byte buffers."""

    def chunks(self) -> AsyncIterator[bytes]: ...

    async def stop(self) -> None: ...


class SubprocessSource:
    """
    Streams stdout of a child process.

    Iteration ends at EOF. A non-zero exit raises AudioSourceError unless
    stop() was called first.
    """

    def __init__(
        self,
        *,
        argv: Sequence[str],
        name: str,
        read_bytes: int = SOURCE_READ_BYTES,
        capture_stderr: bool = True,
    ) -> None:
        if not argv:
            raise ValueError("argv must not be empty")
        if read_bytes <= 0:
            raise ValueError("read_bytes must be > 0")
        self._argv = list(argv)
        self._name = name
        self._read_bytes = read_bytes
        self._capture_stderr = capture_stderr
        self._proc: asyncio.subprocess.Process | None = None
        self._stopping = False

    @property
    def argv(self) -> list[str]:
        return list(self._argv)

    async def _spawn(self) -> asyncio.subprocess.Process:
        if shutil.which(self._argv[0]) is None:
            raise AudioToolMissing(f"{self._argv[0]} not found (required for {self._name})")
        return await asyncio.create_subprocess_exec(
            *self._argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE if self._capture_stderr else asyncio.subprocess.DEVNULL,
        )

    async def chunks(self) -> AsyncIterator[bytes]:
        proc = await self._spawn()
        self._proc = proc
        log_event({
            "event_type": "audio_source_started",
            "source": self._name,
            "pid": proc.pid,
        })

        total = 0
        try:
            assert proc.stdout is not None
            while True:
                data = await proc.stdout.read(self._read_bytes)
                if not data:
                    break
                total += len(data)
                yield data
        except BaseException:
            # Consumer went away (aclose/cancel): do not leave the child running
            self._stopping = True
            await self._reap(proc)
            raise
        await self._reap(proc)

        stderr = b""
        if proc.stderr is not None:
            stderr = await proc.stderr.read()

        log_event({
            "event_type": "audio_source_ended",
            "source": self._name,
            "bytes": total,
            "returncode": proc.returncode,
        })

        if proc.returncode not in (0, None) and not self._stopping:
            tail = stderr.decode("utf-8", errors="replace").strip()[-500:]
            raise AudioSourceError(
                f"{self._name} exited with code {proc.returncode}: {tail}"
            )

    async def _reap(self, proc: asyncio.subprocess.Process) -> None:
        if proc.returncode is None:
            if self._stopping:
                with contextlib.suppress(ProcessLookupError):
                    proc.terminate()
            await proc.wait()
        self._proc = None

    async def stop(self) -> None:
        """Terminate the child process. Idempotent."""
        self._stopping = True
        proc = self._proc
        if proc is None or proc.returncode is not None:
            return
        with contextlib.suppress(ProcessLookupError):
            proc.terminate()
        log_event({
            "event_type": "audio_source_stopped",
            "source": self._name,
            "pid": proc.pid,
        })


def _raw_pcm_args() -> list[str]:
    return [
        "-t", "raw",
        "-b", "16",
        "-e", "signed-integer",
        "-c", str(AUDIO_CHANNELS),
        "-r", str(AUDIO_SAMPLE_RATE_HZ),
    ]


def microphone_argv(platform: str | None = None) -> list[str]:
    """
    Recorder command for the current platform.

    macOS uses `sox -d` (default device); elsewhere the `rec` front-end.
    """
    platform = platform if platform is not None else sys.platform
    if platform == "darwin":
        return ["sox", "-q", "-d", *_raw_pcm_args(), "-"]
    return ["rec", "-q", *_raw_pcm_args(), "-"]


class MicrophoneSource(SubprocessSource):
    """Live capture from the default input device (runs until stop())."""

    def __init__(self, *, platform: str | None = None) -> None:
        super().__init__(
            argv=microphone_argv(platform),
            name="microphone",
            read_bytes=CAPTURE_FRAME_BYTES,
            capture_stderr=False,
        )


def transcode_argv(path: str) -> list[str]:
    return [
        "ffmpeg",
        "-nostdin",
        "-hide_banner",
        "-loglevel", "error",
        "-i", path,
        "-f", "s16le",
        "-acodec", "pcm_s16le",
        "-ar", str(AUDIO_SAMPLE_RATE_HZ),
        "-ac", str(AUDIO_CHANNELS),
        "-",
    ]


class FileTranscoder(SubprocessSource):
    """
    Decodes any ffmpeg-readable file to PCM16 mono @ 24kHz.

    Raises:
        FileNotFoundError at construction if the file does not exist.
    """

    def __init__(self, path: str) -> None:
        if not os.path.isfile(path):
            raise FileNotFoundError(f"audio file not found: {path}")
        self._path = path
        super().__init__(argv=transcode_argv(path), name="ffmpeg")

    @property
    def path(self) -> str:
        return self._path
