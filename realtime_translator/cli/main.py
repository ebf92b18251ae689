"""
Command-line entry point.

    realtime-translator live  [--play] [--save-audio out.wav]
    realtime-translator file  <audio-file>
    realtime-translator batch <audio-file> [--with-original]

Translations go to stdout; status lines and JSONL logs go to stderr.
Configuration comes from the environment (a .env file is honored).
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Sequence

from dotenv import load_dotenv

from realtime_translator.adapters.batch_translation import (
    BatchTranslationError,
    BatchTranslator,
    build_openai_client,
)
from realtime_translator.audio.sinks import AudioSink, SpeakerSink, WavFileSink
from realtime_translator.audio.sources import (
    AudioSourceError,
    FileTranscoder,
    MicrophoneSource,
)
from realtime_translator.config import AppConfig, ConfigError
from realtime_translator.observability.logger import configure_logger, log_event
from realtime_translator.pipelines.file import translate_file
from realtime_translator.pipelines.live import run_live
from realtime_translator.pipelines.output import TranslationPrinter
from realtime_translator.protocol.commands import SessionSettings
from realtime_translator.session.client import SessionClient
from realtime_translator.session.errors import SessionError


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="realtime-translator",
        description="Speech translation to English over the OpenAI Realtime API",
    )
    p.add_argument("--log-level", default=None, help="debug, info, warning or error (overrides LOG_LEVEL)")

    sub = p.add_subparsers(dest="command", required=True)

    live = sub.add_parser("live", help="Translate microphone input continuously")
    live.add_argument("--play", action="store_true", help="Play translated audio on the speaker")
    live.add_argument("--save-audio", default=None, metavar="WAV", help="Write translated audio to a WAV file")
    live.add_argument("--no-original", action="store_true", help="Hide source-language transcripts")

    file_ = sub.add_parser("file", help="Stream an audio file through a realtime session")
    file_.add_argument("path", help="Any file ffmpeg can decode")

    batch = sub.add_parser("batch", help="Translate a whole file in one request")
    batch.add_argument("path", help="Audio file (mp3, wav, m4a, ...)")
    batch.add_argument("--with-original", action="store_true", help="Also print the original-language transcription")

    return p


def _status(message: str) -> None:
    sys.stderr.write(message + "\n")
    sys.stderr.flush()


async def _connect(config: AppConfig, *, modalities: tuple[str, ...]) -> SessionClient:
    session = SessionClient.from_config(
        config,
        settings=SessionSettings(instructions=config.instructions, modalities=modalities),
    )
    await session.connect()
    return session


async def cmd_live(args: argparse.Namespace, config: AppConfig) -> int:
    sink: AudioSink | None = None
    if args.save_audio:
        sink = WavFileSink(args.save_audio)
    elif args.play:
        sink = SpeakerSink()
    modalities = ("text", "audio") if sink is not None else ("text",)

    session = await _connect(config, modalities=modalities)
    _status("Listening. Speak in any language; press Ctrl+C to stop.")
    try:
        await run_live(
            session,
            MicrophoneSource(),
            printer=TranslationPrinter(show_original=not args.no_original),
            sink=sink,
        )
    finally:
        await session.stop()
    return 0


async def cmd_file(args: argparse.Namespace, config: AppConfig) -> int:
    source = FileTranscoder(args.path)
    session = await _connect(config, modalities=("text",))
    _status(f"Session ready, processing {args.path}")

    def _dot(_frames: int) -> None:
        sys.stderr.write(".")
        sys.stderr.flush()

    try:
        result = await translate_file(
            session,
            source,
            response_timeout_s=config.response_timeout_s,
            on_progress=_dot,
        )
    finally:
        await session.stop()

    _status("")
    if result.completed:
        _status("Translation complete.")
        return 0
    if result.timed_out:
        _status("Timeout reached without a complete response.")
        return 0
    _status("Session ended before the translation completed.")
    return 1


async def cmd_batch(args: argparse.Namespace, config: AppConfig) -> int:
    translator = BatchTranslator(
        client=build_openai_client(config.require_api_key()),
        model=config.batch_model,
    )
    result = await translator.translate(args.path, with_original=args.with_original)

    if result.transcription is not None:
        print("=== ORIGINAL ===")
        print(result.transcription)
        print()
    print("=== TRANSLATION ===")
    print(result.translation)
    return 0


_COMMANDS = {
    "live": cmd_live,
    "file": cmd_file,
    "batch": cmd_batch,
}


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    try:
        config = AppConfig.load_from_env()
        configure_logger(level=args.log_level or config.log_level)
        config.require_api_key()
    except ConfigError as e:
        _status(f"Configuration error: {e}")
        return 2

    log_event({"event_type": "cli_started", "command": args.command})

    try:
        return asyncio.run(_COMMANDS[args.command](args, config))
    except KeyboardInterrupt:
        _status("\nStopped.")
        return 130
    except (FileNotFoundError, AudioSourceError, BatchTranslationError) as e:
        _status(f"Error: {e}")
        return 1
    except SessionError as e:
        _status(f"Failed to start translator: {e}")
        return 1
    except ValueError as e:
        _status(f"Error: {e}")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
