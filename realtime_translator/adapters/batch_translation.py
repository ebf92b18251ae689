"""
Whole-file translation through the OpenAI Audio API (non-streaming).

Complements the realtime session for recordings where latency does not
matter: one request translates the full file to English. With
with_original=True the source-language transcription is requested
concurrently.

This adapter is deliberately "dumb":
- No chunking, no retries, no session
- Errors from the vendor client are wrapped in BatchTranslationError
"""

from __future__ import annotations

import asyncio
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import openai
from openai import AsyncOpenAI

from realtime_translator.observability.logger import log_event
from realtime_translator.spec import BATCH_MODEL_DEFAULT


class BatchTranslationError(RuntimeError):
    """The vendor call failed or returned no text."""


@dataclass(frozen=True)
class BatchTranslation:
    file: str
    translation: str
    transcription: str | None = None


def build_openai_client(api_key: str) -> AsyncOpenAI:
    return AsyncOpenAI(api_key=api_key)


class BatchTranslator:
    """
    Thin wrapper over client.audio.translations / transcriptions.

    The client is injected so tests can pass a stub with the same shape.
    """

    def __init__(self, *, client: Any, model: str = BATCH_MODEL_DEFAULT) -> None:
        self._client = client
        self._model = model

    async def translate(self, path: str, *, with_original: bool = False) -> BatchTranslation:
        """
        Translate a file to English.

        Raises:
            FileNotFoundError if path does not exist.
            BatchTranslationError on API failure or an empty result.
        """
        if not os.path.isfile(path):
            raise FileNotFoundError(f"audio file not found: {path}")

        name = os.path.basename(path)
        t0 = time.monotonic()
        log_event({
            "event_type": "batch_translation_started",
            "file": name,
            "model": self._model,
            "with_original": with_original,
        })

        try:
            if with_original:
                translation, transcription = await asyncio.gather(
                    self._request_translation(path),
                    self._request_transcription(path),
                )
            else:
                translation = await self._request_translation(path)
                transcription = None
        except openai.OpenAIError as e:
            log_event({
                "event_type": "batch_translation_failed",
                "file": name,
                "error": repr(e),
            }, level="error")
            raise BatchTranslationError(f"API error for {name}: {e}") from e

        if not translation:
            raise BatchTranslationError(f"no translation received for {name}")

        log_event({
            "event_type": "batch_translation_finished",
            "file": name,
            "chars": len(translation),
            "elapsed_ms": int((time.monotonic() - t0) * 1000),
        })
        return BatchTranslation(file=name, translation=translation, transcription=transcription)

    async def _request_translation(self, path: str) -> str:
        result = await self._client.audio.translations.create(
            model=self._model,
            file=Path(path),
            response_format="json",
        )
        return (getattr(result, "text", "") or "").strip()

    async def _request_transcription(self, path: str) -> str:
        result = await self._client.audio.transcriptions.create(
            model=self._model,
            file=Path(path),
            response_format="json",
        )
        return (getattr(result, "text", "") or "").strip()
