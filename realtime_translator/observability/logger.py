"""
JSONL event logger.

- Write one JSON object per line
- Output to stderr (stdout carries translations)
- No buffering, no batching
- No side effects beyond logging
- Credential-like keys are redacted before serialization
"""

from __future__ import annotations

import json
import sys
import time
from typing import Any, Mapping, Callable


LEVELS: dict[str, int] = {
    "debug": 10,
    "info": 20,
    "warning": 30,
    "error": 40,
}

_REDACTED_KEYS: frozenset[str] = frozenset({
    "authorization",
    "api_key",
    "openai_api_key",
    "token",
})


# ------------------------------------------------------------------
# Explicit output sink (patchable in tests)
# ------------------------------------------------------------------

def _stderr_print(line: str) -> None:
    sys.stderr.write(line + "\n")
    sys.stderr.flush()

_print: Callable[[str], None] = _stderr_print

_min_level: int = LEVELS["info"]


def configure_logger(*, level: str) -> None:
    """
    Set the minimum level that reaches the sink.

    Unknown level names fall back to info.
    """
    global _min_level  # pylint: disable=global-statement
    _min_level = LEVELS.get(level.strip().lower(), LEVELS["info"])


def _redact(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {
            k: ("***" if str(k).lower() in _REDACTED_KEYS else _redact(v))
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_redact(v) for v in value]
    return value


def log_event(event: Mapping[str, Any], *, level: str = "info") -> None:
    """
    Write a single JSONL event to stderr.

    The caller is responsible for supplying a fully-formed event dict
    (event_type, session state, etc.).

    This function:
    - Adds ts_ms and level when missing
    - Drops events below the configured level
    - Serializes to JSON
    - Writes exactly one line
    - Never raises
    """
    if LEVELS.get(level, LEVELS["info"]) < _min_level:
        return

    payload: dict[str, Any] = {"ts_ms": int(time.time() * 1000), "level": level}
    payload.update(_redact(event))

    try:
        line = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        # Last-resort fallback: logging must never crash the runtime
        fallback: dict[str, Any] = {
            "ts_ms": payload.get("ts_ms"),
            "level": "error",
            "event_type": "LOGGER_SERIALIZATION_ERROR",
            "error": str(e),
            "original_event_repr": repr(payload),
        }
        line = json.dumps(fallback, ensure_ascii=False, separators=(",", ":"))

    _print(line)
