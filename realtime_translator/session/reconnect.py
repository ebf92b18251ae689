"""
Reconnect policy.

Purpose:
- Centralize the retry budget and backoff for connection loss
- Keep SessionClient's state machine free of arithmetic

This module contains NO timers, NO async, NO side effects.
SessionClient owns the attempt counter; the policy only answers questions.
"""
from __future__ import annotations

from dataclasses import dataclass

from realtime_translator.spec import (
    RECONNECT_BASE_DELAY_MS,
    RECONNECT_MAX_ATTEMPTS,
)


@dataclass(frozen=True)
class ReconnectPolicy:
    """
    Linear backoff with a fixed attempt budget.

    Semantics:
    - attempt is 1-based: attempt 1 is the first reconnect after a loss.
    - next_delay_ms(attempt) = base_delay_ms * attempt, optionally capped
      by max_delay_ms. Non-decreasing in attempt.
    - should_retry(attempt) is True while attempt <= max_attempts.
    """

    base_delay_ms: int = RECONNECT_BASE_DELAY_MS
    max_attempts: int = RECONNECT_MAX_ATTEMPTS
    max_delay_ms: int | None = None

    def __post_init__(self) -> None:
        if self.base_delay_ms < 0:
            raise ValueError("base_delay_ms must be >= 0")
        if self.max_attempts < 0:
            raise ValueError("max_attempts must be >= 0")
        if self.max_delay_ms is not None and self.max_delay_ms < 0:
            raise ValueError("max_delay_ms must be >= 0")

    def should_retry(self, attempt: int) -> bool:
        """
        Returns True if reconnect attempt number `attempt` is allowed.
        """
        return 1 <= attempt <= self.max_attempts

    def next_delay_ms(self, attempt: int) -> int:
        """
        Returns the wait before reconnect attempt `attempt`.

        Attempts below 1 are treated as 1 so the result stays
        non-decreasing over the whole integer range callers might pass.
        """
        delay = self.base_delay_ms * max(attempt, 1)
        if self.max_delay_ms is not None:
            delay = min(delay, self.max_delay_ms)
        return delay
