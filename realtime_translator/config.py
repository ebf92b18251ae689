"""
Application configuration.

Responsibilities:
- Read environment variables
- Provide a typed, immutable config object

Non-responsibilities:
- No session logic
- No protocol constants (see spec.py)
- No runtime mutation
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from realtime_translator.spec import (
    BACKPRESSURE_POLICY_DEFAULT,
    BATCH_MODEL_DEFAULT,
    CONNECT_TIMEOUT_S,
    PENDING_QUEUE_MAX_FRAMES,
    REALTIME_MODEL_DEFAULT,
    REALTIME_URL_TEMPLATE,
    RECONNECT_BASE_DELAY_MS,
    RECONNECT_MAX_ATTEMPTS,
    RESPONSE_TIMEOUT_S,
    SESSION_INSTRUCTIONS_DEFAULT,
)


class ConfigError(ValueError):
    """Raised when an environment value cannot be interpreted."""


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable application configuration.

    Constructed once at process startup and passed down to the CLI,
    pipelines and SessionClient factory.
    """

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    openai_api_key: str | None

    # ------------------------------------------------------------------
    # Realtime service
    # ------------------------------------------------------------------

    realtime_model: str = REALTIME_MODEL_DEFAULT
    realtime_url: str | None = None
    instructions: str = SESSION_INSTRUCTIONS_DEFAULT

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    connect_timeout_s: float = CONNECT_TIMEOUT_S
    reconnect_base_delay_ms: int = RECONNECT_BASE_DELAY_MS
    reconnect_max_attempts: int = RECONNECT_MAX_ATTEMPTS

    # ------------------------------------------------------------------
    # Backpressure
    # ------------------------------------------------------------------

    pending_queue_max_frames: int = PENDING_QUEUE_MAX_FRAMES
    backpressure_policy: str = BACKPRESSURE_POLICY_DEFAULT

    # ------------------------------------------------------------------
    # File / batch flows
    # ------------------------------------------------------------------

    response_timeout_s: float = RESPONSE_TIMEOUT_S
    batch_model: str = BATCH_MODEL_DEFAULT

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    log_level: str = "INFO"

    @property
    def resolved_realtime_url(self) -> str:
        """Explicit URL override wins over the model-derived default."""
        if self.realtime_url:
            return self.realtime_url
        return REALTIME_URL_TEMPLATE.format(model=self.realtime_model)

    def require_api_key(self) -> str:
        """
        Return the API key or raise.

        Raises:
            ConfigError if OPENAI_API_KEY is unset or empty.
        """
        if not self.openai_api_key:
            raise ConfigError("OPENAI_API_KEY environment variable not set")
        return self.openai_api_key

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def load_from_env() -> AppConfig:
        """
        Load configuration from environment variables.

        Raises:
            ConfigError if a numeric variable is not a number.
        """
        return AppConfig(
            openai_api_key=os.environ.get("OPENAI_API_KEY"),
            realtime_model=os.environ.get("REALTIME_MODEL", REALTIME_MODEL_DEFAULT),
            realtime_url=os.environ.get("REALTIME_URL") or None,
            instructions=os.environ.get(
                "TRANSLATION_INSTRUCTIONS", SESSION_INSTRUCTIONS_DEFAULT
            ),
            connect_timeout_s=_env_float("CONNECT_TIMEOUT_S", CONNECT_TIMEOUT_S),
            reconnect_base_delay_ms=_env_int(
                "RECONNECT_BASE_DELAY_MS", RECONNECT_BASE_DELAY_MS
            ),
            reconnect_max_attempts=_env_int(
                "RECONNECT_MAX_ATTEMPTS", RECONNECT_MAX_ATTEMPTS
            ),
            pending_queue_max_frames=_env_int(
                "PENDING_QUEUE_MAX_FRAMES", PENDING_QUEUE_MAX_FRAMES
            ),
            backpressure_policy=os.environ.get(
                "BACKPRESSURE_POLICY", BACKPRESSURE_POLICY_DEFAULT
            ),
            response_timeout_s=_env_float("RESPONSE_TIMEOUT_S", RESPONSE_TIMEOUT_S),
            batch_model=os.environ.get("BATCH_MODEL", BATCH_MODEL_DEFAULT),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
        )


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e
