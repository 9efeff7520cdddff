"""Runtime settings read from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass


def _parse_int_env(key: str, default: int) -> int:
    """Parse an integer variable; ``"400  # ms"`` reads as 400, junk as ``default``."""
    value = os.getenv(key)
    if not value:
        return default
    value = value.split("#")[0].strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _parse_float_env(key: str, default: float) -> float:
    value = os.getenv(key)
    if not value:
        return default
    value = value.split("#")[0].strip()
    try:
        return float(value)
    except ValueError:
        return default


def _parse_bool_env(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class VoiceSettings:
    language: str = "pt"
    debounce_ms: int = 400
    duplicate_transcript_ms: int = 800
    dedup_cooldown_ms: int = 1500
    confidence_execute: float = 0.85
    confidence_confirm: float = 0.60
    pending_ttl_seconds: float = 15.0
    history_size: int = 20
    session_idle_seconds: float = 3600.0
    enable_cloud_fallback: bool = False
    log_level: str = "INFO"
    log_json: bool = True

    @classmethod
    def from_env(cls) -> "VoiceSettings":
        return cls(
            language=os.getenv("VOICE_LANGUAGE", "pt"),
            debounce_ms=_parse_int_env("VOICE_DEBOUNCE_MS", 400),
            duplicate_transcript_ms=_parse_int_env("VOICE_DUPLICATE_TRANSCRIPT_MS", 800),
            dedup_cooldown_ms=_parse_int_env("VOICE_DEDUP_COOLDOWN_MS", 1500),
            confidence_execute=_parse_float_env("VOICE_CONFIDENCE_EXECUTE", 0.85),
            confidence_confirm=_parse_float_env("VOICE_CONFIDENCE_CONFIRM", 0.60),
            pending_ttl_seconds=_parse_float_env("VOICE_PENDING_TTL_SECONDS", 15.0),
            history_size=_parse_int_env("VOICE_HISTORY_SIZE", 20),
            session_idle_seconds=_parse_float_env("VOICE_SESSION_IDLE_SECONDS", 3600.0),
            enable_cloud_fallback=_parse_bool_env("VOICE_ENABLE_CLOUD_FALLBACK", False),
            log_level=os.getenv("VOICE_LOG_LEVEL", "INFO"),
            log_json=_parse_bool_env("VOICE_LOG_JSON", True),
        )


@dataclass(frozen=True)
class CloudIntentSettings:
    provider: str = "openai"
    api_key: str | None = None
    base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-4o-mini"
    timeout_seconds: int = 10

    @classmethod
    def from_env(cls) -> "CloudIntentSettings":
        return cls(
            provider=os.getenv("CLOUD_INTENT_PROVIDER", "openai").lower(),
            api_key=os.getenv("OPENAI_API_KEY") or None,
            base_url=os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/"),
            model=os.getenv("OPENAI_INTENT_MODEL", "gpt-4o-mini"),
            timeout_seconds=_parse_int_env("CLOUD_INTENT_TIMEOUT_SECONDS", 10),
        )
