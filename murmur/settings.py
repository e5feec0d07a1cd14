"""Pipeline settings resolved from the environment."""

from __future__ import annotations

import logging
import os
import re
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field

LOGGER = logging.getLogger("murmur.settings")

DEFAULT_MAX_DURATION_SEC = 30.0
UNBOUNDED_DURATIONS = {"infinite", "0"}

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_UNIT_SECONDS = {"h": 3600.0, "m": 60.0, "s": 1.0, "ms": 0.001}


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


def _env_opt_int(name: str) -> int | None:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return int(value)


class PipelineSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    app_name: str = Field(default="Murmur")
    log_level: str = Field(default=os.getenv("MURMUR_LOG_LEVEL", "info"))

    sample_rate: int = Field(default=int(os.getenv("MURMUR_SAMPLE_RATE", "16000")))
    channels: int = Field(default=int(os.getenv("MURMUR_CHANNELS", "1")))
    block_size: int = Field(default=int(os.getenv("MURMUR_BLOCK_SIZE", "1024")))
    chunk_queue_size: int = Field(default=int(os.getenv("MURMUR_CHUNK_QUEUE_SIZE", "100")))
    input_device: int | None = Field(default=_env_opt_int("MURMUR_INPUT_DEVICE"))

    max_duration: str = Field(default=os.getenv("MURMUR_MAX_DURATION", "30s"))
    min_duration_sec: float = Field(default=float(os.getenv("MURMUR_MIN_DURATION_SEC", "2.0")))
    min_word_count: int = Field(default=int(os.getenv("MURMUR_MIN_WORD_COUNT", "4")))

    whisper_model: str = Field(default=os.getenv("MURMUR_WHISPER_MODEL", "small"))
    whisper_device: str = Field(default=os.getenv("MURMUR_WHISPER_DEVICE", "cpu"))
    whisper_compute_type: str = Field(default=os.getenv("MURMUR_WHISPER_COMPUTE_TYPE", "int8"))
    whisper_language: str | None = Field(default=os.getenv("MURMUR_WHISPER_LANGUAGE"))
    whisper_mock_transcriber: bool = Field(default=_env_bool("MURMUR_WHISPER_MOCK"))

    cleanup_enabled: bool = Field(default=_env_bool("MURMUR_CLEANUP_ENABLED", "true"))
    cleanup_base_url: str | None = Field(default=os.getenv("MURMUR_CLEANUP_BASE_URL"))
    cleanup_api_key: str | None = Field(default=os.getenv("OPENAI_API_KEY"))
    cleanup_model: str = Field(default=os.getenv("MURMUR_CLEANUP_MODEL", "gpt-4o-mini"))
    cleanup_temperature: float = Field(default=float(os.getenv("MURMUR_CLEANUP_TEMPERATURE", "0.1")))
    cleanup_top_p: float = Field(default=float(os.getenv("MURMUR_CLEANUP_TOP_P", "0.9")))
    cleanup_max_retries: int = Field(default=int(os.getenv("MURMUR_CLEANUP_MAX_RETRIES", "0")))

    context_enabled: bool = Field(default=_env_bool("MURMUR_CONTEXT_ENABLED", "true"))
    clipboard_enabled: bool = Field(default=_env_bool("MURMUR_CLIPBOARD_ENABLED", "true"))
    injection_enabled: bool = Field(default=_env_bool("MURMUR_INJECTION_ENABLED", "true"))
    injection_delay_sec: float = Field(default=float(os.getenv("MURMUR_INJECTION_DELAY_SEC", "0.1")))

    metrics_port: int | None = Field(default=_env_opt_int("MURMUR_METRICS_PORT"))

    def max_samples(self) -> int | None:
        """Sample ceiling for one utterance, ``None`` when unbounded."""
        return max_samples_for(self.max_duration, self.sample_rate)


def parse_duration(value: str) -> float:
    """Parse ``"30s"``, ``"1m30s"``, ``"500ms"`` or a bare number of seconds."""
    text = value.strip().lower()
    if not text:
        raise ValueError("empty duration")
    try:
        return float(text)
    except ValueError:
        pass
    total = 0.0
    pos = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            raise ValueError(f"invalid duration: {value!r}")
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()
    if pos != len(text):
        raise ValueError(f"invalid duration: {value!r}")
    return total


def max_samples_for(max_duration: str | None, sample_rate: int) -> int | None:
    raw = (max_duration or "").strip()
    if raw.lower() in UNBOUNDED_DURATIONS:
        LOGGER.info("Max recording duration set to infinite")
        return None
    seconds = DEFAULT_MAX_DURATION_SEC
    if raw:
        try:
            seconds = parse_duration(raw)
        except ValueError as exc:
            LOGGER.warning("Invalid max_duration %r, defaulting to 30s: %s", raw, exc)
            seconds = DEFAULT_MAX_DURATION_SEC
        if seconds <= 0:
            LOGGER.info("Max recording duration set to infinite")
            return None
    max_samples = int(seconds * sample_rate)
    LOGGER.info("Max recording duration set to %.1fs (%d samples)", seconds, max_samples)
    return max_samples


@lru_cache()
def get_settings() -> PipelineSettings:
    return PipelineSettings()
