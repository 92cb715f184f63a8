from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path


class ConfigError(RuntimeError):
    """Raised when required process configuration is missing or invalid."""


def _getenv_str(name: str, default: str) -> str:
    value = os.getenv(name)
    return default if value is None else value


def _getenv_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from exc


def _getenv_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {value!r}") from exc


def _getenv_list(name: str, default: list[str]) -> list[str]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class AppConfig:
    OPENAI_API_KEY: str
    OPENAI_BASE_URL: str
    NURTURE_TRANSCRIPTION_MODEL: str
    NURTURE_EXTRACTION_MODEL: str
    NURTURE_EXTRACTION_TEMPERATURE: float
    NURTURE_REQUEST_TIMEOUT_SECONDS: float
    NURTURE_TMP_DIR: str
    NURTURE_MAX_UPLOAD_BYTES: int
    NURTURE_TIMEZONE: str
    NURTURE_FALLBACK_TIMEZONE: str
    NURTURE_CORS_ALLOW_ORIGINS: tuple[str, ...]
    NURTURE_HOST: str
    NURTURE_PORT: int
    NURTURE_LOG_LEVEL: str

    def tmp_dir_path(self) -> Path:
        path = Path(self.NURTURE_TMP_DIR).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def transcription_url(self) -> str:
        return self.OPENAI_BASE_URL.rstrip("/") + "/audio/transcriptions"


def load_config() -> AppConfig:
    """Build the process configuration from the environment.

    ``OPENAI_API_KEY`` is the single credential shared by the transcription
    and extraction services; without it the process must not start.
    """
    api_key = _getenv_str("OPENAI_API_KEY", "").strip()
    if not api_key:
        raise ConfigError("OPENAI_API_KEY environment variable is not set.")

    timeout = _getenv_float("NURTURE_REQUEST_TIMEOUT_SECONDS", 60.0)
    if timeout <= 0:
        raise ConfigError("NURTURE_REQUEST_TIMEOUT_SECONDS must be positive.")

    return AppConfig(
        OPENAI_API_KEY=api_key,
        OPENAI_BASE_URL=_getenv_str("OPENAI_BASE_URL", "https://api.openai.com/v1"),
        NURTURE_TRANSCRIPTION_MODEL=_getenv_str("NURTURE_TRANSCRIPTION_MODEL", "whisper-1"),
        NURTURE_EXTRACTION_MODEL=_getenv_str("NURTURE_EXTRACTION_MODEL", "gpt-4-turbo"),
        NURTURE_EXTRACTION_TEMPERATURE=_getenv_float("NURTURE_EXTRACTION_TEMPERATURE", 0.0),
        NURTURE_REQUEST_TIMEOUT_SECONDS=timeout,
        NURTURE_TMP_DIR=_getenv_str("NURTURE_TMP_DIR", tempfile.gettempdir()),
        NURTURE_MAX_UPLOAD_BYTES=_getenv_int("NURTURE_MAX_UPLOAD_BYTES", 25 * 1024 * 1024),
        NURTURE_TIMEZONE=_getenv_str("NURTURE_TIMEZONE", "").strip(),
        NURTURE_FALLBACK_TIMEZONE=_getenv_str("NURTURE_FALLBACK_TIMEZONE", "America/Chicago"),
        NURTURE_CORS_ALLOW_ORIGINS=tuple(_getenv_list("NURTURE_CORS_ALLOW_ORIGINS", ["*"])),
        NURTURE_HOST=_getenv_str("NURTURE_HOST", "0.0.0.0"),
        NURTURE_PORT=_getenv_int("NURTURE_PORT", 3001),
        NURTURE_LOG_LEVEL=_getenv_str("NURTURE_LOG_LEVEL", "INFO"),
    )
