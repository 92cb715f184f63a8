from datetime import datetime, timezone

import pytest

from nurturetrack.internal_core.config import AppConfig


def make_config(tmp_dir: str, **overrides) -> AppConfig:
    values = {
        "OPENAI_API_KEY": "sk-test",
        "OPENAI_BASE_URL": "https://api.openai.test/v1",
        "NURTURE_TRANSCRIPTION_MODEL": "whisper-1",
        "NURTURE_EXTRACTION_MODEL": "gpt-4-turbo",
        "NURTURE_EXTRACTION_TEMPERATURE": 0.0,
        "NURTURE_REQUEST_TIMEOUT_SECONDS": 60.0,
        "NURTURE_TMP_DIR": tmp_dir,
        "NURTURE_MAX_UPLOAD_BYTES": 1024 * 1024,
        "NURTURE_TIMEZONE": "America/Chicago",
        "NURTURE_FALLBACK_TIMEZONE": "America/Chicago",
        "NURTURE_CORS_ALLOW_ORIGINS": ("*",),
        "NURTURE_HOST": "127.0.0.1",
        "NURTURE_PORT": 3001,
        "NURTURE_LOG_LEVEL": "DEBUG",
    }
    values.update(overrides)
    return AppConfig(**values)


@pytest.fixture
def staging_dir(tmp_path):
    path = tmp_path / "staging"
    path.mkdir()
    return path


@pytest.fixture
def app_config(staging_dir) -> AppConfig:
    return make_config(str(staging_dir))


@pytest.fixture
def five_pm_clock():
    # 22:00 UTC on 2025-04-17 is 5:00 PM CDT.
    return lambda: datetime(2025, 4, 17, 22, 0, tzinfo=timezone.utc)
