"""Shared test fixtures and configuration."""
from pathlib import Path

import pytest

from studio.core.config import Settings
from studio.services.media import MediaStore
from studio.services.presets import PresetCatalogs

PRESETS_DIR = Path(__file__).resolve().parents[2] / "data" / "presets"


@pytest.fixture(autouse=True)
def set_required_env_vars(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set provider credentials and fast video polling for all tests."""
    monkeypatch.setenv("GEMINI_API_KEY", "test-api-key")
    monkeypatch.setenv("PRESETS_DIR", str(PRESETS_DIR))
    monkeypatch.setenv("VIDEO_POLL_INTERVAL_SECONDS", "0.01")
    monkeypatch.setenv("VIDEO_TIMEOUT_SECONDS", "5")


@pytest.fixture
def catalogs() -> PresetCatalogs:
    return PresetCatalogs.load(PRESETS_DIR)


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def media_store(tmp_path: Path) -> MediaStore:
    return MediaStore(tmp_path / "media")
