from datetime import timezone
from pathlib import Path

import pytest

from config import AppSettings


def test_settings_from_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("KHATA_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("KHATA_STORAGE_BACKEND", "sqlite")

    settings = AppSettings()

    assert settings.storage_backend == "sqlite"
    assert settings.snapshot_path == tmp_path / "khata-data.json"
    assert settings.db_path == tmp_path / "khata.db"
    assert settings.report_tz is timezone.utc


def test_unknown_backend_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KHATA_STORAGE_BACKEND", "redis")

    with pytest.raises(ValueError):
        AppSettings()
