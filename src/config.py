from __future__ import annotations

from datetime import timezone, tzinfo
from functools import cache
from pathlib import Path
from typing import Literal
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ARTIFACTS_DIR = PROJECT_ROOT / "artifacts"


class AppSettings(BaseSettings):
    data_dir: Path = ARTIFACTS_DIR
    storage_backend: Literal["json", "sqlite"] = "json"
    snapshot_file: str = "khata-data.json"
    db_file: str = "khata.db"
    log_level: str = "INFO"
    report_timezone: str = "UTC"

    model_config = SettingsConfigDict(env_prefix="KHATA_", env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @property
    def snapshot_path(self) -> Path:
        return self.data_dir / self.snapshot_file

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_file

    @property
    def report_tz(self) -> tzinfo:
        if self.report_timezone.upper() == "UTC":
            return timezone.utc
        return ZoneInfo(self.report_timezone)


@cache
def config() -> AppSettings:
    return AppSettings()
