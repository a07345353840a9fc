"""Configuration from environment: snapshot location, logging."""

import os
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

SNAPSHOT_FILENAME = "basegamefileidentificationservice.json"


def _data_dir() -> Path:
    """Platform-specific data directory (per user, no admin)."""
    if os.name == "nt":
        base = os.environ.get("APPDATA", os.path.expanduser("~"))
        return Path(base) / "BasegameId"
    if os.environ.get("XDG_DATA_HOME"):
        return Path(os.environ["XDG_DATA_HOME"]) / "basegameid"
    return Path.home() / ".local" / "share" / "basegameid"


class Settings(BaseSettings):
    """Settings from env (BASEGAMEID_*)."""

    model_config = SettingsConfigDict(env_prefix="BASEGAMEID_", extra="ignore")

    # Snapshot (empty data_dir = platform default)
    data_dir: Optional[Path] = None
    snapshot_filename: str = SNAPSHOT_FILENAME
    # Indented JSON is easier to diff; compact is smaller
    pretty_snapshot: bool = False

    # Logging (empty log_file = stderr only; level DEBUG|INFO|WARNING|ERROR)
    log_level: str = "INFO"
    log_file: str = ""


def get_settings() -> Settings:
    """Return application settings."""
    return Settings()


def get_snapshot_path(settings: Optional[Settings] = None) -> Path:
    """Path to the persisted identification database. Parent directory is created on commit, not here."""
    settings = settings or get_settings()
    base = settings.data_dir or _data_dir()
    return Path(base) / settings.snapshot_filename
