"""Where the contact database and the HTTP cache live on disk."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "prospectdb"
DATABASE_FILENAME: Final[str] = "prospectdb.db"
HTTP_CACHE_FILENAME: Final[str] = "http_cache.db"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Application data directory; created on first use of a file inside it."""

    data_dir: Path

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def file(self, name: str) -> Path:
        directory = self.resolve_data_dir()
        directory.mkdir(parents=True, exist_ok=True)
        return directory / name

    @property
    def database_path(self) -> Path:
        return self.file(DATABASE_FILENAME)

    @property
    def http_cache_path(self) -> Path:
        return self.file(HTTP_CACHE_FILENAME)


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def _platform_data_home() -> Path:
    if os.name == "nt":
        local = os.getenv("LOCALAPPDATA")
        return Path(local) if local else Path.home() / "AppData" / "Local"
    xdg = os.getenv("XDG_DATA_HOME")
    return Path(xdg) if xdg else Path.home() / ".local" / "share"


def get_storage_config() -> StorageConfig:
    override = os.getenv("PROSPECTDB_DATA_DIR")
    return StorageConfig(data_dir=Path(override) if override else _platform_data_home() / APP_DIR_NAME)


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """``DATABASE_URI`` wins; otherwise a SQLite file in the data directory."""

    uri = os.getenv("DATABASE_URI")
    if uri:
        return DatabaseConfig(uri=uri)
    path = (storage or get_storage_config()).database_path
    return DatabaseConfig(uri=f"sqlite+pysqlite:///{path}")


def get_http_cache_path() -> Path:
    return get_storage_config().http_cache_path
