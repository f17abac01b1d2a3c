"""Runtime configuration for the table store.

Base directories are injected rather than fixed so tests can point the
store at temporary directories. ``StoreConfig.from_env()`` resolves them
from the environment for the web app and the shell.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_DATABASES_DIR = "databases"
DEFAULT_BACKUPS_DIR = "backups"
DEFAULT_EXTENSION = "sqlite"
DEFAULT_LOG_LEVEL = "INFO"


@dataclass
class StoreConfig:
    databases_dir: Path = Path(DEFAULT_DATABASES_DIR)
    backups_dir: Path = Path(DEFAULT_BACKUPS_DIR)
    extension: str = DEFAULT_EXTENSION
    log_level: str = DEFAULT_LOG_LEVEL

    def __post_init__(self):
        self.databases_dir = Path(self.databases_dir)
        self.backups_dir = Path(self.backups_dir)
        self.extension = self.extension.lstrip(".")
        self.log_level = self.log_level.upper()

    @classmethod
    def from_env(cls) -> "StoreConfig":
        return cls(
            databases_dir=Path(os.environ.get("TABLESTORE_DATABASES_DIR", DEFAULT_DATABASES_DIR)),
            backups_dir=Path(os.environ.get("TABLESTORE_BACKUPS_DIR", DEFAULT_BACKUPS_DIR)),
            extension=os.environ.get("TABLESTORE_EXTENSION", DEFAULT_EXTENSION),
            log_level=os.environ.get("TABLESTORE_LOG_LEVEL", DEFAULT_LOG_LEVEL),
        )

    def ensure_dirs(self) -> None:
        self.databases_dir.mkdir(parents=True, exist_ok=True)
        self.backups_dir.mkdir(parents=True, exist_ok=True)

    def database_path(self, name: str) -> Path:
        """Path of the file backing an already sanitized database name."""
        return self.databases_dir / f"{name}.{self.extension}"

    def backup_path(self, file_name: str) -> Path:
        return self.backups_dir / file_name
