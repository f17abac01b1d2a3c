"""
Catalog manager: logical database names, their files, and the connection.

The CatalogManager is the top-level container for one request, providing:
- Mapping from a logical name to ``{databases_dir}/{name}.sqlite``
- Database lifecycle (create, delete, backup, restore)
- The single sqlite3 connection the request works through

Selecting a database whose file does not exist is not an error: the
connection simply stays disconnected and callers must check
``is_connected`` (or call ``require_connection``) before using it.
"""

import shutil
import sqlite3
from datetime import datetime
from enum import Enum
from pathlib import Path, PureWindowsPath
from typing import Dict, List, Any, Optional

from loguru import logger

from ..config import StoreConfig
from ..utils.exceptions import (
    AlreadyExistsError,
    NotFoundError,
    NotConnectedError,
    BackendError,
    StorageIOError,
)
from ..utils.validators import sanitize_database_name

BACKUP_TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


class CatalogManager:
    """
    Owns the databases directory, the backups directory and one connection.

    Responsibilities:
    - Sanitize logical database names
    - Open/close the connection around filesystem operations
    - Enumerate tables of the selected database

    Does NOT:
    - Build SQL for table data (see TableEngine)
    - Share connections across requests
    """

    def __init__(self, config: Optional[StoreConfig] = None, db_name: Optional[str] = None):
        """
        Args:
            config: Directory configuration (defaults to StoreConfig.from_env())
            db_name: Optional database to select right away
        """
        self.config = config or StoreConfig.from_env()
        self.config.ensure_dirs()

        self.db_name: Optional[str] = None
        self.db_path: Optional[Path] = None
        self._conn: Optional[sqlite3.Connection] = None

        if db_name:
            self.select_database(db_name)

    # ----- Connection handle -----

    @property
    def state(self) -> ConnectionState:
        return ConnectionState.CONNECTED if self._conn is not None else ConnectionState.DISCONNECTED

    @property
    def connection(self) -> Optional[sqlite3.Connection]:
        """The live connection, opened lazily if the file has appeared since selection."""
        if self._conn is None and self.db_path is not None and self.db_path.exists():
            self._connect()
        return self._conn

    @property
    def is_connected(self) -> bool:
        return self.connection is not None

    def require_connection(self) -> sqlite3.Connection:
        """
        Return the live connection or fail.

        Raises:
            NotConnectedError: If no database is selected or its file is missing
        """
        conn = self.connection
        if conn is None:
            target = f"'{self.db_name}'" if self.db_name else "(none selected)"
            raise NotConnectedError(
                f"Not connected to database {target}. Select or create a database first."
            )
        return conn

    def select_database(self, name: str) -> None:
        """
        Select a database and try to connect.

        Raises:
            InvalidNameError: If the name is empty after sanitizing
        """
        sanitized = sanitize_database_name(name)
        self.close_connection()
        self.db_name = sanitized
        self.db_path = self.config.database_path(sanitized)
        self._connect()

    def close_connection(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _connect(self) -> None:
        if self.db_path is None or not self.db_path.exists():
            # Deferred failure: stay disconnected until the file exists
            return
        try:
            conn = sqlite3.connect(str(self.db_path), isolation_level=None)
        except sqlite3.Error as e:
            raise BackendError(f"Connection failed: {e}") from e
        conn.row_factory = sqlite3.Row
        self._conn = conn
        logger.debug(f"Connected to database '{self.db_name}' at {self.db_path}")

    def _is_connected_to(self, path: Path) -> bool:
        return self._conn is not None and self.db_path == path

    # ----- Lifecycle -----

    def create_database(self, name: str) -> Path:
        """
        Create an empty database file and select it.

        Raises:
            InvalidNameError: If the name is empty after sanitizing
            AlreadyExistsError: If the file already exists
            StorageIOError: If the file cannot be created
        """
        sanitized = sanitize_database_name(name)
        path = self.config.database_path(sanitized)
        if path.exists():
            raise AlreadyExistsError(f"Database '{sanitized}' already exists.")

        try:
            path.touch(exist_ok=False)
        except OSError as e:
            raise StorageIOError(f"Failed to create database '{sanitized}': {e}") from e

        logger.info(f"Created database '{sanitized}' at {path}")
        self.select_database(sanitized)
        return path

    def delete_database(self, name: str) -> None:
        """
        Remove a database file, closing the connection first if it targets it.

        Raises:
            NotFoundError: If the file does not exist
            StorageIOError: If removal fails
        """
        sanitized = sanitize_database_name(name)
        path = self.config.database_path(sanitized)
        if not path.exists():
            raise NotFoundError(f"Database '{sanitized}' does not exist.")

        if self.db_path == path:
            self.close_connection()
            self.db_name = None
            self.db_path = None

        try:
            path.unlink()
        except OSError as e:
            raise StorageIOError(
                f"Failed to delete database '{sanitized}'. Check permissions. ({e})"
            ) from e
        logger.info(f"Deleted database '{sanitized}'")

    def backup_database(self, name: str) -> Path:
        """
        Copy a database file to ``{name}_backup_{YYYYMMDDHHMMSS}.sqlite``.

        Two backups within the same second share a file name; the second
        overwrites the first.

        Returns:
            Path of the backup artifact

        Raises:
            NotFoundError: If the source database does not exist
            StorageIOError: If the copy fails
        """
        sanitized = sanitize_database_name(name)
        source = self.config.database_path(sanitized)
        if not source.exists():
            raise NotFoundError(f"Database '{sanitized}' does not exist for backup.")

        timestamp = datetime.now().strftime(BACKUP_TIMESTAMP_FORMAT)
        target = self.config.backup_path(f"{sanitized}_backup_{timestamp}.{self.config.extension}")

        was_connected = self._is_connected_to(source)
        if was_connected:
            self.close_connection()

        try:
            shutil.copyfile(source, target)
        except OSError as e:
            raise StorageIOError(f"Failed to backup database '{sanitized}': {e}") from e
        finally:
            if was_connected:
                self.select_database(sanitized)

        logger.info(f"Backed up database '{sanitized}' to {target}")
        return target

    def restore_database(self, name: str, backup_file_name: str) -> None:
        """
        Overwrite a database file with a backup artifact and select it.

        Only the base name of ``backup_file_name`` is used; the artifact is
        always looked up inside the backups directory.

        Raises:
            NotFoundError: If the artifact does not exist
            StorageIOError: If the copy fails
        """
        sanitized = sanitize_database_name(name)
        artifact_name = PureWindowsPath(str(backup_file_name or '')).name
        artifact = self.config.backup_path(artifact_name)
        target = self.config.database_path(sanitized)

        if not artifact_name or not artifact.is_file():
            raise NotFoundError(f"Backup file '{artifact_name}' does not exist.")

        if self._is_connected_to(target):
            self.close_connection()

        try:
            shutil.copyfile(artifact, target)
        except OSError as e:
            if target.exists():
                self.select_database(sanitized)
            raise StorageIOError(
                f"Failed to restore database '{sanitized}' from '{artifact_name}': {e}"
            ) from e

        logger.info(f"Restored database '{sanitized}' from {artifact_name}")
        self.select_database(sanitized)

    # ----- Introspection -----

    def list_tables(self) -> Dict[str, List[Dict[str, Any]]]:
        """
        Map every user table to its schema.

        Raises:
            NotConnectedError: If there is no live connection
        """
        from .table import TableEngine

        conn = self.require_connection()
        try:
            names = [
                row["name"] for row in conn.execute(
                    "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
                )
            ]
        except sqlite3.Error as e:
            raise BackendError(f"Failed to list tables: {e}") from e

        return {name: TableEngine(self, name).get_table_schema() for name in names}

    def table_exists(self, table_name: str) -> bool:
        """Check if a table exists. Never raises when disconnected."""
        conn = self.connection
        if conn is None:
            return False
        try:
            row = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name = ?", (table_name,)
            ).fetchone()
        except sqlite3.Error as e:
            raise BackendError(f"Failed to inspect database '{self.db_name}': {e}") from e
        return row is not None

    def list_databases(self) -> List[str]:
        """Logical names of every database file, sorted."""
        suffix = f".{self.config.extension}"
        return sorted(
            path.name[:-len(suffix)]
            for path in self.config.databases_dir.iterdir()
            if path.is_file() and path.name.endswith(suffix)
        )

    def list_backups(self, name: Optional[str] = None) -> List[str]:
        """Backup artifact file names, optionally only those of one database."""
        prefix = f"{sanitize_database_name(name)}_backup_" if name else ""
        return sorted(
            path.name
            for path in self.config.backups_dir.iterdir()
            if path.is_file() and path.name.startswith(prefix)
        )

    # ----- Context manager -----

    def __enter__(self) -> 'CatalogManager':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close_connection()

    def __repr__(self) -> str:
        return f"CatalogManager({self.db_name}, {self.state.value})"
