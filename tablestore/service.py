"""
Adapter-facing operations.

Each method opens its own CatalogManager (one connection per call, closed
on return), so the JSON API, the RPC registry and the shell all share the
same semantics. Payloads arrive already normalized into canonical
structures; results are plain Python values for the adapter to encode.
"""

from contextlib import contextmanager
from typing import List, Dict, Any, Iterator, Mapping, Optional, Sequence

from loguru import logger

from .config import StoreConfig
from .query.criteria import ColumnDefinition, Condition, Criteria
from .storage.catalog import CatalogManager
from .storage.table import TableEngine
from .utils.exceptions import NotConnectedError


class DatabaseService:
    """The operation set exposed to transport adapters."""

    def __init__(self, config: Optional[StoreConfig] = None):
        self.config = config or StoreConfig.from_env()

    @contextmanager
    def catalog(self, db_name: Optional[str] = None) -> Iterator[CatalogManager]:
        """Yield a catalog (optionally with db_name selected) and close it afterwards."""
        with CatalogManager(self.config, db_name) as catalog:
            yield catalog

    @contextmanager
    def _connected(self, db_name: str) -> Iterator[CatalogManager]:
        with self.catalog(db_name) as catalog:
            if not catalog.is_connected:
                raise NotConnectedError(
                    f"Database '{catalog.db_name}' not found or not connected."
                )
            yield catalog

    @contextmanager
    def _table(self, db_name: str, table_name: str) -> Iterator[TableEngine]:
        with self._connected(db_name) as catalog:
            yield TableEngine(catalog, table_name)

    # ----- Database operations -----

    def create_database(self, db_name: str) -> str:
        with self.catalog() as catalog:
            catalog.create_database(db_name)
            return catalog.db_name

    def delete_database(self, db_name: str) -> None:
        with self.catalog() as catalog:
            catalog.delete_database(db_name)

    def backup_database(self, db_name: str) -> str:
        with self.catalog(db_name) as catalog:
            return str(catalog.backup_database(catalog.db_name))

    def restore_database(self, db_name: str, backup_file_name: str) -> None:
        with self.catalog() as catalog:
            catalog.restore_database(db_name, backup_file_name)

    def list_tables(self, db_name: str) -> Dict[str, List[Dict[str, Any]]]:
        with self._connected(db_name) as catalog:
            return catalog.list_tables()

    def list_databases(self) -> List[str]:
        with self.catalog() as catalog:
            return catalog.list_databases()

    def list_backups(self, db_name: Optional[str] = None) -> List[str]:
        with self.catalog() as catalog:
            return catalog.list_backups(db_name)

    # ----- Table operations -----

    def create_table(self, db_name: str, table_name: str, columns: Sequence[ColumnDefinition]) -> None:
        with self._table(db_name, table_name) as table:
            table.create_table(columns)

    def delete_table(self, db_name: str, table_name: str) -> None:
        with self._table(db_name, table_name) as table:
            table.delete_table()

    def get_table_schema(self, db_name: str, table_name: str) -> List[Dict[str, Any]]:
        with self._table(db_name, table_name) as table:
            return table.get_table_schema()

    def insert_record(self, db_name: str, table_name: str, data: Mapping[str, Any]) -> int:
        with self._table(db_name, table_name) as table:
            return table.insert(data)

    def select_records(self, db_name: str, table_name: str,
                       criteria: Optional[Criteria] = None) -> List[Dict[str, Any]]:
        with self._table(db_name, table_name) as table:
            return table.select(criteria)

    def update_records(self, db_name: str, table_name: str,
                       data: Mapping[str, Any], where: Sequence[Condition]) -> int:
        with self._table(db_name, table_name) as table:
            affected = table.update(data, where)
        logger.info(f"Updated {affected} row(s) in '{db_name}.{table_name}'")
        return affected

    def delete_records(self, db_name: str, table_name: str, where: Sequence[Condition]) -> int:
        with self._table(db_name, table_name) as table:
            affected = table.delete(where)
        logger.info(f"Deleted {affected} row(s) from '{db_name}.{table_name}'")
        return affected
