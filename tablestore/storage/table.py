"""
Table engine: DDL and DML for one table of the selected database.

The TableEngine is responsible for:
- Validating the table name it is bound to
- Creating and dropping the table
- Running compiled INSERT/SELECT/UPDATE/DELETE statements
- Wrapping backend failures into BackendError

It does NOT:
- Assemble SQL text (see query.compiler)
- Understand transport payload shapes (see query.normalizer)
"""

import sqlite3
from typing import List, Dict, Any, Mapping, Optional, Sequence, TYPE_CHECKING

from loguru import logger

from ..query.compiler import (
    CompiledStatement,
    compile_create_table,
    compile_drop_table,
    compile_insert,
    compile_select,
    compile_update,
    compile_delete,
)
from ..query.criteria import ColumnDefinition, Condition, Criteria
from ..utils.exceptions import AlreadyExistsError, NotFoundError, BackendError
from ..utils.row_utils import rows_to_dicts
from ..utils.validators import validate_table_name, quote_identifier

if TYPE_CHECKING:
    from .catalog import CatalogManager


class TableEngine:
    """
    Operations on a single table, bound to a catalog's live connection.

    Every statement goes through the compiler first, so validation errors
    surface before the backend is touched.
    """

    def __init__(self, catalog: 'CatalogManager', table_name: str):
        """
        Args:
            catalog: Catalog whose connection the engine uses
            table_name: Name of the table

        Raises:
            NotConnectedError: If the catalog has no live connection
            InvalidNameError: If the table name is invalid
        """
        self.catalog = catalog
        self.conn = catalog.require_connection()
        self.name = validate_table_name(table_name)

    def _execute(self, statement: CompiledStatement, action: str, include_sql: bool = False) -> sqlite3.Cursor:
        logger.debug(f"{action} on '{self.name}': {statement.sql} {statement.params}")
        try:
            return self.conn.execute(statement.sql, statement.params)
        except sqlite3.Error as e:
            logger.warning(f"{action} failed on '{self.name}': {e}")
            raise BackendError(
                f"{action} failed: {e}", statement.sql if include_sql else None
            ) from e

    @property
    def exists(self) -> bool:
        return self.catalog.table_exists(self.name)

    # ----- DDL -----

    def create_table(self, columns: Sequence[ColumnDefinition]) -> None:
        """
        Create the table.

        Raises:
            InvalidColumnError: If a column definition is invalid
            AlreadyExistsError: If the table already exists
            BackendError: If SQLite rejects the statement
        """
        statement = compile_create_table(self.name, columns)
        if self.exists:
            raise AlreadyExistsError(
                f"Table '{self.name}' already exists in database '{self.catalog.db_name}'."
            )
        try:
            self.conn.execute(statement.sql)
        except sqlite3.Error as e:
            raise BackendError(f"Failed to create table '{self.name}': {e}") from e
        logger.info(f"Created table '{self.name}' in '{self.catalog.db_name}'")

    def delete_table(self) -> None:
        """
        Drop the table.

        Raises:
            NotFoundError: If the table does not exist
            BackendError: If SQLite rejects the statement
        """
        if not self.exists:
            raise NotFoundError(
                f"Table '{self.name}' does not exist in database '{self.catalog.db_name}'."
            )
        try:
            self.conn.execute(compile_drop_table(self.name).sql)
        except sqlite3.Error as e:
            raise BackendError(f"Failed to delete table '{self.name}': {e}") from e
        logger.info(f"Dropped table '{self.name}' from '{self.catalog.db_name}'")

    def get_table_schema(self) -> List[Dict[str, Any]]:
        """
        Column descriptors in declaration order.

        Returns an empty list for a missing table instead of raising.
        Each descriptor has cid, name, type, notnull, dflt_value and pk.
        """
        if not self.exists:
            return []
        try:
            cursor = self.conn.execute(f"PRAGMA table_info({quote_identifier(self.name)})")
        except sqlite3.Error as e:
            raise BackendError(f"Failed to read schema of '{self.name}': {e}") from e
        return rows_to_dicts(cursor.fetchall())

    # ----- DML -----

    def insert(self, data: Mapping[str, Any]) -> int:
        """
        Insert one row.

        Returns:
            The rowid SQLite generated for the new row
        """
        cursor = self._execute(compile_insert(self.name, data), "Insert")
        return cursor.lastrowid

    def select(self, criteria: Optional[Criteria] = None) -> List[Dict[str, Any]]:
        """
        Select rows matching criteria.

        Rows come back in backend order unless criteria.order_by is set.
        """
        cursor = self._execute(compile_select(self.name, criteria), "Select", include_sql=True)
        return rows_to_dicts(cursor.fetchall())

    def update(self, data: Mapping[str, Any], where: Sequence[Condition]) -> int:
        """Update matching rows and return how many were affected."""
        cursor = self._execute(compile_update(self.name, data, where), "Update")
        return cursor.rowcount

    def delete(self, where: Sequence[Condition]) -> int:
        """Delete matching rows and return how many were affected."""
        cursor = self._execute(compile_delete(self.name, where), "Delete")
        return cursor.rowcount

    def __repr__(self) -> str:
        return f"TableEngine({self.catalog.db_name}.{self.name})"
