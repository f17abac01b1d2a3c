"""
Result formatter for the interactive shell.

Separates presentation logic from the service layer.
"""

from typing import List, Dict, Any
from tabulate import tabulate


def format_select_result(rows: List[Dict[str, Any]]) -> str:
    """
    Format selected rows as an ASCII grid.

    Args:
        rows: List of row dicts

    Returns:
        Formatted string with table and row count
    """
    if not rows:
        return "(0 rows)"

    columns = list(rows[0].keys())
    values = [[row.get(col) for col in columns] for row in rows]

    table = tabulate(values, headers=columns, tablefmt='grid')
    row_count = f"\n({len(rows)} row{'s' if len(rows) != 1 else ''})"

    return table + row_count


def format_schema(table_name: str, schema: List[Dict[str, Any]]) -> str:
    """
    Format column descriptors from PRAGMA table_info.

    Returns a note instead of a grid when the table does not exist.
    """
    if not schema:
        return f"Table '{table_name}' does not exist."

    values = [
        [col['name'], col['type'], 'YES' if col['notnull'] else '', col['dflt_value'], 'YES' if col['pk'] else '']
        for col in schema
    ]
    return tabulate(values, headers=['column', 'type', 'not null', 'default', 'pk'], tablefmt='simple')


def format_modify_result(count: int, operation: str) -> str:
    """
    Format UPDATE/DELETE result.

    Args:
        count: Number of affected rows
        operation: Operation name ("UPDATE", "DELETE")
    """
    return f"{operation} OK, {count} row{'s' if count != 1 else ''} affected"


def format_insert_result(row_id: int) -> str:
    return f"INSERT OK, id {row_id}"


def format_ddl_result(operation: str, object_name: str) -> str:
    """Format DDL and lifecycle results (CREATE TABLE, BACKUP, ...)."""
    return f"{operation} OK: {object_name}"
