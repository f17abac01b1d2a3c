"""
Row conversion helpers shared by the table engine and the adapters.
"""

import sqlite3
from typing import Dict, Any, List, Iterable


def row_to_dict(row: sqlite3.Row) -> Dict[str, Any]:
    """
    Convert a sqlite3.Row into a plain dict, preserving column order.

    Example:
        row_to_dict(conn.execute("SELECT 1 AS id").fetchone()) -> {'id': 1}
    """
    return {key: row[key] for key in row.keys()}


def rows_to_dicts(rows: Iterable[sqlite3.Row]) -> List[Dict[str, Any]]:
    return [row_to_dict(row) for row in rows]


def decode_blobs(row: Dict[str, Any]) -> Dict[str, Any]:
    """
    Make a row JSON friendly by decoding BLOB values.

    Bytes that are valid UTF-8 become text; anything else becomes a hex
    string. Used by the transports, never by the engine itself.
    """
    decoded = {}
    for key, value in row.items():
        if isinstance(value, (bytes, bytearray, memoryview)):
            raw = bytes(value)
            try:
                value = raw.decode('utf-8')
            except UnicodeDecodeError:
                value = raw.hex()
        decoded[key] = value
    return decoded
