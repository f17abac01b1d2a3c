"""
Reusable sanitizers and validators used across the table store.

Every identifier that ends up inside an SQL statement passes through one
of these functions first. Values never do: they are always bound as
parameters by the compiler.
"""

import re
from typing import Any
from .exceptions import InvalidNameError, InvalidColumnError


DATABASE_NAME_STRIP = re.compile(r'[^A-Za-z0-9_\-]')
IDENTIFIER_STRIP = re.compile(r'[^A-Za-z0-9_]')
TABLE_NAME_PATTERN = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')
CONSTRAINTS_PATTERN = re.compile(r'^[A-Za-z0-9_ ]+$')
COLUMN_TYPE_PATTERN = re.compile(r'^[A-Za-z0-9_ (),]+$')

# Scalars accepted for every operator except IN / NOT IN
SCALAR_TYPES = (str, int, float, bytes, type(None))


def sanitize_database_name(name: Any) -> str:
    """
    Reduce a logical database name to ``[A-Za-z0-9_-]``.

    Args:
        name: Raw name supplied by the client

    Returns:
        The sanitized name

    Raises:
        InvalidNameError: If the name is empty before or after stripping
    """
    raw = '' if name is None else str(name)
    if not raw.strip():
        raise InvalidNameError(raw, "Database name cannot be empty")

    sanitized = DATABASE_NAME_STRIP.sub('', raw)
    if not sanitized:
        raise InvalidNameError(raw, "Database name contains only invalid characters")

    return sanitized


def validate_table_name(name: Any) -> str:
    """
    Validates a table name. Table names are checked, not rewritten.

    Rules:
    - Must start with a letter or underscore
    - Can contain letters, numbers, and underscores

    Raises:
        InvalidNameError: If the table name does not match the pattern
    """
    if not isinstance(name, str) or not TABLE_NAME_PATTERN.match(name):
        raise InvalidNameError(
            '' if name is None else str(name),
            "Table names must start with a letter or underscore, "
            "followed by letters, numbers, or underscores"
        )
    return name


def sanitize_field(name: Any) -> str:
    """
    Strip a field reference down to ``[A-Za-z0-9_]``.

    Returns an empty string when nothing usable is left; callers decide
    whether that means "skip" (WHERE, ORDER BY) or "fail" (columns).
    """
    if name is None:
        return ''
    return IDENTIFIER_STRIP.sub('', str(name))


def sanitize_column_name(name: Any) -> str:
    """
    Sanitize a column name so it matches ``^[A-Za-z_][A-Za-z0-9_]*$``.

    Raises:
        InvalidColumnError: If nothing usable is left after sanitizing
    """
    sanitized = sanitize_field(name).lstrip('0123456789')
    if not sanitized:
        raise InvalidColumnError(f"Invalid column name provided: '{name}'", str(name))
    return sanitized


def validate_column_type(column_name: str, column_type: Any) -> str:
    """Uppercase a backend type string after checking its characters."""
    type_str = str(column_type).strip()
    if not type_str or not COLUMN_TYPE_PATTERN.match(type_str):
        raise InvalidColumnError(
            f"Invalid characters in type for column '{column_name}'", column_name
        )
    return type_str.upper()


def validate_constraints(column_name: str, constraints: Any) -> str:
    """
    Check a constraints string against the allow-list.

    Returns:
        The constraints string, or '' when none were given

    Raises:
        InvalidColumnError: If the string has characters outside ``[A-Za-z0-9_ ]``
    """
    if constraints is None:
        return ''
    text = str(constraints).strip()
    if not text:
        return ''
    if not CONSTRAINTS_PATTERN.match(text):
        raise InvalidColumnError(
            f"Invalid characters in constraints for column '{column_name}'", column_name
        )
    return text


def is_scalar(value: Any) -> bool:
    return isinstance(value, SCALAR_TYPES)


def coerce_int(value: Any) -> int:
    """
    Coerce LIMIT/OFFSET style input to a non-negative integer.

    Non-numeric input silently becomes 0.
    """
    if isinstance(value, bool):
        return int(value)
    try:
        number = int(value)
    except (TypeError, ValueError):
        try:
            number = int(float(value))
        except (TypeError, ValueError, OverflowError):
            return 0
    return max(number, 0)


def quote_identifier(name: str) -> str:
    """Backtick-quote an already sanitized identifier (unknown names fail as "no such column")."""
    return f'`{name}`'
