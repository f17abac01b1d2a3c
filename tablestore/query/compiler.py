"""
Statement compiler.

Turns canonical criteria into parameterized SQL. This is the single place
where SQL text is assembled; it is reused by SELECT, UPDATE and DELETE so
the WHERE rules cannot drift between them.

Rules:
- Identifiers are sanitized by utils.validators and backtick-quoted.
- Values are never interpolated; each one gets a named bound parameter.
- Conditions are ANDed in input order. There is no OR and no grouping.
- Validation errors are raised here, before anything reaches the backend.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Any, Mapping, Optional, Sequence, Tuple

from .criteria import ColumnDefinition, Condition, ComparisonOp, Criteria
from ..utils.exceptions import (
    InvalidColumnError,
    InvalidValueError,
    EmptyInputError,
    MissingWhereError,
)
from ..utils.validators import (
    sanitize_field,
    sanitize_column_name,
    validate_column_type,
    validate_constraints,
    is_scalar,
    coerce_int,
    quote_identifier,
)


@dataclass
class CompiledStatement:
    """SQL text plus the named parameters it binds."""
    sql: str
    params: Dict[str, Any] = field(default_factory=dict)


# ----- WHERE -----

def compile_where(conditions: Sequence[Condition]) -> Tuple[List[str], Dict[str, Any]]:
    """
    Compile conditions into predicates and parameters.

    Conditions whose field sanitizes to nothing are dropped silently, so
    the returned predicate list can be shorter than the input.

    Args:
        conditions: Conditions in input order

    Returns:
        (predicates, params) ready to be joined with AND

    Raises:
        InvalidOperatorError: If an operator is not whitelisted
        InvalidValueError: If a value does not fit its operator
    """
    predicates = []
    params = {}

    for index, condition in enumerate(conditions or []):
        column = sanitize_field(condition.field)
        if not column:
            continue

        op = ComparisonOp.from_string(condition.operator)
        placeholder = f"where_{index}_{column}"

        if op.takes_list:
            values = condition.value
            if not isinstance(values, (list, tuple)) or not values:
                raise InvalidValueError(
                    f"Value for {op.value} operator must be a non-empty list"
                )
            names = []
            for position, value in enumerate(values):
                if not is_scalar(value):
                    raise InvalidValueError(
                        f"List elements for {op.value} on '{column}' must be scalars"
                    )
                name = f"{placeholder}_{position}"
                names.append(f":{name}")
                params[name] = value
            predicates.append(f"{quote_identifier(column)} {op.value} ({', '.join(names)})")
        else:
            if not is_scalar(condition.value):
                raise InvalidValueError(
                    f"Value for {op.value} operator on '{column}' must be a scalar"
                )
            predicates.append(f"{quote_identifier(column)} {op.value} :{placeholder}")
            params[placeholder] = condition.value

    return predicates, params


def _require_where(conditions: Sequence[Condition], operation: str) -> Tuple[str, Dict[str, Any]]:
    """Compile a mandatory WHERE for mutating statements."""
    if not conditions:
        raise MissingWhereError(
            f"WHERE clause is mandatory for {operation} operation "
            f"to prevent accidental full table {operation}"
        )
    predicates, params = compile_where(conditions)
    if not predicates:
        raise MissingWhereError(f"WHERE clause resolved to empty, {operation} aborted")
    return " WHERE " + " AND ".join(predicates), params


# ----- DDL -----

def compile_create_table(table_name: str, columns: Sequence[ColumnDefinition]) -> CompiledStatement:
    """
    Build CREATE TABLE from column definitions.

    Raises:
        InvalidColumnError: If a column lacks name or type, or carries
            characters outside the allow-lists
    """
    if not columns:
        raise InvalidColumnError(f"No column definitions provided for table '{table_name}'")

    parts = []
    for column in columns:
        if not column.name or not column.type:
            raise InvalidColumnError("Column definition must include 'name' and 'type'")
        name = sanitize_column_name(column.name)
        column_type = validate_column_type(name, column.type)
        constraints = validate_constraints(name, column.constraints)

        definition = f"{quote_identifier(name)} {column_type}"
        if constraints:
            definition += f" {constraints}"
        parts.append(definition)

    return CompiledStatement(f"CREATE TABLE {quote_identifier(table_name)} ({', '.join(parts)})")


def compile_drop_table(table_name: str) -> CompiledStatement:
    return CompiledStatement(f"DROP TABLE {quote_identifier(table_name)}")


# ----- DML -----

def compile_insert(table_name: str, data: Mapping[str, Any]) -> CompiledStatement:
    """
    Build a parameterized INSERT, one bound parameter per value.

    Raises:
        EmptyInputError: If data is empty
        InvalidColumnError: If a key sanitizes to nothing
    """
    if not data:
        raise EmptyInputError("No data provided for insert operation")

    columns = []
    placeholders = []
    params = {}
    for index, (key, value) in enumerate(data.items()):
        column = sanitize_field(key)
        if not column:
            raise InvalidColumnError(f"Invalid column name provided: '{key}'", str(key))
        name = f"val_{column}_{index}"
        columns.append(quote_identifier(column))
        placeholders.append(f":{name}")
        params[name] = value

    sql = (
        f"INSERT INTO {quote_identifier(table_name)} ({', '.join(columns)}) "
        f"VALUES ({', '.join(placeholders)})"
    )
    return CompiledStatement(sql, params)


def compile_select(table_name: str, criteria: Optional[Criteria] = None) -> CompiledStatement:
    """
    Build a parameterized SELECT.

    - Field list defaults to '*'; named fields are sanitized one by one.
    - An empty WHERE means no filter.
    - ORDER BY entries with empty fields are dropped.
    - OFFSET is only emitted together with LIMIT.
    """
    criteria = criteria or Criteria()

    fields = []
    for name in criteria.fields or []:
        if str(name).strip() == '*':
            fields = ['*']
            break
        column = sanitize_field(name)
        if column:
            fields.append(quote_identifier(column))
    select_clause = ', '.join(fields) if fields else '*'

    sql = f"SELECT {select_clause} FROM {quote_identifier(table_name)}"

    predicates, params = compile_where(criteria.where)
    if predicates:
        sql += " WHERE " + " AND ".join(predicates)

    order_clauses = []
    for order in criteria.order_by:
        column = sanitize_field(order.field)
        if column:
            order_clauses.append(f"{quote_identifier(column)} {order.direction.value}")
    if order_clauses:
        sql += " ORDER BY " + ", ".join(order_clauses)

    if criteria.limit is not None:
        sql += f" LIMIT {coerce_int(criteria.limit)}"
        if criteria.offset is not None:
            sql += f" OFFSET {coerce_int(criteria.offset)}"

    return CompiledStatement(sql, params)


def compile_update(table_name: str, data: Mapping[str, Any], where: Sequence[Condition]) -> CompiledStatement:
    """
    Build a parameterized UPDATE.

    Raises:
        EmptyInputError: If data is empty or no key survives sanitizing
        MissingWhereError: If where is empty or every condition was dropped
    """
    if not data:
        raise EmptyInputError("No data provided for update operation")

    set_clauses = []
    params = {}
    for index, (key, value) in enumerate(data.items()):
        column = sanitize_field(key)
        if not column:
            continue
        name = f"set_{column}_{index}"
        set_clauses.append(f"{quote_identifier(column)} = :{name}")
        params[name] = value
    if not set_clauses:
        raise EmptyInputError("No valid fields to update")

    where_clause, where_params = _require_where(where, "update")
    params.update(where_params)

    sql = f"UPDATE {quote_identifier(table_name)} SET {', '.join(set_clauses)}{where_clause}"
    return CompiledStatement(sql, params)


def compile_delete(table_name: str, where: Sequence[Condition]) -> CompiledStatement:
    """
    Build a parameterized DELETE.

    Raises:
        MissingWhereError: If where is empty or every condition was dropped
    """
    where_clause, params = _require_where(where, "delete")
    return CompiledStatement(f"DELETE FROM {quote_identifier(table_name)}{where_clause}", params)
