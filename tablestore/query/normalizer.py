"""
Criteria normalizer.

Converts the payload shapes of both transports into the canonical
structures in criteria.py:

- JSON shapes are plain lists and objects, e.g.
  ``{"where": [{"field": "id", "operator": "=", "value": 1}]}``
- RPC shapes use named wrappers that hold either a single element or a
  list of them, e.g. ``{"condition": {...}}`` or ``{"condition": [...]}``,
  and key/value records ``{"item": [{"key": "id", "value": 1}]}``.

The engine never inspects transport-native shapes.
"""

from typing import Any, Dict, List, Mapping

from .criteria import ColumnDefinition, Condition, OrderBy, Criteria, SortDirection
from ..utils.exceptions import InvalidColumnError, InvalidValueError, EmptyInputError
from ..utils.validators import coerce_int


# ----- JSON payloads -----

def columns_from_json(columns: Any) -> List[ColumnDefinition]:
    """
    Build column definitions from ``[{name, type, constraints?}, ...]``.

    Raises:
        InvalidColumnError: If the payload is not a list of objects
    """
    if not isinstance(columns, list) or not columns:
        raise InvalidColumnError("Missing or invalid 'columns' definition")

    definitions = []
    for column in columns:
        if not isinstance(column, Mapping):
            raise InvalidColumnError("Column definition must be an object with 'name' and 'type'")
        definitions.append(ColumnDefinition(
            name=_text(column.get('name')),
            type=_text(column.get('type')),
            constraints=_text(column.get('constraints')),
        ))
    return definitions


def conditions_from_json(where: Any) -> List[Condition]:
    """
    Build conditions from ``[{field, operator, value}, ...]``.

    A single condition object is accepted as a one-element list.
    """
    if where is None:
        return []
    if isinstance(where, Mapping):
        where = [where]
    if not isinstance(where, list):
        raise InvalidValueError("'where' must be a list of conditions")

    conditions = []
    for raw in where:
        if not isinstance(raw, Mapping):
            raise InvalidValueError("Each condition must be an object with 'field', 'operator' and 'value'")
        conditions.append(_condition(raw))
    return conditions


def criteria_from_json(payload: Any) -> Criteria:
    """
    Build Criteria from ``{fields?, where?, orderBy?, limit?, offset?}``.

    ``fields`` may be a list or a comma separated string. LIMIT and OFFSET
    are coerced to non-negative integers.
    """
    if payload is None:
        return Criteria()
    if not isinstance(payload, Mapping):
        raise InvalidValueError("'criteria' must be an object")

    fields = payload.get('fields')
    if isinstance(fields, str):
        fields = [f.strip() for f in fields.split(',')]
    elif fields is not None and not isinstance(fields, list):
        raise InvalidValueError("'fields' must be a list or a comma separated string")

    order_by = payload.get('orderBy', payload.get('order_by'))
    if isinstance(order_by, Mapping):
        order_by = [order_by]

    return Criteria(
        fields=[_text(f) for f in fields] if fields else None,
        where=conditions_from_json(payload.get('where')),
        order_by=_order_by(order_by or []),
        limit=coerce_int(payload['limit']) if payload.get('limit') is not None else None,
        offset=coerce_int(payload['offset']) if payload.get('offset') is not None else None,
    )


def record_from_json(data: Any) -> Dict[str, Any]:
    """
    Validate an insert/update record.

    Raises:
        EmptyInputError: If data is missing, empty or not an object
    """
    if not isinstance(data, Mapping) or not data:
        raise EmptyInputError("Missing or invalid 'data': expected a non-empty object")
    return dict(data)


# ----- RPC payloads -----

def unwrap(container: Any, key: str) -> List[Any]:
    """
    Return the elements held under ``key`` as a list.

    Handles ``{key: [a, b]}``, ``{key: a}`` (single element) and a bare
    list. Missing containers yield an empty list.
    """
    if container is None:
        return []
    if isinstance(container, list):
        return container
    if isinstance(container, Mapping):
        if key not in container:
            return []
        inner = container[key]
        if inner is None:
            return []
        return inner if isinstance(inner, list) else [inner]
    return [container]


def record_from_key_values(container: Any) -> Dict[str, Any]:
    """
    Build a record from an ArrayOfKeyValue shape.

    Accepts ``{"item": [{key, value}, ...]}``, ``{"item": {key, value}}``
    and a lone ``{key, value}`` pair.
    """
    if isinstance(container, Mapping) and 'key' in container and 'item' not in container:
        items = [container]
    else:
        items = unwrap(container, 'item')

    record = {}
    for kv in items:
        if not isinstance(kv, Mapping) or 'key' not in kv:
            raise InvalidValueError("Key/value items must carry a 'key'")
        record[_text(kv['key'])] = kv.get('value')
    return record


def conditions_from_rpc(container: Any) -> List[Condition]:
    """Build conditions from an ArrayOfWhereCondition shape."""
    conditions = []
    for raw in unwrap(container, 'condition'):
        if not isinstance(raw, Mapping):
            raise InvalidValueError("Each condition must carry 'field', 'operator' and 'value'")
        conditions.append(_condition(raw))
    return conditions


def columns_from_rpc(container: Any) -> List[ColumnDefinition]:
    """Build column definitions from an ArrayOfColumnDefinition shape."""
    columns = unwrap(container, 'column')
    if not columns:
        raise InvalidColumnError("No column definitions provided")
    return columns_from_json(columns)


def criteria_from_rpc(container: Any) -> Criteria:
    """
    Build Criteria from a SelectionCriteria shape:
    ``{fields: {string: [...]}, where: {condition: [...]},
    orderBy: {clause: [...]}, limit, offset}``.
    """
    if container is None:
        return Criteria()
    if not isinstance(container, Mapping):
        raise InvalidValueError("Selection criteria must be an object")

    fields = [_text(f) for f in unwrap(container.get('fields'), 'string')]
    return Criteria(
        fields=fields or None,
        where=conditions_from_rpc(container.get('where')),
        order_by=_order_by(unwrap(container.get('orderBy'), 'clause')),
        limit=coerce_int(container['limit']) if container.get('limit') is not None else None,
        offset=coerce_int(container['offset']) if container.get('offset') is not None else None,
    )


def record_to_key_values(row: Mapping[str, Any]) -> Dict[str, List[Dict[str, Any]]]:
    """Encode a result row as ``{"item": [{"key": ..., "value": ...}, ...]}``."""
    return {'item': [{'key': key, 'value': value} for key, value in row.items()]}


# ----- Internal -----

def _text(value: Any) -> str:
    return '' if value is None else str(value)


def _condition(raw: Mapping) -> Condition:
    return Condition(
        field=_text(raw.get('field')),
        operator=_text(raw.get('operator')),
        value=raw.get('value'),
    )


def _order_by(entries: List[Any]) -> List[OrderBy]:
    order = []
    for entry in entries:
        if not isinstance(entry, Mapping):
            continue
        order.append(OrderBy(
            field=_text(entry.get('field')),
            direction=SortDirection.from_string(entry.get('direction')),
        ))
    return order
