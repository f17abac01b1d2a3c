"""
Canonical request structures consumed by the table engine.

Transport adapters build these from their own payload shapes (see
normalizer.py); the compiler and engine only ever see these dataclasses.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Any
from enum import Enum

from ..utils.exceptions import InvalidOperatorError


# ----- Enums -----

class ComparisonOp(Enum):
    """Whitelisted operators for WHERE conditions."""
    EQ = "="
    NE = "!="
    LG = "<>"
    LT = "<"
    GT = ">"
    LTE = "<="
    GTE = ">="
    LIKE = "LIKE"
    NOT_LIKE = "NOT LIKE"
    IN = "IN"
    NOT_IN = "NOT IN"

    @property
    def takes_list(self) -> bool:
        return self in (ComparisonOp.IN, ComparisonOp.NOT_IN)

    @classmethod
    def from_string(cls, operator: Any) -> 'ComparisonOp':
        """
        Case-insensitive lookup of an operator.

        Raises:
            InvalidOperatorError: If the operator is not whitelisted
        """
        text = '' if operator is None else ' '.join(str(operator).upper().split())
        for op in cls:
            if op.value == text:
                return op
        raise InvalidOperatorError(text or operator)


class SortDirection(Enum):
    ASC = "ASC"
    DESC = "DESC"

    @classmethod
    def from_string(cls, direction: Any) -> 'SortDirection':
        """Anything other than a case-insensitive 'DESC' sorts ascending."""
        if isinstance(direction, str) and direction.strip().upper() == "DESC":
            return cls.DESC
        return cls.ASC


# ----- Schema -----

@dataclass
class ColumnDefinition:
    """Column definition for CREATE TABLE."""
    name: str
    type: str
    constraints: str = ""


# ----- Criteria -----

@dataclass
class Condition:
    """Single predicate: field operator value."""
    field: str
    operator: str
    value: Any = None


@dataclass
class OrderBy:
    """ORDER BY entry."""
    field: str
    direction: SortDirection = SortDirection.ASC


@dataclass
class Criteria:
    """
    Projection, filtering, ordering and paging for a SELECT.

    ``fields`` of None (or containing '*') selects every column.
    ``offset`` is only applied when ``limit`` is set.
    """
    fields: Optional[List[str]] = None
    where: List[Condition] = field(default_factory=list)
    order_by: List[OrderBy] = field(default_factory=list)
    limit: Optional[int] = None
    offset: Optional[int] = None
