"""
Type and equality rules for JSON values.

Numbers compare by value, so 1 and 1.0 are equal for enum, const and
uniqueItems. Booleans are never numbers even though Python's bool is an int.
Objects may arrive as dicts or read-only mappings, arrays as lists or tuples.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation, localcontext
from typing import Any

from jsonvalidation.schemas.drafts import DRAFT_6

# Working precision for multipleOf remainders; covers quotients of any two
# finite doubles.
_DECIMAL_PRECISION = 1000


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_array(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def is_object(value: Any) -> bool:
    return isinstance(value, Mapping)


def is_integer(value: Any, draft: int) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    # draft-06 onwards: any number with a zero fractional part is an integer
    return draft >= DRAFT_6 and isinstance(value, float) and value.is_integer()


def matches_type(value: Any, type_name: str, draft: int) -> bool:
    if type_name == "null":
        return value is None
    if type_name == "boolean":
        return isinstance(value, bool)
    if type_name == "integer":
        return is_integer(value, draft)
    if type_name == "number":
        return is_number(value)
    if type_name == "string":
        return isinstance(value, str)
    if type_name == "array":
        return is_array(value)
    if type_name == "object":
        return is_object(value)
    return False


def kind_of(value: Any) -> str:
    """JSON kind name of a value, for messages."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if is_array(value):
        return "array"
    if is_object(value):
        return "object"
    return type(value).__name__


def json_equal(left: Any, right: Any) -> bool:
    """Deep structural equality under JSON Schema rules."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if is_number(left) and is_number(right):
        return left == right
    if is_array(left) and is_array(right):
        return len(left) == len(right) and all(
            json_equal(a, b) for a, b in zip(left, right)
        )
    if is_object(left) and is_object(right):
        if len(left) != len(right) or set(left) != set(right):
            return False
        return all(json_equal(left[key], right[key]) for key in left)
    return type(left) is type(right) and left == right


def _decimal(number: int | float) -> Decimal:
    # repr gives the shortest literal that round-trips, i.e. the number as written
    return Decimal(number) if isinstance(number, int) else Decimal(repr(number))


def is_multiple_of(value: int | float, divisor: int | float) -> bool:
    """
    Exact check on the decimal literals, so 0.3 is a multiple of 0.1 while
    1e-13 is not a multiple of 0.001.
    """
    if isinstance(value, int) and isinstance(divisor, int):
        return value % divisor == 0
    if any(isinstance(n, float) and not math.isfinite(n) for n in (value, divisor)):
        return False
    with localcontext() as ctx:
        ctx.prec = _DECIMAL_PRECISION
        try:
            return _decimal(value) % _decimal(divisor) == 0
        except InvalidOperation:
            return False


def has_duplicates(items: list | tuple) -> bool:
    for index, item in enumerate(items):
        for other in items[index + 1 :]:
            if json_equal(item, other):
                return True
    return False
