from __future__ import annotations

import math
from collections.abc import Mapping
from enum import Enum
from typing import Any


class ValueKind(str, Enum):
    """
    Closed set of dynamic type tags for JSON values.

    Both ``equal`` and ``Database.type_of`` dispatch on these.
    """

    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"
    OTHER = "other"


def classify(value: Any) -> ValueKind:
    if value is None:
        return ValueKind.NULL
    # bool is a subclass of int, so it has to be tested first.
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (list, tuple)):
        return ValueKind.ARRAY
    if isinstance(value, Mapping):
        return ValueKind.OBJECT
    return ValueKind.OTHER


def equal(a: Any, b: Any) -> bool:
    """
    Structural equality over JSON values.

    Arrays are compared as multisets: each element of ``a`` consumes one
    distinct, not yet matched element of ``b``. Objects ignore key order.
    NaN never equals anything, itself included.
    """
    kind = classify(a)
    if kind is not classify(b):
        return False

    if kind is ValueKind.NULL:
        return True
    if kind is ValueKind.NUMBER:
        if _is_nan(a) or _is_nan(b):
            return False
        return a == b
    if kind in (ValueKind.BOOLEAN, ValueKind.STRING, ValueKind.OTHER):
        return a == b

    if a is b:
        return True
    if kind is ValueKind.ARRAY:
        return _equal_arrays(a, b)
    return _equal_objects(a, b)


def _is_nan(value: int | float) -> bool:
    return isinstance(value, float) and math.isnan(value)


def _equal_arrays(a: list[Any] | tuple[Any, ...], b: list[Any] | tuple[Any, ...]) -> bool:
    if len(a) != len(b):
        return False

    consumed = [False] * len(b)
    for item in a:
        for idx, candidate in enumerate(b):
            if not consumed[idx] and equal(item, candidate):
                consumed[idx] = True
                break
        else:
            return False
    return True


def _equal_objects(a: Mapping[str, Any], b: Mapping[str, Any]) -> bool:
    if len(a) != len(b):
        return False
    for key, value in a.items():
        if key not in b or not equal(value, b[key]):
            return False
    return True
