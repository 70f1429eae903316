from __future__ import annotations

import math

from ..runtime import MdlxTypeError, Value

def is_truthy(val: Value) -> bool:
    match val.value:
        case bool(flag):
            return flag
        case float(num):
            return num != 0
        case str(text):
            return bool(text)
        case list():
            return True
        case _:
            return True

def to_number(val: Value) -> float:
    """Numeric coercion: booleans map to 1/0, strings must parse as a finite float."""
    match val.value:
        case bool(flag):
            return 1.0 if flag else 0.0
        case float(num):
            return num
        case str(text):
            stripped = text.strip()
            try:
                num = float(stripped)
            except ValueError:
                raise MdlxTypeError(f"Cannot convert '{text}' to a number") from None

            if not math.isfinite(num):
                raise MdlxTypeError(f"Cannot convert '{text}' to a number")
            return num
        case list():
            raise MdlxTypeError("Cannot convert an array to a number")
        case other:
            raise MdlxTypeError(f"Cannot convert {type(other).__name__} to a number")

def values_equal(lhs: Value, rhs: Value) -> bool:
    """Same scalar kind and payload; arrays compare by identity."""
    a, b = lhs.value, rhs.value

    if isinstance(a, list) or isinstance(b, list):
        return a is b

    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b

    if type(a) is not type(b):
        return False

    return a == b
