"""
Value coercion for filter operands.

Pure-Python helpers with no SQLAlchemy dependency. A field's cast rule is
declared on the model (``__casts__ = {"views": "int"}``) and applied to each
operand value before it is bound.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any

from .exceptions import ValueCastError

CAST_TYPES: frozenset[str] = frozenset(
    {
        "int",
        "integer",
        "float",
        "double",
        "string",
        "str",
        "bool",
        "boolean",
        "array",
        "json",
        "date",
        "datetime",
    }
)

TRUTHY_STRINGS: frozenset[str] = frozenset({"true", "1", "yes", "on", "y"})

_TIMESTAMP_RE = re.compile(r"^\d+$")
_NUMERIC_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


def is_numeric_string(value: Any) -> bool:
    return isinstance(value, str) and bool(_NUMERIC_RE.match(value.strip()))


def parse_number(value: str) -> int | float:
    """Parse a numeric string, preferring ``int`` when it is integral text."""
    text = value.strip()
    try:
        return int(text)
    except ValueError:
        return float(text)


def cast_value(value: Any, cast_type: str | None = None) -> Any:
    """
    Cast *value* according to *cast_type*.

    ``None`` and a missing cast rule pass through unchanged. Lists are cast
    element-wise except for ``array``/``json`` rules, which receive the list
    as a whole. Unknown cast types pass through unchanged.

    Raises:
        ValueCastError: If a numeric cast cannot parse the value.
    """
    if value is None or cast_type is None:
        return value

    ct = cast_type.strip().lower()

    if ct in ("array", "json"):
        return _cast_json(value)

    if isinstance(value, list | tuple):
        return [cast_value(item, ct) for item in value]

    if ct in ("int", "integer"):
        return _cast_int(value)
    if ct in ("float", "double"):
        return _cast_float(value)
    if ct in ("string", "str"):
        return str(value)
    if ct in ("bool", "boolean"):
        return cast_bool(value)
    if ct in ("date", "datetime"):
        return _cast_timestamp(value)
    return value


def cast_bool(value: Any) -> bool:
    """
    Lenient boolean parse.

    ``bool`` passes through; strings are true iff they are one of
    ``true/1/yes/on/y`` (case-insensitive, surrounding whitespace ignored);
    numbers are true iff non-zero; anything else is false.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY_STRINGS
    if isinstance(value, int | float):
        return value != 0
    return False


def _cast_int(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueCastError(f"Cannot cast boolean {value!r} to int", cast="int")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(_finite(value, value, "int"))
    if is_numeric_string(value):
        return int(_finite(parse_number(value), value, "int"))
    raise ValueCastError(f"Cannot cast {value!r} to int", cast="int")


def _cast_float(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueCastError(f"Cannot cast boolean {value!r} to float", cast="float")
    if isinstance(value, int | float):
        return float(value)
    if is_numeric_string(value):
        return float(value.strip())
    raise ValueCastError(f"Cannot cast {value!r} to float", cast="float")


def _finite(number: int | float, value: Any, cast: str) -> int | float:
    if isinstance(number, float) and not math.isfinite(number):
        raise ValueCastError(f"Cannot cast {value!r} to {cast}: not finite", cast=cast)
    return number


def _cast_json(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return value


def _cast_timestamp(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, int | float):
        return int(_finite(value, value, "date"))
    if isinstance(value, str) and _TIMESTAMP_RE.match(value.strip()):
        return int(value.strip())
    return value
