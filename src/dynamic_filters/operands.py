"""
Operand shapes.

Raw request values are coerced into one of four shapes before any predicate
is built: ``Scalar``, ``ListOperand``, ``Pair`` or ``NoValue``. The shape is
dictated by the operator definition; a mismatch raises an arity or type error
that names the operator.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

from .casting import cast_value, is_numeric_string, parse_number
from .exceptions import OperandArityMismatchError, OperandTypeMismatchError
from .registry import OperatorKind
from .strategy import ValueShape

if TYPE_CHECKING:
    from .registry import OperatorDefinition


@dataclass(frozen=True)
class Scalar:
    value: Any


@dataclass(frozen=True)
class ListOperand:
    values: tuple[Any, ...]

    @property
    def value(self) -> list[Any]:
        return list(self.values)


@dataclass(frozen=True)
class Pair:
    low: Any
    high: Any

    @property
    def value(self) -> tuple[Any, Any]:
        return (self.low, self.high)


@dataclass(frozen=True)
class NoValue:
    @property
    def value(self) -> None:
        return None


Operand = Union[Scalar, ListOperand, Pair, NoValue]


def split_csv(value: str) -> list[str]:
    """Split a wire-format ``a,b,c`` string, trimming each item."""
    return [part.strip() for part in value.split(",")]


def coerce_operand(
    definition: OperatorDefinition,
    raw: Any,
    *,
    cast: str | None = None,
    dedupe: bool = True,
    requires_numeric: bool = False,
) -> Operand:
    """
    Validate *raw* against the shape of *definition* and apply the cast rule.

    Raises:
        OperandArityMismatchError: Wrong number of values for the operator.
        OperandTypeMismatchError: Values of the wrong type or ordering.
        ValueCastError: The cast rule could not be applied.
    """
    if definition.shape is ValueShape.NONE:
        return _coerce_none(definition, raw)
    if definition.shape is ValueShape.ARRAY:
        return _coerce_array(definition, raw, cast, dedupe)
    if definition.shape is ValueShape.PAIR:
        return _coerce_pair(definition, raw, cast, requires_numeric)
    return _coerce_scalar(definition, raw, cast)


def _coerce_none(definition: OperatorDefinition, raw: Any) -> NoValue:
    # Flags such as ``field[null]=1`` or ``field[today]=`` carry no operand.
    if isinstance(raw, list | tuple | dict):
        raise OperandArityMismatchError(
            f"The '{definition.key}' operator does not take a value",
            operator=definition.key,
        )
    return NoValue()


def _coerce_scalar(
    definition: OperatorDefinition, raw: Any, cast: str | None
) -> Scalar:
    if isinstance(raw, list | tuple | dict):
        raise OperandArityMismatchError(
            f"The '{definition.key}' operator requires a single value",
            operator=definition.key,
        )
    if definition.kind is OperatorKind.RELATIVE_DATE:
        return Scalar(_day_count(definition, raw))
    return Scalar(cast_value(raw, cast))


def _day_count(definition: OperatorDefinition, raw: Any) -> int:
    if isinstance(raw, bool):
        days = None
    elif isinstance(raw, int):
        days = raw
    elif isinstance(raw, str) and raw.strip().isdigit():
        days = int(raw.strip())
    else:
        days = None
    if days is None or days < 0:
        raise OperandTypeMismatchError(
            f"The '{definition.key}' operator requires a non-negative "
            f"number of days, got {raw!r}",
            operator=definition.key,
        )
    return days


def _coerce_array(
    definition: OperatorDefinition,
    raw: Any,
    cast: str | None,
    dedupe: bool,
) -> ListOperand:
    if isinstance(raw, dict):
        raise OperandTypeMismatchError(
            f"The '{definition.key}' operator requires a list of values",
            operator=definition.key,
        )
    if isinstance(raw, str):
        items: list[Any] = split_csv(raw)
    elif isinstance(raw, list | tuple):
        items = list(raw)
    else:
        items = [raw]

    items = [item for item in items if item is not None and item != ""]
    if not items:
        raise OperandArityMismatchError(
            f"The '{definition.key}' operator requires a non-empty list",
            operator=definition.key,
        )

    values = [cast_value(item, cast) for item in items]
    if dedupe:
        seen: list[tuple[type[Any], Any]] = []
        unique: list[Any] = []
        for value in values:
            # True == 1, so the type is part of the key
            key = (type(value), value)
            if key not in seen:
                seen.append(key)
                unique.append(value)
        values = unique
    return ListOperand(tuple(values))


def _coerce_pair(
    definition: OperatorDefinition,
    raw: Any,
    cast: str | None,
    requires_numeric: bool,
) -> Pair:
    if isinstance(raw, str):
        items: list[Any] = split_csv(raw)
    elif isinstance(raw, list | tuple):
        items = list(raw)
    else:
        items = [raw]

    if len(items) != 2:
        raise OperandArityMismatchError(
            f"The '{definition.key}' operator requires exactly 2 values, "
            f"got {len(items)}",
            operator=definition.key,
        )

    low, high = (cast_value(item, cast) for item in items)
    if low is None or high is None or low == "" or high == "":
        raise OperandTypeMismatchError(
            f"The '{definition.key}' operator requires two non-empty bounds",
            operator=definition.key,
        )

    cmp_low, cmp_high = _comparable(low), _comparable(high)
    if requires_numeric and not (_is_number(cmp_low) and _is_number(cmp_high)):
        raise OperandTypeMismatchError(
            f"The '{definition.key}' operator requires numeric bounds",
            operator=definition.key,
        )
    try:
        reversed_bounds = cmp_low > cmp_high
    except TypeError as exc:
        raise OperandTypeMismatchError(
            f"The '{definition.key}' bounds {low!r} and {high!r} "
            "cannot be compared",
            operator=definition.key,
        ) from exc
    if reversed_bounds:
        raise OperandTypeMismatchError(
            f"The '{definition.key}' lower bound {low!r} is greater than "
            f"the upper bound {high!r}",
            operator=definition.key,
        )
    return Pair(low, high)


def _comparable(value: Any) -> Any:
    if is_numeric_string(value):
        return parse_number(value)
    return value


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)
