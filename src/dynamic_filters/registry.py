"""
OperatorRegistry: symbolic operator keys (``eq``, ``between``, ``today``)
mapped to store-level operator definitions.

The registry is immutable: ``merge`` returns a new registry with the
configured overrides taking precedence over the built-ins.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING

from .exceptions import ConfigurationError, UnsupportedOperatorError
from .operators import DEFAULT_STORE_REGISTRY
from .strategy import Arity, ValueShape, normalize_store_token

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from .strategy import StoreOperatorRegistry


class OperatorKind(str, Enum):
    """How the evaluator prepares the operand for the store operator."""

    COMPARISON = "comparison"
    PATTERN = "pattern"
    MEMBERSHIP = "membership"
    RANGE = "range"
    NULL_CHECK = "null_check"
    RELATIVE_DATE = "relative_date"


# Templates: ``{value}`` placeholder; ``None`` on a pattern kind means
# "wrap in %...% unless the operand already contains a wildcard".
WRAP_UNLESS_WILDCARD: str | None = None


@dataclass(frozen=True)
class OperatorDefinition:
    """
    One entry of the operator table.

    Attributes:
        key: Symbolic name used in requests (``gte``, ``starts_with``).
        store_operator: Store token the key resolves to (``>=``, ``like``).
        kind: Operand preparation strategy.
        arity: Number of operand values.
        shape: Operand shape enforced before coercion.
        template: Pattern template for synthesised patterns.
        date_range: Relative date keyword for ``RELATIVE_DATE`` operators.
    """

    key: str
    store_operator: str
    kind: OperatorKind
    arity: Arity
    shape: ValueShape
    template: str | None = WRAP_UNLESS_WILDCARD
    date_range: str | None = None


def _kind_for(store_operator: str) -> OperatorKind:
    if store_operator in ("like", "not like", "ilike", "not ilike"):
        return OperatorKind.PATTERN
    if store_operator in ("in", "not in"):
        return OperatorKind.MEMBERSHIP
    if store_operator in ("between", "not between"):
        return OperatorKind.RANGE
    if store_operator in ("null", "not null"):
        return OperatorKind.NULL_CHECK
    return OperatorKind.COMPARISON


def define(
    key: str,
    store_operator: str,
    *,
    store: StoreOperatorRegistry = DEFAULT_STORE_REGISTRY,
) -> OperatorDefinition:
    """Derive a definition for *key* from the store operator's own shape."""
    token = normalize_store_token(store_operator)
    strategy = store.get(token)
    if strategy is None:
        raise ConfigurationError(
            f"Operator '{key}' maps to unknown store operator '{store_operator}'",
            errors={f"operators.{key}": [f"unknown store operator {store_operator!r}"]},
        )
    return OperatorDefinition(
        key=key,
        store_operator=token,
        kind=_kind_for(token),
        arity=strategy.arity,
        shape=strategy.shape,
    )


def _pattern(key: str, template: str) -> OperatorDefinition:
    return replace(define(key, "like"), template=template)


def _relative(key: str, *, offset: bool = False) -> OperatorDefinition:
    return OperatorDefinition(
        key=key,
        store_operator="between",
        kind=OperatorKind.RELATIVE_DATE,
        arity=Arity.UNARY if offset else Arity.NONE,
        shape=ValueShape.SCALAR if offset else ValueShape.NONE,
        date_range=key,
    )


RELATIVE_DATE_KEYS: tuple[str, ...] = (
    "today",
    "yesterday",
    "this_week",
    "last_week",
    "this_month",
    "last_month",
    "this_year",
    "last_year",
    "last_x_days",
    "next_x_days",
)


def _builtin_definitions() -> dict[str, OperatorDefinition]:
    defs = [
        define("eq", "="),
        define("neq", "!="),
        define("gt", ">"),
        define("gte", ">="),
        define("lt", "<"),
        define("lte", "<="),
        define("like", "like"),
        define("not_like", "not like"),
        define("ilike", "ilike"),
        define("not_ilike", "not ilike"),
        define("in", "in"),
        define("not_in", "not in"),
        define("between", "between"),
        define("not_between", "not between"),
        define("null", "null"),
        define("not_null", "not null"),
        define("notnull", "not null"),
        _pattern("starts_with", "{value}%"),
        _pattern("ends_with", "%{value}"),
        _pattern("contains", "%{value}%"),
    ]
    defs.extend(
        _relative(key, offset=key in ("last_x_days", "next_x_days"))
        for key in RELATIVE_DATE_KEYS
    )
    return {d.key: d for d in defs}


BUILTIN_OPERATORS: Mapping[str, OperatorDefinition] = MappingProxyType(
    _builtin_definitions()
)


class OperatorRegistry:
    """Read-only operator table with override/merge support."""

    def __init__(
        self,
        definitions: Iterable[OperatorDefinition] | None = None,
    ) -> None:
        source = BUILTIN_OPERATORS.values() if definitions is None else definitions
        self._definitions: dict[str, OperatorDefinition] = {
            d.key.lower(): d for d in source
        }

    def resolve(self, key: str) -> OperatorDefinition:
        """Return the definition for *key* or raise ``UnsupportedOperatorError``."""
        definition = self._definitions.get(str(key).strip().lower())
        if definition is None:
            raise UnsupportedOperatorError(str(key), list(self._definitions))
        return definition

    def exists(self, key: str) -> bool:
        return str(key).strip().lower() in self._definitions

    def keys(self) -> list[str]:
        return list(self._definitions)

    def definitions(self) -> list[OperatorDefinition]:
        return list(self._definitions.values())

    def keys_with_shape(self, *shapes: ValueShape) -> set[str]:
        return {k for k, d in self._definitions.items() if d.shape in shapes}

    def to_dict(self) -> dict[str, str]:
        """``{key: store_operator}`` view of the table."""
        return {k: d.store_operator for k, d in self._definitions.items()}

    def merge(
        self,
        overrides: Mapping[str, str],
        *,
        store: StoreOperatorRegistry = DEFAULT_STORE_REGISTRY,
    ) -> OperatorRegistry:
        """
        Return a new registry with *overrides* applied.

        An override that keeps a built-in's store operator keeps the built-in
        semantics (pattern template, relative date range).
        """
        merged = dict(self._definitions)
        for key, token in overrides.items():
            name = str(key).strip().lower()
            current = merged.get(name)
            if current is not None and current.store_operator == normalize_store_token(
                token
            ):
                continue
            merged[name] = define(name, token, store=store)
        return OperatorRegistry(merged.values())

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.exists(key)

    def __len__(self) -> int:
        return len(self._definitions)


DEFAULT_OPERATOR_REGISTRY = OperatorRegistry()
