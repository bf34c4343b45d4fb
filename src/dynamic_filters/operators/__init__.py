"""
Store operator implementations and default registry.

Every operator here is one small ``StoreOperator`` strategy keyed by its
store token (``name``). ``arity`` and ``shape`` describe the operand it
accepts; ``apply`` turns a column and that operand into a SQLAlchemy
expression. The classes hold no state, so the registry keeps one instance
of each.

Usage::

    from dynamic_filters.operators import DEFAULT_STORE_REGISTRY

    expr = DEFAULT_STORE_REGISTRY.apply("between", column, (5, 10))
"""

from __future__ import annotations

from ..strategy import StoreOperatorRegistry
from .null import IsNotNullOperator, IsNullOperator
from .set import BetweenOperator, InOperator, NotBetweenOperator, NotInOperator
from .standard import (
    EqualOperator,
    GreaterEqualOperator,
    GreaterThanOperator,
    LessEqualOperator,
    LessThanOperator,
    NotEqualOperator,
)
from .string import (
    LIKE_ESCAPE,
    ILikeOperator,
    LikeOperator,
    NotILikeOperator,
    NotLikeOperator,
)


def build_default_store_registry() -> StoreOperatorRegistry:
    """Create a registry with all built-in store operators."""
    registry = StoreOperatorRegistry()
    registry.register_all(
        # Standard comparison
        EqualOperator(),
        NotEqualOperator(),
        GreaterThanOperator(),
        LessThanOperator(),
        GreaterEqualOperator(),
        LessEqualOperator(),
        # Set
        InOperator(),
        NotInOperator(),
        BetweenOperator(),
        NotBetweenOperator(),
        # Pattern
        LikeOperator(),
        NotLikeOperator(),
        ILikeOperator(),
        NotILikeOperator(),
        # Null
        IsNullOperator(),
        IsNotNullOperator(),
    )
    return registry


DEFAULT_STORE_REGISTRY: StoreOperatorRegistry = build_default_store_registry()

__all__ = [
    "DEFAULT_STORE_REGISTRY",
    "LIKE_ESCAPE",
    "StoreOperatorRegistry",
    "build_default_store_registry",
]
