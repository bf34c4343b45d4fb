"""
Store operator compilation strategy.

Provides the ``StoreOperator`` interface, a registry keyed by store token
(``"="``, ``"not in"``, ``"between"``, ...) and the operand descriptors every
symbolic operator definition is derived from.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement


class Arity(str, Enum):
    """Number of operand values an operator consumes."""

    NONE = "none"
    UNARY = "unary"
    BINARY = "binary"
    NARY = "n-ary"


class ValueShape(str, Enum):
    """Shape the operand must have before coercion."""

    NONE = "none"
    SCALAR = "scalar"
    ARRAY = "array"
    PAIR = "pair"


class StoreOperator(ABC):
    """
    Strategy interface for compiling a store operator
    into a SQLAlchemy ``ColumnElement[bool]``.
    """

    arity: Arity = Arity.UNARY
    shape: ValueShape = ValueShape.SCALAR

    @property
    @abstractmethod
    def name(self) -> str:
        """The store token this strategy handles."""
        ...

    @abstractmethod
    def apply(
        self,
        column: Any,
        value: Any,
    ) -> ColumnElement[bool]:
        """
        Build a SQLAlchemy filter clause.

        Args:
            column: A SQLAlchemy column or instrumented attribute.
            value: The coerced operand (scalar, list, ``(low, high)`` or ``None``).

        Returns:
            A SQLAlchemy boolean expression.
        """
        ...


_TOKEN_ALIASES: dict[str, str] = {
    "==": "=",
    "<>": "!=",
    "notnull": "not null",
    "isnull": "null",
    "is null": "null",
    "is not null": "not null",
    "notin": "not in",
    "nin": "not in",
}


def normalize_store_token(token: str) -> str:
    """Normalise a configured store token (``not_in`` -> ``not in``)."""
    text = " ".join(str(token).strip().lower().replace("_", " ").split())
    return _TOKEN_ALIASES.get(text, text)


class StoreOperatorRegistry:
    """Registry of ``StoreOperator`` instances keyed by store token."""

    def __init__(self) -> None:
        self._operators: dict[str, StoreOperator] = {}

    def register(self, operator: StoreOperator) -> None:
        self._operators[operator.name] = operator

    def register_all(self, *operators: StoreOperator) -> None:
        for op in operators:
            self.register(op)

    def get(self, token: str) -> StoreOperator | None:
        return self._operators.get(normalize_store_token(token))

    def has(self, token: str) -> bool:
        return normalize_store_token(token) in self._operators

    @property
    def supported_operators(self) -> set[str]:
        return set(self._operators.keys())

    def apply(
        self,
        token: str,
        column: Any,
        value: Any,
    ) -> ColumnElement[bool]:
        """
        Look up the operator and apply.

        Raises:
            ValueError: If the token is not registered.
        """
        op = self.get(token)
        if op is None:
            raise ValueError(f"Unsupported store operator: {token}")
        return op.apply(column, value)
