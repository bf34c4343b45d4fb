"""Null check store operators."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from ..strategy import Arity, StoreOperator, ValueShape

if TYPE_CHECKING:
    from sqlalchemy.sql.elements import ColumnElement


class IsNullOperator(StoreOperator):
    arity = Arity.NONE
    shape = ValueShape.NONE

    @property
    def name(self) -> str:
        return "null"

    def apply(self, column: Any, _value: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column.is_(None))


class IsNotNullOperator(StoreOperator):
    arity = Arity.NONE
    shape = ValueShape.NONE

    @property
    def name(self) -> str:
        return "not null"

    def apply(self, column: Any, _value: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column.is_not(None))
