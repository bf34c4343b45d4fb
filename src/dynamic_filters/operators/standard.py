"""Standard comparison store operators."""

from __future__ import annotations

import operator as op_module
from typing import TYPE_CHECKING, Any, cast

from ..strategy import StoreOperator

if TYPE_CHECKING:
    from sqlalchemy.sql.elements import ColumnElement


class EqualOperator(StoreOperator):
    @property
    def name(self) -> str:
        return "="

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", op_module.eq(column, value))


class NotEqualOperator(StoreOperator):
    @property
    def name(self) -> str:
        return "!="

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", op_module.ne(column, value))


class GreaterThanOperator(StoreOperator):
    @property
    def name(self) -> str:
        return ">"

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", op_module.gt(column, value))


class LessThanOperator(StoreOperator):
    @property
    def name(self) -> str:
        return "<"

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", op_module.lt(column, value))


class GreaterEqualOperator(StoreOperator):
    @property
    def name(self) -> str:
        return ">="

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", op_module.ge(column, value))


class LessEqualOperator(StoreOperator):
    @property
    def name(self) -> str:
        return "<="

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", op_module.le(column, value))
