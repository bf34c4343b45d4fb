"""Set store operators: in, not in, between, not between."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from ..strategy import Arity, StoreOperator, ValueShape

if TYPE_CHECKING:
    from sqlalchemy.sql.elements import ColumnElement


class InOperator(StoreOperator):
    arity = Arity.NARY
    shape = ValueShape.ARRAY

    @property
    def name(self) -> str:
        return "in"

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column.in_(value))


class NotInOperator(StoreOperator):
    arity = Arity.NARY
    shape = ValueShape.ARRAY

    @property
    def name(self) -> str:
        return "not in"

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column.not_in(value))


class BetweenOperator(StoreOperator):
    arity = Arity.BINARY
    shape = ValueShape.PAIR

    @property
    def name(self) -> str:
        return "between"

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column.between(value[0], value[1]))


class NotBetweenOperator(StoreOperator):
    arity = Arity.BINARY
    shape = ValueShape.PAIR

    @property
    def name(self) -> str:
        return "not between"

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", ~column.between(value[0], value[1]))
