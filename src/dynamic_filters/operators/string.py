"""Pattern store operators: like, not like, ilike, not ilike.

Patterns arrive fully built (wildcards already placed); ``escape`` is set
so that search terms escaped with a backslash stay literal.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from ..strategy import StoreOperator

if TYPE_CHECKING:
    from sqlalchemy.sql.elements import ColumnElement

LIKE_ESCAPE = "\\"


class LikeOperator(StoreOperator):
    @property
    def name(self) -> str:
        return "like"

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column.like(value, escape=LIKE_ESCAPE))


class NotLikeOperator(StoreOperator):
    @property
    def name(self) -> str:
        return "not like"

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column.not_like(value, escape=LIKE_ESCAPE))


class ILikeOperator(StoreOperator):
    @property
    def name(self) -> str:
        return "ilike"

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column.ilike(value, escape=LIKE_ESCAPE))


class NotILikeOperator(StoreOperator):
    @property
    def name(self) -> str:
        return "not ilike"

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        return cast(
            "ColumnElement[bool]", column.not_ilike(value, escape=LIKE_ESCAPE)
        )
