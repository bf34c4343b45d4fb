"""
Declarative model mixin.

Example::

    class Post(DynamicFilterMixin, Base):
        __tablename__ = "posts"
        __filterable__ = ["status", "views", "author.*"]
        __searchable__ = ["title", "body", "author.name"]
        __sortable__ = ["created_at", "title", "author.name"]
        __casts__ = {"views": "int"}

    stmt = Post.filter_query({"views": {"gte": "100"}})
    stmt = Post.sort_query("-created_at;title", stmt)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import select

from .manager import get_default_manager

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from sqlalchemy import Select

    from .manager import DynamicFilter


class DynamicFilterMixin:
    """Per-model filter declarations and class-level query helpers."""

    __filterable__ = ()
    __searchable__ = ()
    __sortable__ = ()
    __casts__ = {}

    @classmethod
    def _statement(cls, stmt: Select[Any] | None) -> Select[Any]:
        return stmt if stmt is not None else select(cls)

    @classmethod
    def filter_query(
        cls,
        filters: Mapping[str, Any] | None,
        stmt: Select[Any] | None = None,
        *,
        manager: DynamicFilter | None = None,
    ) -> Select[Any]:
        return (manager or get_default_manager()).filter(
            cls._statement(stmt), filters, model=cls
        )

    @classmethod
    def search_query(
        cls,
        term: str | None,
        stmt: Select[Any] | None = None,
        mode: str | None = None,
        *,
        manager: DynamicFilter | None = None,
    ) -> Select[Any]:
        return (manager or get_default_manager()).search(
            cls._statement(stmt), term, list(cls.__searchable__), mode, model=cls
        )

    @classmethod
    def sort_query(
        cls,
        sort: str | Sequence[str] | None,
        stmt: Select[Any] | None = None,
        *,
        manager: DynamicFilter | None = None,
    ) -> Select[Any]:
        return (manager or get_default_manager()).sort(
            cls._statement(stmt), sort, list(cls.__sortable__) or None, model=cls
        )
