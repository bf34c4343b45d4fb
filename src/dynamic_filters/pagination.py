"""PaginationParser: page/per-page from query params."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, NamedTuple

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy import Select

    from .config import PaginationSettings


class PageRequest(NamedTuple):
    page: int
    per_page: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page

    @property
    def limit(self) -> int:
        return self.per_page

    def apply(self, stmt: Select[Any]) -> Select[Any]:
        return stmt.limit(self.limit).offset(self.offset)


class PaginationParser:
    """Parse page and per-page from query params."""

    def parse(
        self,
        query_params: Mapping[str, Any],
        settings: PaginationSettings,
    ) -> PageRequest:
        page = self._int_param(query_params.get(settings.page_name))
        if page is None or page < 1:
            page = 1
        per_page = self._int_param(query_params.get(settings.per_page_name))
        if per_page is None:
            per_page = settings.per_page
        per_page = min(settings.max_per_page, max(1, per_page))
        return PageRequest(page=page, per_page=per_page)

    @staticmethod
    def _int_param(value: Any) -> int | None:
        if value is None or isinstance(value, bool):
            return None
        try:
            return int(str(value).strip())
        except (TypeError, ValueError):
            return None
