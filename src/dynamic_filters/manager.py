"""
DynamicFilter: the filter/search/sort facade.

Each call takes the current configuration snapshot once and builds the
evaluators it needs from it, so a concurrent ``configure()`` is either seen
completely or not at all.

Example::

    filters = DynamicFilter({"search": {"min_term_length": 3}})
    stmt, page = filters.apply_request(
        select(Post),
        "status=published&views[gt]=100&search=python&sort=-created_at&page=2",
        searchable=["title", "body"],
    )
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, NamedTuple

from .config import ConfigStore
from .evaluator import FilterEvaluator
from .operators import DEFAULT_STORE_REGISTRY
from .pagination import PageRequest, PaginationParser
from .query_string import parse_query
from .relationships import RelationshipPredicateBuilder
from .search import SearchEvaluator
from .sorting import SortEvaluator

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping, Sequence
    from datetime import datetime
    from zoneinfo import ZoneInfo

    from sqlalchemy import Select

    from .config import FilterConfig
    from .registry import OperatorRegistry
    from .strategy import StoreOperatorRegistry

logger = logging.getLogger("dynamic_filters.manager")


class AppliedRequest(NamedTuple):
    """Result of ``DynamicFilter.apply_request``."""

    statement: Select[Any]
    page: PageRequest | None


class DynamicFilter:
    """Facade over the filter, search, sort and pagination evaluators."""

    def __init__(
        self,
        config: FilterConfig | Mapping[str, Any] | None = None,
        *,
        store: StoreOperatorRegistry = DEFAULT_STORE_REGISTRY,
        clock: Callable[[ZoneInfo], datetime] | None = None,
    ) -> None:
        self._config = ConfigStore(config)
        self._store = store
        self._clock = clock
        self._pagination = PaginationParser()

    @property
    def config(self) -> FilterConfig:
        return self._config.snapshot

    # ------------------------------------------------------------------
    # Evaluators (built per call from one snapshot)
    # ------------------------------------------------------------------

    def _filter_evaluator(
        self, config: FilterConfig, operators: OperatorRegistry
    ) -> FilterEvaluator:
        return FilterEvaluator(config, operators, store=self._store, clock=self._clock)

    def _search_evaluator(self, config: FilterConfig) -> SearchEvaluator:
        return SearchEvaluator(
            config.search,
            dialect=config.dialect,
            relationships=RelationshipPredicateBuilder(config.max_nesting_level),
            store=self._store,
        )

    # ------------------------------------------------------------------
    # Statement transforms
    # ------------------------------------------------------------------

    def filter(
        self,
        stmt: Select[Any],
        filters: Mapping[str, Any] | None,
        *,
        model: type[Any] | None = None,
    ) -> Select[Any]:
        config, operators = self._config.state()
        return self._filter_evaluator(config, operators).apply(
            stmt, filters, model=model
        )

    def search(
        self,
        stmt: Select[Any],
        term: str | None,
        searchable: Sequence[str] | None = None,
        mode: str | None = None,
        *,
        model: type[Any] | None = None,
    ) -> Select[Any]:
        if term is None or not str(term).strip():
            return stmt
        return self._search_evaluator(self._config.snapshot).apply(
            stmt, term, searchable, mode, model=model
        )

    def sort(
        self,
        stmt: Select[Any],
        sort: str | Sequence[str] | None,
        allowed: Sequence[str] | Mapping[str, Any] | None = None,
        *,
        model: type[Any] | None = None,
    ) -> Select[Any]:
        return SortEvaluator(self._config.snapshot.sort).apply(
            stmt, sort, allowed, model=model
        )

    def paginate(
        self,
        stmt: Select[Any],
        params: Mapping[str, Any],
    ) -> tuple[Select[Any], PageRequest]:
        page = self._pagination.parse(params, self._config.snapshot.pagination)
        return page.apply(stmt), page

    def apply_request(
        self,
        stmt: Select[Any],
        params: str | Mapping[str, Any] | Iterable[tuple[str, Any]],
        *,
        model: type[Any] | None = None,
        searchable: Sequence[str] | None = None,
        allowed: Sequence[str] | Mapping[str, Any] | None = None,
        paginate: bool = True,
    ) -> AppliedRequest:
        """Parse *params* and chain filter, search, sort and pagination."""
        config, operators = self._config.state()
        data = parse_query(params, repeatable=(config.sort.param,))
        reserved = {
            config.search.param,
            config.sort.param,
            config.pagination.page_name,
            config.pagination.per_page_name,
        }
        filters = {k: v for k, v in data.items() if k not in reserved}

        stmt = self._filter_evaluator(config, operators).apply(
            stmt, filters, model=model
        )
        term = data.get(config.search.param)
        if term is not None and str(term).strip():
            stmt = self._search_evaluator(config).apply(
                stmt, str(term), searchable, model=model
            )
        stmt = SortEvaluator(config.sort).apply(
            stmt, data.get(config.sort.param), allowed, model=model
        )

        page = None
        if paginate:
            page = self._pagination.parse(data, config.pagination)
            stmt = page.apply(stmt)
        return AppliedRequest(stmt, page)

    # ------------------------------------------------------------------
    # Configuration accessors
    # ------------------------------------------------------------------

    def get_operators(self) -> dict[str, str]:
        return self._config.operators.to_dict()

    def get_operator(self, key: str) -> str | None:
        return self.get_operators().get(key.strip().lower())

    def has_operator(self, key: str) -> bool:
        return self._config.operators.exists(key)

    def get_global_whitelist(self) -> list[str]:
        return list(self._config.snapshot.global_whitelist)

    def get_search_config(self) -> dict[str, Any]:
        return self._config.snapshot.search.model_dump()

    def set_search_config(self, settings: Mapping[str, Any]) -> None:
        self._config.update({"search": dict(settings)})

    def get_blacklisted_terms(self) -> list[str]:
        return sorted(self._config.snapshot.search.blacklist)

    def get_pagination_config(self) -> dict[str, Any]:
        return self._config.snapshot.pagination.model_dump()

    def get_custom_filters(self) -> dict[str, Any]:
        return dict(self._config.snapshot.custom_filters)

    def get_filter_presets(self) -> dict[str, dict[str, Any]]:
        return dict(self._config.snapshot.presets)

    def get_config(self, key: str, default: Any = None) -> Any:
        return self._config.snapshot.get(key, default)

    def set_config(self, key: str, value: Any) -> None:
        self._config.set(key, value)

    def configure(self, overrides: Mapping[str, Any]) -> FilterConfig:
        """Deep-merge *overrides* into the current configuration."""
        return self._config.update(overrides)

    def validate_search_term(self, term: str | None) -> dict[str, Any]:
        """Return ``{valid, message, error}`` for a single search term."""
        text = (term or "").strip()
        settings = self._config.snapshot.search
        if not text:
            return {
                "valid": False,
                "message": "Search term cannot be empty.",
                "error": "EMPTY_SEARCH_TERM",
            }
        if len(text) < settings.min_term_length:
            return {
                "valid": False,
                "message": (
                    f"Search term must be at least {settings.min_term_length} "
                    f"character(s) long. Current length: {len(text)}."
                ),
                "error": "SEARCH_TERM_TOO_SHORT",
            }
        if text.lower() in settings.blacklist:
            return {
                "valid": False,
                "message": "The provided search term is not allowed.",
                "error": "SEARCH_TERM_BLACKLISTED",
            }
        return {"valid": True, "message": "Search term is valid.", "error": None}

    def is_search_term_valid(self, term: str | None) -> bool:
        return bool(self.validate_search_term(term)["valid"])


_default_manager: DynamicFilter | None = None
_default_lock = threading.Lock()


def get_default_manager() -> DynamicFilter:
    """Process-wide facade, created with the default configuration on first use."""
    global _default_manager
    if _default_manager is None:
        with _default_lock:
            if _default_manager is None:
                _default_manager = DynamicFilter()
                logger.debug("Created default DynamicFilter manager")
    return _default_manager


def set_default_manager(manager: DynamicFilter | None) -> None:
    """Replace (or with ``None`` reset) the process-wide facade."""
    global _default_manager
    with _default_lock:
        _default_manager = manager
