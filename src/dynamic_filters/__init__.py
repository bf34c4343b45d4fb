"""
Dynamic filtering, searching and sorting for SQLAlchemy ``Select`` statements.

Turns untyped request parameters (usually a query string) into safe,
whitelisted predicates::

    from dynamic_filters import DynamicFilter

    filters = DynamicFilter({"global_whitelist": ["status", "views"]})
    stmt = filters.filter(
        select(Post), {"status": "published", "views": {"gt": 100}}
    )
"""

from __future__ import annotations

from .casting import cast_value
from .config import (
    ConfigStore,
    DateSettings,
    DebugSettings,
    FilterConfig,
    PaginationSettings,
    SearchSettings,
    SortSettings,
)
from .custom import CustomFilter, CustomFilterRegistry
from .evaluator import FilterEvaluator
from .exceptions import (
    ConfigurationError,
    DynamicFilterError,
    EmptySearchTermError,
    EmptySortFieldError,
    FieldNotFilterableError,
    FieldNotFoundError,
    FilterError,
    InvalidInputShapeError,
    InvalidSearchFieldError,
    InvalidSearchModeError,
    InvalidSortDirectionError,
    NestingTooDeepError,
    OperandArityMismatchError,
    OperandTypeMismatchError,
    SearchError,
    SearchTermTooShortError,
    SortError,
    SortFieldNotAllowedError,
    TooManyFiltersError,
    UnknownPresetError,
    UnknownRelationshipError,
    UnsupportedOperatorError,
    ValueCastError,
)
from .manager import (
    AppliedRequest,
    DynamicFilter,
    get_default_manager,
    set_default_manager,
)
from .mixins import DynamicFilterMixin
from .pagination import PageRequest, PaginationParser
from .query_string import build_query_string, parse_query
from .registry import (
    DEFAULT_OPERATOR_REGISTRY,
    OperatorDefinition,
    OperatorKind,
    OperatorRegistry,
)
from .search import SearchEvaluator, SearchTermNormalizer
from .sorting import SortDirective, SortEvaluator, SortParser
from .strategy import Arity, StoreOperator, StoreOperatorRegistry, ValueShape

__all__ = [
    "DEFAULT_OPERATOR_REGISTRY",
    "AppliedRequest",
    "Arity",
    "ConfigStore",
    "ConfigurationError",
    "CustomFilter",
    "CustomFilterRegistry",
    "DateSettings",
    "DebugSettings",
    "DynamicFilter",
    "DynamicFilterError",
    "DynamicFilterMixin",
    "EmptySearchTermError",
    "EmptySortFieldError",
    "FieldNotFilterableError",
    "FieldNotFoundError",
    "FilterConfig",
    "FilterError",
    "FilterEvaluator",
    "InvalidInputShapeError",
    "InvalidSearchFieldError",
    "InvalidSearchModeError",
    "InvalidSortDirectionError",
    "NestingTooDeepError",
    "OperandArityMismatchError",
    "OperandTypeMismatchError",
    "OperatorDefinition",
    "OperatorKind",
    "OperatorRegistry",
    "PageRequest",
    "PaginationParser",
    "PaginationSettings",
    "SearchError",
    "SearchEvaluator",
    "SearchSettings",
    "SearchTermNormalizer",
    "SearchTermTooShortError",
    "SortDirective",
    "SortError",
    "SortEvaluator",
    "SortFieldNotAllowedError",
    "SortParser",
    "SortSettings",
    "StoreOperator",
    "StoreOperatorRegistry",
    "TooManyFiltersError",
    "UnknownPresetError",
    "UnknownRelationshipError",
    "UnsupportedOperatorError",
    "ValueCastError",
    "ValueShape",
    "build_query_string",
    "cast_value",
    "get_default_manager",
    "parse_query",
    "set_default_manager",
]
