"""
Configuration snapshot and store.

``FilterConfig`` is an immutable pydantic model. ``ConfigStore`` holds the
current snapshot behind a single reference: readers take the reference
without locking, writers validate a complete new snapshot under a lock and
publish it by swapping the reference.
"""

from __future__ import annotations

import copy
import logging
import threading
from typing import TYPE_CHECKING, Any, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import ConfigurationError
from .registry import DEFAULT_OPERATOR_REGISTRY, OperatorRegistry

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger("dynamic_filters.config")

DEFAULT_BLACKLIST: frozenset[str] = frozenset(
    {
        "the", "and", "or", "a", "an", "in", "on", "at", "to", "for", "of",
        "with", "as", "by", "is", "it", "that", "this", "be", "are", "was",
        "were", "will", "would", "can", "could", "should", "has", "have",
        "had", "not", "but", "what", "which", "when", "where", "who", "whom",
        "how", "why", "if", "then", "else", "from", "into", "about", "after",
        "before", "between", "under", "over", "above", "below", "up", "down",
        "out", "off", "again", "further", "once", "here", "there", "all",
        "any", "both", "each", "few", "more", "most", "other", "some", "such",
        "no", "nor", "only", "own", "same", "so", "than", "too", "very", "s",
        "t", "just", "don", "now", "d", "ll", "m", "o", "re", "ve", "y",
        "ain", "aren", "couldn", "didn", "doesn", "hadn", "hasn", "haven",
        "isn", "ma", "mightn", "mustn", "needn", "shan", "shouldn", "wasn",
        "weren", "won", "wouldn",
    }
)  # fmt: skip


class SearchSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    param: str = "search"
    min_term_length: int = Field(default=2, ge=1)
    max_terms: int = Field(default=5, ge=1)
    blacklist: frozenset[str] = DEFAULT_BLACKLIST
    mode: Literal["and", "or"] = "or"
    case_sensitive: bool = False
    enable_wildcards: bool = True

    @field_validator("blacklist", mode="before")
    @classmethod
    def _lowercase_blacklist(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = [value]
        if isinstance(value, list | tuple | set | frozenset):
            return frozenset(str(v).strip().lower() for v in value)
        return value

    @field_validator("mode", mode="before")
    @classmethod
    def _lowercase_mode(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value


class SortSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    param: str = "sort"
    default_direction: Literal["asc", "desc"] = "asc"
    direction_indicators: dict[str, Literal["asc", "desc"]] = Field(
        default_factory=lambda: {"+": "asc", "-": "desc"}
    )
    allow_any_column: bool = True
    default_sort: str | None = None
    delimiter: str = Field(default=";", min_length=1)

    @field_validator("direction_indicators")
    @classmethod
    def _single_character_indicators(cls, value: dict[str, str]) -> dict[str, str]:
        for indicator in value:
            if len(indicator) != 1:
                raise ValueError(
                    f"direction indicator {indicator!r} must be one character"
                )
        return value


class PaginationSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    per_page: int = Field(default=10, ge=1)
    max_per_page: int = Field(default=100, ge=1)
    page_name: str = "page"
    per_page_name: str = "per_page"


class DateSettings(BaseModel):
    """Relative date ranges: timezone, optional strftime format, week start."""

    model_config = ConfigDict(frozen=True)

    timezone: str = "UTC"
    format: str | None = None
    week_start: Literal["monday", "sunday"] = "monday"

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone {value!r}") from exc
        return value


class DebugSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    log_queries: bool = False


class FilterConfig(BaseModel):
    """Immutable configuration snapshot."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    operators: dict[str, str] = Field(default_factory=dict)
    global_whitelist: list[str] = Field(default_factory=list)
    max_filters: int = Field(default=50, ge=1)
    max_nesting_level: int = Field(default=5, ge=1)
    dedupe_in_values: bool = True
    between_requires_numeric: bool = False
    dialect: str | None = None
    search: SearchSettings = Field(default_factory=SearchSettings)
    sort: SortSettings = Field(default_factory=SortSettings)
    pagination: PaginationSettings = Field(default_factory=PaginationSettings)
    date: DateSettings = Field(default_factory=DateSettings)
    debug: DebugSettings = Field(default_factory=DebugSettings)
    custom_filters: dict[str, Any] = Field(default_factory=dict)
    presets: dict[str, dict[str, Any]] = Field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None = None) -> FilterConfig:
        """
        Validate *data* into a snapshot.

        Raises:
            ConfigurationError: With a ``{path: [messages]}`` error map.
        """
        try:
            return cls.model_validate(dict(data or {}))
        except ValidationError as exc:
            raise _configuration_error(exc) from exc

    def get(self, key: str, default: Any = None) -> Any:
        """Dotted lookup (``search.min_term_length``) on the dumped snapshot."""
        node: Any = self.model_dump()
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def with_value(self, key: str, value: Any) -> FilterConfig:
        """Return a new snapshot with the dotted *key* set to *value*."""
        data = self.model_dump()
        parts = key.split(".")
        node = data
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = value
        return FilterConfig.from_mapping(data)

    def merged(self, overrides: Mapping[str, Any]) -> FilterConfig:
        """Return a new snapshot with *overrides* deep-merged on top."""
        return FilterConfig.from_mapping(_deep_merge(self.model_dump(), overrides))

    def operator_registry(self) -> OperatorRegistry:
        if not self.operators:
            return DEFAULT_OPERATOR_REGISTRY
        return DEFAULT_OPERATOR_REGISTRY.merge(self.operators)


def _deep_merge(base: dict[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    result = dict(base)
    for key, value in overrides.items():
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            result[key] = _deep_merge(current, value)
        else:
            result[key] = copy.copy(value)
    return result


def _configuration_error(exc: ValidationError) -> ConfigurationError:
    errors: dict[str, list[str]] = {}
    for err in exc.errors():
        path = ".".join(str(p) for p in err["loc"]) or "__root__"
        errors.setdefault(path, []).append(err["msg"])
    return ConfigurationError("Invalid filter configuration", errors=errors)


class ConfigStore:
    """Holds the current ``FilterConfig`` snapshot and its operator table."""

    def __init__(self, config: FilterConfig | Mapping[str, Any] | None = None) -> None:
        snapshot = (
            config
            if isinstance(config, FilterConfig)
            else FilterConfig.from_mapping(config)
        )
        self._lock = threading.Lock()
        self._state = (snapshot, snapshot.operator_registry())

    @property
    def snapshot(self) -> FilterConfig:
        return self._state[0]

    @property
    def operators(self) -> OperatorRegistry:
        return self._state[1]

    def state(self) -> tuple[FilterConfig, OperatorRegistry]:
        """Snapshot and operator table published together."""
        return self._state

    def replace(self, config: FilterConfig | Mapping[str, Any]) -> FilterConfig:
        snapshot = (
            config
            if isinstance(config, FilterConfig)
            else FilterConfig.from_mapping(config)
        )
        with self._lock:
            self._publish(snapshot)
        return snapshot

    def update(self, overrides: Mapping[str, Any]) -> FilterConfig:
        with self._lock:
            snapshot = self._state[0].merged(overrides)
            self._publish(snapshot)
        return snapshot

    def set(self, key: str, value: Any) -> FilterConfig:
        with self._lock:
            snapshot = self._state[0].with_value(key, value)
            self._publish(snapshot)
        return snapshot

    def _publish(self, snapshot: FilterConfig) -> None:
        self._state = (snapshot, snapshot.operator_registry())
        logger.info(
            "Filter configuration updated (max_filters=%d, operators=%d)",
            snapshot.max_filters,
            len(self._state[1]),
        )
