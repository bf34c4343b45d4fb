"""
Filter expression evaluation.

Walks a request filter mapping (plain values, operator mappings, ``_group``
trees, legacy ``and``/``or`` keys, presets and custom filter keys) and turns
it into one SQLAlchemy boolean expression attached to the statement.

Example::

    evaluator = FilterEvaluator(FilterConfig(), DEFAULT_OPERATOR_REGISTRY)
    stmt = evaluator.apply(
        select(Post),
        {"status": "published", "views": {"gt": 100}, "author.name": "John"},
    )
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, or_
from sqlalchemy.exc import SQLAlchemyError

from .custom import CustomFilterRegistry
from .dates import RelativeDateResolver
from .exceptions import (
    DynamicFilterError,
    FieldNotFilterableError,
    FilterError,
    InvalidInputShapeError,
    OperandTypeMismatchError,
    TooManyFiltersError,
    UnknownPresetError,
)
from .introspection import (
    column_attribute,
    field_cast_rules,
    filterable_fields,
    model_name,
    resolve_model,
)
from .operands import coerce_operand
from .operators import DEFAULT_STORE_REGISTRY
from .registry import OperatorKind
from .relationships import RelationshipPredicateBuilder

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from datetime import datetime
    from zoneinfo import ZoneInfo

    from sqlalchemy import ColumnElement, Select

    from .config import FilterConfig
    from .custom import CustomFilter
    from .operands import Operand
    from .registry import OperatorDefinition, OperatorRegistry
    from .strategy import StoreOperatorRegistry

logger = logging.getLogger("dynamic_filters.evaluator")

GROUP_KEY = "_group"
PRESET_KEY = "_preset"
LEGACY_GROUP_KEYS = ("and", "or")
BOOLEANS = ("and", "or")
IGNORED_PARAMS = ("page", "per_page", "sort", "search")


def _combine(
    boolean: str, predicates: Sequence[ColumnElement[bool]]
) -> ColumnElement[bool] | None:
    if not predicates:
        return None
    if len(predicates) == 1:
        return predicates[0]
    return or_(*predicates) if boolean == "or" else and_(*predicates)


def _type_name(value: Any) -> str:
    return type(value).__name__


class FilterEvaluator:
    """
    Evaluate a filter mapping against a ``Select``.

    One evaluator is built per call from a single configuration snapshot.
    """

    def __init__(
        self,
        config: FilterConfig,
        operators: OperatorRegistry,
        *,
        store: StoreOperatorRegistry = DEFAULT_STORE_REGISTRY,
        clock: Callable[[ZoneInfo], datetime] | None = None,
        custom_filters: CustomFilterRegistry | None = None,
    ) -> None:
        self.config = config
        self.operators = operators
        self.store = store
        self.relationships = RelationshipPredicateBuilder(config.max_nesting_level)
        self.dates = RelativeDateResolver(config.date, clock)
        self.custom_filters = custom_filters or CustomFilterRegistry(
            config.custom_filters
        )
        self.ignored_params = frozenset(
            {
                *IGNORED_PARAMS,
                config.pagination.page_name,
                config.pagination.per_page_name,
                config.sort.param,
                config.search.param,
            }
        )

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def apply(
        self,
        stmt: Select[Any],
        filters: Mapping[str, Any] | None,
        *,
        model: type[Any] | None = None,
    ) -> Select[Any]:
        """
        Return *stmt* with the predicates of *filters* attached.

        Raises:
            InvalidInputShapeError: *filters* (or a group) is malformed.
            TooManyFiltersError: More top-level keys than ``max_filters``.
            FilterError: Any other evaluation failure; nothing is attached.
        """
        if filters is None:
            return stmt
        if not isinstance(filters, Mapping):
            raise InvalidInputShapeError(
                f"Filters must be a mapping, {_type_name(filters)} given",
                value_type=_type_name(filters),
            )
        if not filters:
            return stmt

        entity = resolve_model(stmt, model)
        tree = self.expand_presets(
            {k: v for k, v in filters.items() if k not in self.ignored_params}
        )
        if len(tree) > self.config.max_filters:
            raise TooManyFiltersError(len(tree), self.config.max_filters)

        custom = [(k, v) for k, v in tree.items() if k in self.custom_filters]
        handlers = self._validated_custom_filters(custom)
        regular = {k: v for k, v in tree.items() if k not in self.custom_filters}

        clause = _combine("and", self.tree_predicates(entity, regular, depth=0))
        if clause is not None:
            stmt = stmt.where(clause)
        for (key, value), handler in zip(custom, handlers, strict=True):
            stmt = handler.apply(stmt, value, key)

        if self.config.debug.log_queries:
            logger.info(
                "Filters applied to %s: %s", model_name(entity), stmt.whereclause
            )
        return stmt

    def expand_presets(self, tree: dict[str, Any]) -> dict[str, Any]:
        """Merge ``_preset`` names (in order) under the request filters."""
        if PRESET_KEY not in tree:
            return tree
        names = tree[PRESET_KEY]
        if isinstance(names, str):
            names = [names]
        if not isinstance(names, list | tuple):
            raise InvalidInputShapeError(
                "_preset must be a preset name or a list of names",
                value_type=_type_name(names),
            )

        merged: dict[str, Any] = {}
        for name in names:
            preset = self.config.presets.get(str(name))
            if preset is None:
                raise UnknownPresetError(str(name), list(self.config.presets))
            merged.update(preset)
        merged.update({k: v for k, v in tree.items() if k != PRESET_KEY})
        logger.debug("Expanded presets %s", names)
        return merged

    def _validated_custom_filters(
        self, items: Sequence[tuple[str, Any]]
    ) -> list[CustomFilter]:
        handlers: list[CustomFilter] = []
        for key, value in items:
            handler = self.custom_filters.get(key)
            if not handler.validate(value):
                raise OperandTypeMismatchError(
                    f"Invalid value for custom filter '{key}'",
                    field=key,
                    value_type=_type_name(value),
                )
            handlers.append(handler)
        return handlers

    # ------------------------------------------------------------------
    # Tree walk
    # ------------------------------------------------------------------

    def tree_predicates(
        self,
        model: type[Any],
        tree: Mapping[str, Any],
        depth: int,
    ) -> list[ColumnElement[bool]]:
        predicates: list[ColumnElement[bool]] = []
        for key, value in tree.items():
            if not isinstance(key, str) or not key:
                raise InvalidInputShapeError(
                    "Field name must be a non-empty string",
                    value_type=_type_name(key),
                )
            if key == GROUP_KEY:
                groups = value if isinstance(value, list | tuple) else [value]
                members = [self.group(model, g, depth + 1) for g in groups]
                predicate = _combine("and", [m for m in members if m is not None])
            elif key in LEGACY_GROUP_KEYS:
                predicate = self._legacy_group(model, key, value, depth + 1)
            else:
                predicate = self.field(model, key, value, depth)
            if predicate is not None:
                predicates.append(predicate)
        return predicates

    def group(
        self,
        model: type[Any],
        group: Any,
        depth: int,
    ) -> ColumnElement[bool] | None:
        """``{boolean, filters, nested}`` -> one parenthesised predicate."""
        if not isinstance(group, Mapping):
            raise InvalidInputShapeError(
                "A filter group must be a mapping with 'boolean', 'filters' "
                "and 'nested' keys",
                value_type=_type_name(group),
            )
        self.relationships.check_depth(depth)

        boolean = str(group.get("boolean", "and")).strip().lower()
        if boolean not in BOOLEANS:
            raise InvalidInputShapeError(
                f"Invalid boolean operator: {boolean}. Must be 'and' or 'or'",
                boolean=boolean,
            )
        filters = group.get("filters") or {}
        nested = group.get("nested") or []
        if isinstance(nested, Mapping):
            nested = [nested]
        if not isinstance(filters, Mapping) or not isinstance(nested, list | tuple):
            raise InvalidInputShapeError(
                "Group 'filters' must be a mapping and 'nested' a list of groups"
            )

        members = self.tree_predicates(model, filters, depth)
        for child in nested:
            predicate = self.group(model, child, depth + 1)
            if predicate is not None:
                members.append(predicate)
        return _combine(boolean, members)

    def _legacy_group(
        self,
        model: type[Any],
        boolean: str,
        value: Any,
        depth: int,
    ) -> ColumnElement[bool] | None:
        if isinstance(value, Mapping):
            return self.group(model, {"boolean": boolean, "filters": value}, depth)
        if not isinstance(value, list | tuple):
            raise InvalidInputShapeError(
                f"'{boolean}' must be a mapping or a list of mappings",
                value_type=_type_name(value),
            )
        self.relationships.check_depth(depth)
        members: list[ColumnElement[bool]] = []
        for item in value:
            if not isinstance(item, Mapping):
                raise InvalidInputShapeError(
                    f"Every '{boolean}' clause must be a mapping",
                    value_type=_type_name(item),
                )
            predicate = _combine("and", self.tree_predicates(model, item, depth))
            if predicate is not None:
                members.append(predicate)
        return _combine(boolean, members)

    # ------------------------------------------------------------------
    # Fields and operators
    # ------------------------------------------------------------------

    def field(
        self,
        model: type[Any],
        path: str,
        value: Any,
        depth: int,
    ) -> ColumnElement[bool] | None:
        """
        Predicate for one ``field: operand`` pair.

        Raises:
            FieldNotFilterableError: *path* is not whitelisted.
            FilterError: Wrapped non-library failure, with field context.
        """
        try:
            self.check_whitelist(model, path)
            if "." in path:
                return self.relationships.build(
                    model,
                    path,
                    lambda target, column: self.conditions(target, column, value),
                    depth,
                )
            return self.conditions(model, path, value)
        except DynamicFilterError as exc:
            raise exc.add_context(field=path, value_type=_type_name(value))
        except (SQLAlchemyError, TypeError, ValueError, OverflowError) as exc:
            raise FilterError(
                f'Failed to apply filter for field "{path}": {exc}',
                field=path,
                value_type=_type_name(value),
            ) from exc

    def allowed_fields(self, model: type[Any]) -> list[str]:
        return filterable_fields(model) or list(self.config.global_whitelist)

    def check_whitelist(self, model: type[Any], path: str) -> None:
        allowed = self.allowed_fields(model)
        if not allowed or path in allowed:
            return
        for entry in allowed:
            if entry.endswith(".*") and path.startswith(entry[:-1]):
                return
        raise FieldNotFilterableError(path)

    def conditions(
        self,
        model: type[Any],
        column_name: str,
        value: Any,
    ) -> ColumnElement[bool] | None:
        """All operators given for one column, AND-ed."""
        column = column_attribute(model, column_name)
        cast = field_cast_rules(model).get(column_name)

        if isinstance(value, Mapping):
            if not value:
                raise InvalidInputShapeError(
                    f"No operator given for field '{column_name}'"
                )
            predicates = [
                self.operator(column, str(key), raw, cast)
                for key, raw in value.items()
            ]
            return _combine("and", predicates)

        if isinstance(value, list | tuple):
            items = [item for item in value if item is not None and item != ""]
            if not items:
                return None
            return self.operator(column, "in", items, cast)

        return self.operator(column, "eq", value, cast)

    def operator(
        self,
        column: Any,
        key: str,
        raw: Any,
        cast: str | None,
    ) -> ColumnElement[bool]:
        definition = self.operators.resolve(key)
        try:
            operand = coerce_operand(
                definition,
                raw,
                cast=cast,
                dedupe=self.config.dedupe_in_values,
                requires_numeric=self.config.between_requires_numeric,
            )
            return self._emit(column, definition, operand)
        except DynamicFilterError as exc:
            raise exc.add_context(operator=definition.key)

    def _emit(
        self,
        column: Any,
        definition: OperatorDefinition,
        operand: Operand,
    ) -> ColumnElement[bool]:
        token = definition.store_operator
        value = operand.value

        if definition.kind is OperatorKind.RELATIVE_DATE:
            bounds = self.dates.resolve(definition.date_range or definition.key, value)
            return self.store.apply("between", column, bounds)

        if definition.kind is OperatorKind.PATTERN:
            if value is None:
                raise OperandTypeMismatchError(
                    f"The '{definition.key}' operator requires a value"
                )
            return self.store.apply(token, column, self._pattern(definition, value))

        if definition.kind is OperatorKind.COMPARISON and value is None:
            if token == "=":
                return self.store.apply("null", column, None)
            if token == "!=":
                return self.store.apply("not null", column, None)
            raise OperandTypeMismatchError(
                f"The '{definition.key}' operator does not accept null values"
            )

        return self.store.apply(token, column, value)

    @staticmethod
    def _pattern(definition: OperatorDefinition, value: Any) -> str:
        text = str(value)
        if definition.template is not None:
            return definition.template.format(value=text)
        if "%" in text:
            return text
        return f"%{text}%"
