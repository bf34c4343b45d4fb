"""
Sort expression parsing and application.

Directive grammar (first match wins): a leading direction indicator
(``-created_at``), a trailing indicator (``created_at-``), or
``field,direction`` with the direction defaulting to ``asc``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, func, select
from sqlalchemy.orm import aliased, contains_eager, selectinload

from .exceptions import (
    EmptySortFieldError,
    FieldNotFoundError,
    InvalidSortDirectionError,
    SortFieldNotAllowedError,
    UnknownRelationshipError,
)
from .introspection import (
    column_attribute,
    is_collection,
    model_name,
    primary_key_attributes,
    relationship_attribute,
    resolve_model,
    sortable_fields,
    target_model,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from sqlalchemy import Select

    from .config import SortSettings

    CustomSort = Callable[[Select[Any], str], Select[Any]]

logger = logging.getLogger("dynamic_filters.sorting")

DIRECTIONS = ("asc", "desc")


@dataclass(frozen=True)
class SortDirective:
    field: str
    direction: str = "asc"

    @property
    def descending(self) -> bool:
        return self.direction == "desc"


class SortParser:
    """Parse ``;``-delimited sort strings (or sequences) into directives."""

    def __init__(self, settings: SortSettings) -> None:
        self.settings = settings

    def parse_directive(self, raw: str) -> SortDirective:
        """
        Parse one directive.

        Raises:
            EmptySortFieldError: No field name.
            InvalidSortDirectionError: Direction is not ``asc``/``desc``.
        """
        text = str(raw).strip()
        if not text:
            raise EmptySortFieldError(str(raw))

        indicators = self.settings.direction_indicators
        if text[0] in indicators:
            field, direction = text[1:].strip(), indicators[text[0]]
        elif text[-1] in indicators:
            field, direction = text[:-1].strip(), indicators[text[-1]]
        else:
            field, _, direction = text.partition(",")
            field = field.strip()
            direction = direction.strip() or self.settings.default_direction

        if not field:
            raise EmptySortFieldError(str(raw))
        direction = direction.lower()
        if direction not in DIRECTIONS:
            raise InvalidSortDirectionError(direction)
        return SortDirective(field, direction)

    def parse(self, sort: str | Sequence[str]) -> list[SortDirective]:
        """Empty segments are skipped; order is kept."""
        if isinstance(sort, str):
            items: Sequence[str] = sort.split(self.settings.delimiter)
        else:
            items = sort
        return [self.parse_directive(item) for item in items if str(item).strip()]


@dataclass(frozen=True)
class _SortPlan:
    directive: SortDirective
    custom: CustomSort | None = None
    relations: tuple[str, ...] = ()
    column: str = ""
    collection: bool = False


class SortEvaluator:
    """Validate every directive, then apply them in order."""

    def __init__(self, settings: SortSettings) -> None:
        self.settings = settings
        self.parser = SortParser(settings)

    def apply(
        self,
        stmt: Select[Any],
        sort: str | Sequence[str] | None,
        allowed: Sequence[str] | Mapping[str, Any] | None = None,
        *,
        model: type[Any] | None = None,
    ) -> Select[Any]:
        """
        Return *stmt* ordered by *sort*.

        Raises:
            SortError: Any parse or allow-list failure; nothing is applied.
        """
        if sort is None:
            sort = self.settings.default_sort
            if sort is None:
                return stmt

        directives = self.parser.parse(sort)
        if not directives:
            return stmt

        entity = resolve_model(stmt, model)
        names, custom = self._allow_list(entity, allowed)
        plans = [self._plan(entity, d, names, custom) for d in directives]

        aliases: dict[str, Any] = {}
        for plan in plans:
            stmt = self._apply_plan(stmt, entity, plan, aliases)
        logger.debug(
            "Sorted %s by %s",
            model_name(entity),
            [(d.field, d.direction) for d in directives],
        )
        return stmt

    def _allow_list(
        self,
        entity: type[Any],
        allowed: Sequence[str] | Mapping[str, Any] | None,
    ) -> tuple[list[str] | None, dict[str, CustomSort]]:
        if isinstance(allowed, Mapping):
            custom = {k: v for k, v in allowed.items() if callable(v)}
            return list(allowed), custom
        if allowed:
            return list(allowed), {}
        declared = sortable_fields(entity)
        if declared:
            return declared, {}
        if self.settings.allow_any_column:
            return None, {}
        return [], {}

    def _plan(
        self,
        entity: type[Any],
        directive: SortDirective,
        names: list[str] | None,
        custom: dict[str, CustomSort],
    ) -> _SortPlan:
        field = directive.field
        if names is not None and field not in names:
            raise SortFieldNotAllowedError(field, names)
        if field in custom:
            return _SortPlan(directive, custom=custom[field])

        *relations, column = field.split(".")
        collection = False
        try:
            current = entity
            for relation in relations:
                rel_attr = relationship_attribute(current, relation)
                collection = collection or is_collection(rel_attr)
                current = target_model(rel_attr)
            column_attribute(current, column)
        except (FieldNotFoundError, UnknownRelationshipError) as exc:
            raise SortFieldNotAllowedError(field, names, reason=exc.message) from exc
        return _SortPlan(
            directive,
            relations=tuple(relations),
            column=column,
            collection=collection,
        )

    @staticmethod
    def _apply_plan(
        stmt: Select[Any],
        entity: type[Any],
        plan: _SortPlan,
        aliases: dict[str, Any],
    ) -> Select[Any]:
        direction = plan.directive.direction
        if plan.custom is not None:
            return plan.custom(stmt, direction)

        if not plan.relations:
            column = getattr(entity, plan.column)
            if plan.directive.descending:
                return stmt.order_by(column.desc())
            return stmt.order_by(column.asc())
        if plan.collection:
            return SortEvaluator._apply_collection_plan(stmt, entity, plan)

        parent: Any = entity
        path = ""
        loader: Any = None
        joined = False
        for relation in plan.relations:
            path = f"{path}.{relation}" if path else relation
            rel_attr = getattr(parent, relation)
            alias = aliases.get(path)
            if alias is None:
                alias = aliased(target_model(rel_attr))
                stmt = stmt.outerjoin(alias, rel_attr)
                aliases[path] = alias
                joined = True
            hop = rel_attr.of_type(alias)
            if loader is None:
                loader = contains_eager(hop)
            else:
                loader = loader.contains_eager(hop)
            parent = alias

        if joined:
            stmt = stmt.options(loader)

        column = getattr(parent, plan.column)
        first_hop = getattr(entity, plan.relations[0])
        tie_break = sorted(first_hop.property.local_columns, key=lambda c: c.key)
        if plan.directive.descending:
            return stmt.order_by(column.desc(), *(c.desc() for c in tie_break))
        return stmt.order_by(column.asc(), *(c.asc() for c in tie_break))

    @staticmethod
    def _apply_collection_plan(
        stmt: Select[Any],
        entity: type[Any],
        plan: _SortPlan,
    ) -> Select[Any]:
        """
        Order by ``min`` (asc) or ``max`` (desc) of the related column.

        A path through a collection is never joined into *stmt*: one row per
        parent keeps ``LIMIT``/``OFFSET`` meaningful. The aggregate comes from
        a scalar subquery correlated on the primary key, and the path is
        loaded with ``selectinload``.
        """
        aggregate = func.max if plan.directive.descending else func.min
        outer: Any = aliased(entity)
        parent: Any = outer
        hops: list[tuple[Any, Any]] = []
        for relation in plan.relations:
            rel_attr = getattr(parent, relation)
            alias = aliased(target_model(rel_attr))
            hops.append((alias, rel_attr))
            parent = alias

        keys = primary_key_attributes(entity)
        subquery = select(aggregate(getattr(parent, plan.column))).select_from(outer)
        for alias, rel_attr in hops:
            subquery = subquery.join(alias, rel_attr)
        subquery = subquery.where(
            and_(*(getattr(outer, key.key) == key for key in keys))
        )
        ordering = subquery.correlate(entity).scalar_subquery()

        current: Any = entity
        loader: Any = None
        for relation in plan.relations:
            rel_attr = getattr(current, relation)
            loader = (
                selectinload(rel_attr)
                if loader is None
                else loader.selectinload(rel_attr)
            )
            current = target_model(rel_attr)
        stmt = stmt.options(loader)

        if plan.directive.descending:
            return stmt.order_by(ordering.desc(), *(key.desc() for key in keys))
        return stmt.order_by(ordering.asc(), *(key.asc() for key in keys))
