"""
Relationship traversal for dotted field paths.

``author.name`` becomes ``EXISTS`` scoped to the ``author`` relationship:
``Post.author.has(Author.name == ...)`` for scalar relationships and
``Post.comments.any(...)`` for collections. Multi-hop paths recurse one
segment at a time.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

from .exceptions import NestingTooDeepError
from .introspection import is_collection, relationship_attribute, target_model

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy import ColumnElement

    LeafBuilder = Callable[[type[Any], str], ColumnElement[bool] | None]

logger = logging.getLogger("dynamic_filters.relationships")


class RelationshipPredicateBuilder:
    """Builds existence predicates for ``relation.nested.column`` paths."""

    def __init__(self, max_nesting_level: int = 5) -> None:
        self.max_nesting_level = max_nesting_level

    def check_depth(self, depth: int) -> None:
        if depth > self.max_nesting_level:
            raise NestingTooDeepError(depth, self.max_nesting_level)

    def build(
        self,
        model: type[Any],
        path: str,
        leaf: LeafBuilder,
        depth: int = 0,
    ) -> ColumnElement[bool] | None:
        """
        Build the predicate for *path* on *model*.

        Args:
            model: The model the path starts from.
            path: Dotted path; the first segment must be a relationship.
            leaf: ``leaf(target_model, column_name)`` builds the innermost
                condition, or returns ``None`` when there is nothing to match.
            depth: Nesting depth already consumed by enclosing groups/hops.

        Raises:
            UnknownRelationshipError: If a segment is not a relationship.
            NestingTooDeepError: If the hops exceed ``max_nesting_level``.
        """
        relation, nested = path.split(".", 1)
        depth += 1
        self.check_depth(depth)

        rel_attr = relationship_attribute(model, relation)
        target = target_model(rel_attr)

        if "." in nested:
            inner = self.build(target, nested, leaf, depth)
        else:
            inner = leaf(target, nested)

        if inner is None:
            return None

        logger.debug(
            "Relationship predicate %s.%s (depth=%d)", model.__name__, relation, depth
        )
        if is_collection(rel_attr):
            return cast("ColumnElement[bool]", rel_attr.any(inner))
        return cast("ColumnElement[bool]", rel_attr.has(inner))
