"""
Model introspection helpers.

Resolve the entity behind a ``Select``, look up columns and relationships
with fuzzy-suggestion errors, and read the per-model declarations
(``__filterable__``, ``__searchable__``, ``__sortable__``, ``__casts__``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import inspect
from sqlalchemy.ext.hybrid import HybridExtensionType

from .exceptions import (
    FieldNotFoundError,
    InvalidInputShapeError,
    UnknownRelationshipError,
)

if TYPE_CHECKING:
    from sqlalchemy import Select
    from sqlalchemy.orm import Mapper


def resolve_model(stmt: Select[Any], model: type[Any] | None = None) -> type[Any]:
    """Return *model* or the mapped entity of the statement's first column."""
    if model is not None:
        return model
    descriptions = stmt.column_descriptions
    entity = descriptions[0].get("entity") if descriptions else None
    if entity is None:
        raise InvalidInputShapeError(
            "Cannot determine the mapped entity of the statement; pass model="
        )
    return entity


def model_name(model: type[Any]) -> str:
    return getattr(model, "__name__", repr(model))


def _mapper(model: type[Any]) -> Mapper[Any]:
    return inspect(model)  # type: ignore[no-any-return]


def declared_relationships(model: type[Any]) -> list[str]:
    return list(_mapper(model).relationships.keys())


def column_names(model: type[Any]) -> list[str]:
    """Mapped column attributes plus hybrid properties."""
    mapper = _mapper(model)
    names = list(mapper.column_attrs.keys())
    for name, descriptor in mapper.all_orm_descriptors.items():
        if (
            getattr(descriptor, "extension_type", None)
            is HybridExtensionType.HYBRID_PROPERTY
            and name not in names
        ):
            names.append(name)
    return names


def relationship_attribute(model: type[Any], name: str) -> Any:
    """
    Return the instrumented relationship attribute *name* on *model*.

    Raises:
        UnknownRelationshipError: If *model* declares no such relationship.
    """
    available = declared_relationships(model)
    if name not in available:
        raise UnknownRelationshipError(name, model_name(model), available)
    return getattr(model, name)


def column_attribute(model: type[Any], name: str) -> Any:
    """
    Return the column (or hybrid) attribute *name* on *model*.

    Raises:
        FieldNotFoundError: If *model* maps no such column.
    """
    available = column_names(model)
    if name not in available:
        raise FieldNotFoundError(name, model_name(model), available)
    return getattr(model, name)


def target_model(rel_attr: Any) -> type[Any]:
    return rel_attr.property.mapper.class_  # type: ignore[no-any-return]


def is_collection(rel_attr: Any) -> bool:
    return bool(rel_attr.property.uselist)


def primary_key_attributes(model: type[Any]) -> list[Any]:
    """Instrumented attributes of the primary key columns, in key order."""
    mapper = _mapper(model)
    return [
        getattr(model, mapper.get_property_by_column(column).key)
        for column in mapper.primary_key
    ]


def _declared_list(model: type[Any], attribute: str) -> list[str]:
    value = getattr(model, attribute, None)
    if callable(value):
        value = value()
    if not value:
        return []
    return [str(v) for v in value]


def filterable_fields(model: type[Any]) -> list[str]:
    return _declared_list(model, "__filterable__")


def searchable_fields(model: type[Any]) -> list[str]:
    return _declared_list(model, "__searchable__")


def sortable_fields(model: type[Any]) -> list[str]:
    return _declared_list(model, "__sortable__")


def field_cast_rules(model: type[Any]) -> dict[str, str]:
    return dict(getattr(model, "__casts__", None) or {})
