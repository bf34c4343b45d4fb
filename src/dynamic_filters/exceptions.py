"""
Exception hierarchy for the filter/search/sort engine.

Every exception inherits from ``DynamicFilterError``, carries a structured
``context`` mapping (field, operator, value type, ...) and provides
``to_dict()`` for API-friendly 400 responses.
"""

from __future__ import annotations

from difflib import get_close_matches
from typing import Any


class DynamicFilterError(Exception):
    """Root exception for every caller-input or configuration failure."""

    code = "DYNAMIC_FILTER_ERROR"

    def __init__(self, message: str, **context: Any) -> None:
        self.message = message
        self.context: dict[str, Any] = {
            k: v for k, v in context.items() if v is not None
        }
        super().__init__(message)

    def add_context(self, **context: Any) -> DynamicFilterError:
        """Fill in context keys that are not set yet (innermost wins)."""
        for key, value in context.items():
            if value is not None:
                self.context.setdefault(key, value)
        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            **self.context,
        }


class ConfigurationError(DynamicFilterError):
    """Invalid configuration snapshot or unresolvable handler reference.

    Carries structured errors: ``{path: [messages]}``.
    """

    code = "CONFIGURATION_ERROR"

    def __init__(
        self,
        message: str,
        errors: dict[str, list[str]] | None = None,
    ) -> None:
        self.errors: dict[str, list[str]] = errors or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "errors": self.errors}


# ---------------------------------------------------------------------------
# Filter errors
# ---------------------------------------------------------------------------


class FilterError(DynamicFilterError):
    """Base class for filter expression failures."""

    code = "FILTER_ERROR"


class InvalidInputShapeError(FilterError):
    """Filters (or a group inside them) are not shaped as expected."""

    code = "INVALID_INPUT_SHAPE"


class TooManyFiltersError(FilterError):
    code = "TOO_MANY_FILTERS"

    def __init__(self, received: int, maximum: int) -> None:
        self.received = received
        self.maximum = maximum
        super().__init__(
            f"Too many filters specified. Maximum allowed: {maximum}, "
            f"received: {received}",
            received=received,
            maximum=maximum,
        )


class UnsupportedOperatorError(FilterError):
    """
    Unknown operator key.

    Provides fuzzy-matched suggestions for likely intended operators.
    """

    code = "UNSUPPORTED_OPERATOR"

    def __init__(self, operator: str, valid_operators: list[str]) -> None:
        self.operator = operator
        self.valid_operators = sorted(valid_operators)
        self.suggestions = get_close_matches(
            operator, self.valid_operators, n=3, cutoff=0.6
        )

        message = f'Unsupported operator: "{operator}".'
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        message += " Supported operators are: " + ", ".join(
            f'"{op}"' for op in self.valid_operators
        )
        super().__init__(message, operator=operator)

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "suggestions": self.suggestions,
            "valid_operators": self.valid_operators,
        }


class FieldNotFilterableError(FilterError):
    """Field path is not whitelisted (or cannot be filtered at all)."""

    code = "FIELD_NOT_FILTERABLE"

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(
            message or f"Filtering on field '{field}' is not allowed",
            field=field,
        )


class FieldNotFoundError(FieldNotFilterableError):
    """
    Field does not exist on the model.

    Example error message::

        Invalid field 'titel' on 'Post'. Did you mean: title?
    """

    code = "FIELD_NOT_FOUND"

    def __init__(
        self,
        field: str,
        model_name: str,
        available_fields: list[str],
    ) -> None:
        self.model_name = model_name
        self.available_fields = sorted(available_fields)
        self.suggestions = get_close_matches(
            field, self.available_fields, n=3, cutoff=0.6
        )
        message = f"Invalid field '{field}' on '{model_name}'."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(field, message)
        self.context["model"] = model_name

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "suggestions": self.suggestions,
            "available_fields": self.available_fields,
        }


class UnknownRelationshipError(FilterError):
    """Dotted path names a relationship the model does not declare."""

    code = "UNKNOWN_RELATIONSHIP"

    def __init__(
        self,
        relation: str,
        model_name: str,
        available: list[str],
    ) -> None:
        self.relation = relation
        self.model_name = model_name
        self.available = sorted(available)
        self.suggestions = get_close_matches(relation, self.available, n=3, cutoff=0.6)
        message = f"Relationship '{relation}' does not exist on model '{model_name}'."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(message, relation=relation, model=model_name)

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "suggestions": self.suggestions,
            "available_relationships": self.available,
        }


class NestingTooDeepError(FilterError):
    code = "NESTING_TOO_DEEP"

    def __init__(self, depth: int, maximum: int) -> None:
        self.depth = depth
        self.maximum = maximum
        super().__init__(
            f"Filter nesting level {depth} exceeds the maximum of {maximum}",
            depth=depth,
            maximum=maximum,
        )


class OperandArityMismatchError(FilterError):
    """Wrong number of values for an operator (e.g. between with one value)."""

    code = "OPERAND_ARITY_MISMATCH"


class OperandTypeMismatchError(FilterError):
    """Operand value has the wrong type or ordering for its operator."""

    code = "OPERAND_TYPE_MISMATCH"


class ValueCastError(OperandTypeMismatchError):
    """A field cast rule could not be applied to the operand."""

    code = "VALUE_CAST_ERROR"


class UnknownPresetError(FilterError):
    code = "UNKNOWN_PRESET"

    def __init__(self, preset: str, available: list[str]) -> None:
        self.preset = preset
        self.suggestions = get_close_matches(preset, available, n=3, cutoff=0.6)
        message = f"Unknown filter preset '{preset}'."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(message, preset=preset)


# ---------------------------------------------------------------------------
# Search errors
# ---------------------------------------------------------------------------


class SearchError(DynamicFilterError):
    code = "SEARCH_ERROR"


class EmptySearchTermError(SearchError):
    code = "EMPTY_SEARCH_TERM"

    def __init__(self, message: str = "Search term cannot be empty") -> None:
        super().__init__(message)


class SearchTermTooShortError(SearchError):
    code = "SEARCH_TERM_TOO_SHORT"

    def __init__(self, term: str, min_length: int) -> None:
        self.term = term
        self.min_length = min_length
        super().__init__(
            f'Search term "{term}" is too short. '
            f"Minimum length is {min_length} characters.",
            term=term,
            min_length=min_length,
        )


class InvalidSearchModeError(SearchError):
    code = "INVALID_SEARCH_MODE"

    def __init__(self, mode: str) -> None:
        self.mode = mode
        super().__init__(
            f"Invalid search mode: {mode}. Must be 'and' or 'or'",
            mode=mode,
        )


class InvalidSearchFieldError(SearchError):
    code = "INVALID_SEARCH_FIELD"


# ---------------------------------------------------------------------------
# Sort errors
# ---------------------------------------------------------------------------


class SortError(DynamicFilterError):
    code = "SORT_ERROR"


class EmptySortFieldError(SortError):
    code = "EMPTY_SORT_FIELD"

    def __init__(self, directive: str = "") -> None:
        super().__init__(
            "Sort column cannot be empty.",
            directive=directive or None,
        )


class InvalidSortDirectionError(SortError):
    code = "INVALID_SORT_DIRECTION"

    def __init__(self, direction: str) -> None:
        self.direction = direction
        super().__init__(
            f"Invalid sort direction: {direction}. Must be one of: asc, desc",
            direction=direction,
        )


class SortFieldNotAllowedError(SortError):
    code = "SORT_FIELD_NOT_ALLOWED"

    def __init__(
        self,
        field: str,
        allowed: list[str] | None = None,
        reason: str | None = None,
    ) -> None:
        self.field = field
        self.allowed = sorted(allowed) if allowed is not None else None
        message = reason or f"Sorting by column '{field}' is not allowed."
        if self.allowed:
            message += " Allowed columns: " + ", ".join(self.allowed)
        super().__init__(message, field=field)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        if self.allowed is not None:
            data["allowed"] = self.allowed
        return data
