"""Dialect capabilities for case-insensitive pattern matching."""

from __future__ import annotations

from functools import lru_cache

# LIKE is already case-insensitive under the default collations of these.
_CASE_INSENSITIVE_LIKE = frozenset({"mysql", "mariadb", "sqlite"})
_NATIVE_ILIKE = frozenset({"postgresql"})


@lru_cache(maxsize=32)
def case_insensitive_like_token(dialect: str | None) -> str:
    """
    Store token to use for case-insensitive ``LIKE`` on *dialect*.

    ``ilike`` on PostgreSQL, plain ``like`` where ``LIKE`` already ignores
    case, and SQLAlchemy's ``ilike`` (``lower() LIKE lower()``) elsewhere.
    """
    name = (dialect or "").strip().lower().split("+", 1)[0]
    if name in _NATIVE_ILIKE:
        return "ilike"
    if name in _CASE_INSENSITIVE_LIKE:
        return "like"
    return "ilike"


def pattern_token(dialect: str | None, *, case_sensitive: bool) -> str:
    if case_sensitive:
        return "like"
    return case_insensitive_like_token(dialect)
