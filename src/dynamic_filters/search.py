"""
Free-text search.

``SearchTermNormalizer`` turns a raw search string into a short list of
terms; ``SearchEvaluator`` ORs each term across the searchable fields and
combines the terms with the configured mode.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, or_

from .dialect import pattern_token
from .exceptions import (
    EmptySearchTermError,
    InvalidSearchFieldError,
    InvalidSearchModeError,
    SearchTermTooShortError,
)
from .introspection import (
    column_attribute,
    model_name,
    resolve_model,
    searchable_fields,
)
from .operators import DEFAULT_STORE_REGISTRY
from .relationships import RelationshipPredicateBuilder

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy import ColumnElement, Select

    from .config import SearchSettings
    from .strategy import StoreOperatorRegistry

logger = logging.getLogger("dynamic_filters.search")

_TOKEN_RE = re.compile(r'"([^"]+)"|(\S+)')
_FIELD_RE = re.compile(r"^[A-Za-z0-9_\-.]+$")
_WHITESPACE_RE = re.compile(r"\s+")

SEARCH_MODES = ("and", "or")


def transliterate(text: str) -> str:
    """Strip accents: NFKD decomposition without combining marks."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_pattern(term: str, *, enable_wildcards: bool = False) -> str:
    """
    Escape *term* for ``LIKE`` and wrap it as ``%term%``.

    With *enable_wildcards*, ``*`` and ``?`` become ``%`` and ``_``.

    Raises:
        EmptySearchTermError: If *term* is empty.
    """
    if term == "":
        raise EmptySearchTermError()
    escaped = escape_like(term)
    if enable_wildcards:
        escaped = escaped.replace("*", "%").replace("?", "_")
    return f"%{escaped}%"


class SearchTermNormalizer:
    """Normalise and tokenise a raw search string."""

    def __init__(self, settings: SearchSettings) -> None:
        self.settings = settings

    def normalize_text(self, raw: str) -> str:
        text = raw if self.settings.case_sensitive else raw.lower()
        try:
            text = transliterate(text)
        except (TypeError, ValueError) as exc:
            logger.debug("Transliteration skipped for %r: %s", raw, exc)
        return _WHITESPACE_RE.sub(" ", text).strip()

    def is_blacklisted(self, term: str) -> bool:
        return term.lower() in self.settings.blacklist

    def normalize(self, raw: str | None) -> list[str]:
        """
        Return the search terms of *raw*, in order.

        Raises:
            SearchTermTooShortError: If a retained term is too short.
        """
        if not raw:
            return []
        text = self.normalize_text(str(raw))
        if not text:
            return []

        terms: list[str] = []
        dropped: list[str] = []
        for match in _TOKEN_RE.finditer(text):
            term = match.group(0).strip("'\"").strip()
            if not term:
                continue
            if len(term) < self.settings.min_term_length:
                raise SearchTermTooShortError(term, self.settings.min_term_length)
            if self.is_blacklisted(term):
                dropped.append(term)
                continue
            terms.append(term)

        if dropped and not terms:
            logger.warning(
                "Every search term was blacklisted, search skipped: %s", dropped
            )
        return terms[: self.settings.max_terms]


class SearchEvaluator:
    """Attach search predicates to a ``Select``."""

    def __init__(
        self,
        settings: SearchSettings,
        *,
        dialect: str | None = None,
        relationships: RelationshipPredicateBuilder | None = None,
        store: StoreOperatorRegistry = DEFAULT_STORE_REGISTRY,
    ) -> None:
        self.settings = settings
        self.normalizer = SearchTermNormalizer(settings)
        self.relationships = relationships or RelationshipPredicateBuilder()
        self.store = store
        self.token = pattern_token(dialect, case_sensitive=settings.case_sensitive)

    def apply(
        self,
        stmt: Select[Any],
        term: str | None,
        searchable: Sequence[str] | None = None,
        mode: str | None = None,
        *,
        model: type[Any] | None = None,
    ) -> Select[Any]:
        """
        Search *term* across *searchable* fields.

        Raises:
            InvalidSearchFieldError: No searchable fields, or a malformed name.
            InvalidSearchModeError: *mode* is not ``and``/``or``.
            SearchTermTooShortError: A term is shorter than the minimum.
        """
        entity = resolve_model(stmt, model)
        fields = list(searchable or searchable_fields(entity))
        if not fields:
            raise InvalidSearchFieldError(
                f"No searchable fields provided for '{model_name(entity)}'",
                model=model_name(entity),
            )

        if term is None or not str(term).strip():
            return stmt

        selected = self._mode(mode)
        self._validate_fields(fields)

        terms = self.normalizer.normalize(str(term))
        if not terms:
            return stmt

        clauses = [self._term_clause(entity, t, fields) for t in terms]
        logger.debug(
            "Search on %s: terms=%s fields=%s mode=%s",
            model_name(entity),
            terms,
            fields,
            selected,
        )
        connective = and_ if selected == "and" else or_
        return stmt.where(connective(*clauses))

    def _mode(self, mode: str | None) -> str:
        selected = (mode or self.settings.mode).strip().lower()
        if selected not in SEARCH_MODES:
            raise InvalidSearchModeError(mode or "")
        return selected

    @staticmethod
    def _validate_fields(fields: Sequence[str]) -> None:
        for field in fields:
            if not isinstance(field, str) or not _FIELD_RE.match(field):
                raise InvalidSearchFieldError(
                    f"Invalid column name: {field!r}", field=str(field)
                )

    def _term_clause(
        self, entity: type[Any], term: str, fields: Sequence[str]
    ) -> ColumnElement[bool]:
        pattern = build_pattern(term, enable_wildcards=self.settings.enable_wildcards)

        def leaf(target: type[Any], column: str) -> ColumnElement[bool]:
            return self.store.apply(
                self.token, column_attribute(target, column), pattern
            )

        predicates: list[ColumnElement[bool]] = []
        for field in fields:
            if "." in field:
                predicate = self.relationships.build(entity, field, leaf)
            else:
                predicate = leaf(entity, field)
            if predicate is not None:
                predicates.append(predicate)
        return or_(*predicates)
