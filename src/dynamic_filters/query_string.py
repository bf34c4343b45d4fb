"""
Request-string grammar.

Bracket notation, as produced by HTML forms and most HTTP clients::

    status=published
    tags[]=python&tags[]=sql
    views[gt]=100
    created_at[between]=2024-01-01,2024-12-31
    _group[boolean]=or&_group[filters][status]=draft&_group[nested][0][boolean]=and
    sort=-created_at&sort=title
    search=quick brown fox&page=2&per_page=20

``parse_query`` turns it into nested dicts and lists; ``build_query_string``
renders filters, sort, search and pagination back (pagination links).
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any
from urllib.parse import parse_qsl, urlencode

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

_KEY_RE = re.compile(r"^([^\[\]]+)((?:\[[^\[\]]*\])*)$")
_SEGMENT_RE = re.compile(r"\[([^\[\]]*)\]")


def _split_key(key: str) -> tuple[str, list[str]]:
    match = _KEY_RE.match(key)
    if match is None:
        return key, []
    return match.group(1), _SEGMENT_RE.findall(match.group(2))


def _next_index(node: dict[str, Any]) -> str:
    indexes = [int(k) for k in node if k.isdigit()]
    return str(max(indexes) + 1) if indexes else "0"


def _assign(
    result: dict[str, Any],
    key: str,
    value: Any,
    repeatable: frozenset[str],
) -> None:
    name, path = _split_key(key)
    if not path:
        if name in repeatable and name in result:
            current = result[name]
            if isinstance(current, list):
                result[name] = [*current, value]
            else:
                result[name] = [current, value]
        else:
            result[name] = value
        return

    node = result.get(name)
    if not isinstance(node, dict):
        node = {}
        result[name] = node
    for index, part in enumerate(path):
        segment = part if part != "" else _next_index(node)
        if index == len(path) - 1:
            node[segment] = value
            break
        child = node.get(segment)
        if not isinstance(child, dict):
            child = {}
            node[segment] = child
        node = child


def _listify(value: Any) -> Any:
    """Turn dicts whose keys are all digits into lists, recursively."""
    if not isinstance(value, dict):
        return value
    converted = {k: _listify(v) for k, v in value.items()}
    if converted and all(isinstance(k, str) and k.isdigit() for k in converted):
        return [converted[k] for k in sorted(converted, key=int)]
    return converted


def parse_query(
    source: str | Mapping[str, Any] | Iterable[tuple[str, Any]],
    *,
    repeatable: Sequence[str] = ("sort",),
) -> dict[str, Any]:
    """
    Parse a query string, a flat mapping or ``(key, value)`` pairs.

    Plain keys repeated in the input keep the last value, except the
    *repeatable* ones (``sort``), which collect into a list.
    """
    if isinstance(source, str):
        pairs: Iterable[tuple[str, Any]] = parse_qsl(
            source.lstrip("?"), keep_blank_values=True
        )
    elif isinstance(source, Mapping):
        pairs = source.items()
    else:
        pairs = source

    result: dict[str, Any] = {}
    names = frozenset(repeatable)
    for key, value in pairs:
        _assign(result, str(key), value, names)
    return {k: _listify(v) for k, v in result.items()}


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


def _flatten(prefix: str, value: Any, pairs: list[tuple[str, str]]) -> None:
    if value is None:
        return
    if isinstance(value, Mapping):
        for key, item in value.items():
            _flatten(f"{prefix}[{key}]", item, pairs)
    elif isinstance(value, list | tuple):
        if any(isinstance(item, Mapping | list | tuple) for item in value):
            for index, item in enumerate(value):
                _flatten(f"{prefix}[{index}]", item, pairs)
        else:
            pairs.extend((f"{prefix}[]", _scalar(item)) for item in value)
    else:
        pairs.append((prefix, _scalar(value)))


def build_query_string(
    filters: Mapping[str, Any] | None = None,
    sort: str | Sequence[str] | None = None,
    search: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
    *,
    sort_param: str = "sort",
    search_param: str = "search",
    page_name: str = "page",
    per_page_name: str = "per_page",
) -> str:
    """Render the bracket grammar back into a query string."""
    pairs: list[tuple[str, str]] = []
    for key, value in (filters or {}).items():
        _flatten(str(key), value, pairs)
    if isinstance(sort, str):
        pairs.append((sort_param, sort))
    elif sort:
        pairs.extend((sort_param, str(s)) for s in sort)
    if search:
        pairs.append((search_param, search))
    if page is not None:
        pairs.append((page_name, str(page)))
    if per_page is not None:
        pairs.append((per_page_name, str(per_page)))
    return urlencode(pairs, safe="[],")
