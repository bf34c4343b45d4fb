"""
Custom filter extension point.

A custom filter is registered under a request key in ``custom_filters``;
the reference may be an instance, a class or an import string
(``"app.filters:ActiveUsers"`` or ``"app.filters.ActiveUsers"``).
"""

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from .exceptions import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy import Select

logger = logging.getLogger("dynamic_filters.custom")


@runtime_checkable
class CustomFilter(Protocol):
    """Protocol for request keys handled by application code."""

    def validate(self, value: Any) -> bool:
        """Return ``False`` to reject the request value."""
        ...

    def apply(self, stmt: Select[Any], value: Any, field: str) -> Select[Any]:
        """Return *stmt* with the filter applied."""
        ...


def _import_object(path: str) -> Any:
    if ":" in path:
        module_name, _, attr = path.partition(":")
    else:
        module_name, _, attr = path.rpartition(".")
    if not module_name or not attr:
        raise ConfigurationError(f"Invalid custom filter reference '{path}'")
    try:
        module = importlib.import_module(module_name)
        return getattr(module, attr)
    except (ImportError, AttributeError) as exc:
        raise ConfigurationError(
            f"Cannot import custom filter '{path}': {exc}"
        ) from exc


def load_custom_filter(key: str, ref: Any) -> CustomFilter:
    """
    Resolve *ref* into a ``CustomFilter`` instance.

    Raises:
        ConfigurationError: If the reference cannot be imported, instantiated
            or does not implement ``validate``/``apply``.
    """
    target = _import_object(ref) if isinstance(ref, str) else ref
    if isinstance(target, type):
        try:
            target = target()
        except TypeError as exc:
            raise ConfigurationError(
                f"Custom filter '{key}' cannot be instantiated without "
                f"arguments: {exc}"
            ) from exc
    if not isinstance(target, CustomFilter):
        raise ConfigurationError(
            f"Custom filter '{key}' must implement validate() and apply()",
            errors={f"custom_filters.{key}": ["does not implement CustomFilter"]},
        )
    return target


class CustomFilterRegistry:
    """Custom filter references for one call, resolved on first use."""

    def __init__(self, refs: Mapping[str, Any] | None = None) -> None:
        self._refs = dict(refs or {})
        self._resolved: dict[str, CustomFilter] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._refs

    def keys(self) -> list[str]:
        return list(self._refs)

    def get(self, key: str) -> CustomFilter:
        handler = self._resolved.get(key)
        if handler is None:
            handler = load_custom_filter(key, self._refs[key])
            self._resolved[key] = handler
            logger.debug("Resolved custom filter %s -> %r", key, handler)
        return handler
