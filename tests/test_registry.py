from __future__ import annotations

import pytest

from dynamic_filters.exceptions import ConfigurationError, UnsupportedOperatorError
from dynamic_filters.operators import DEFAULT_STORE_REGISTRY
from dynamic_filters.registry import (
    BUILTIN_OPERATORS,
    DEFAULT_OPERATOR_REGISTRY,
    OperatorKind,
    OperatorRegistry,
)
from dynamic_filters.strategy import Arity, ValueShape, normalize_store_token


class TestBuiltins:
    def test_all_builtin_keys_are_registered(self) -> None:
        expected = {
            "eq", "neq", "gt", "gte", "lt", "lte",
            "like", "not_like", "ilike", "not_ilike",
            "in", "not_in", "between", "not_between",
            "null", "not_null", "notnull",
            "starts_with", "ends_with", "contains",
            "today", "yesterday", "this_week", "last_week", "this_month",
            "last_month", "this_year", "last_year", "last_x_days", "next_x_days",
        }  # fmt: skip
        assert set(DEFAULT_OPERATOR_REGISTRY.keys()) == expected
        assert len(DEFAULT_OPERATOR_REGISTRY) == 30

    def test_comparison_tokens(self) -> None:
        table = DEFAULT_OPERATOR_REGISTRY.to_dict()
        assert table["eq"] == "="
        assert table["neq"] == "!="
        assert table["gte"] == ">="
        assert table["notnull"] == "not null"
        assert table["not_in"] == "not in"

    def test_shapes_follow_store_operator(self) -> None:
        assert DEFAULT_OPERATOR_REGISTRY.resolve("between").shape is ValueShape.PAIR
        assert DEFAULT_OPERATOR_REGISTRY.resolve("between").arity is Arity.BINARY
        assert DEFAULT_OPERATOR_REGISTRY.resolve("in").shape is ValueShape.ARRAY
        assert DEFAULT_OPERATOR_REGISTRY.resolve("null").shape is ValueShape.NONE
        assert DEFAULT_OPERATOR_REGISTRY.resolve("eq").shape is ValueShape.SCALAR

    def test_pattern_templates(self) -> None:
        starts = DEFAULT_OPERATOR_REGISTRY.resolve("starts_with")
        assert starts.kind is OperatorKind.PATTERN
        assert starts.store_operator == "like"
        assert starts.template == "{value}%"
        assert DEFAULT_OPERATOR_REGISTRY.resolve("ends_with").template == "%{value}"
        assert DEFAULT_OPERATOR_REGISTRY.resolve("like").template is None

    def test_relative_dates(self) -> None:
        today = DEFAULT_OPERATOR_REGISTRY.resolve("today")
        assert today.kind is OperatorKind.RELATIVE_DATE
        assert today.shape is ValueShape.NONE
        assert today.date_range == "today"
        last_days = DEFAULT_OPERATOR_REGISTRY.resolve("last_x_days")
        assert last_days.shape is ValueShape.SCALAR

    def test_builtins_are_read_only(self) -> None:
        with pytest.raises(TypeError):
            BUILTIN_OPERATORS["eq"] = BUILTIN_OPERATORS["neq"]  # type: ignore[index]


class TestResolve:
    def test_case_insensitive(self) -> None:
        assert DEFAULT_OPERATOR_REGISTRY.resolve("GTE").key == "gte"
        assert DEFAULT_OPERATOR_REGISTRY.exists(" Between ")
        assert "IN" in DEFAULT_OPERATOR_REGISTRY

    def test_unknown_operator_suggests(self) -> None:
        with pytest.raises(UnsupportedOperatorError) as exc_info:
            DEFAULT_OPERATOR_REGISTRY.resolve("betwen")
        assert "between" in exc_info.value.suggestions
        assert "Did you mean" in str(exc_info.value)
        assert exc_info.value.context["operator"] == "betwen"

    def test_unknown_operator_lists_supported(self) -> None:
        with pytest.raises(UnsupportedOperatorError) as exc_info:
            DEFAULT_OPERATOR_REGISTRY.resolve("regex")
        assert '"eq"' in exc_info.value.message
        assert not DEFAULT_OPERATOR_REGISTRY.exists("regex")


class TestMerge:
    def test_new_key(self) -> None:
        registry = DEFAULT_OPERATOR_REGISTRY.merge({"equals": "="})
        definition = registry.resolve("equals")
        assert definition.store_operator == "="
        assert definition.kind is OperatorKind.COMPARISON
        assert not DEFAULT_OPERATOR_REGISTRY.exists("equals")

    def test_tokens_are_normalised(self) -> None:
        registry = DEFAULT_OPERATOR_REGISTRY.merge({"nin": "NOT_IN", "nn": "notnull"})
        assert registry.resolve("nin").store_operator == "not in"
        assert registry.resolve("nin").shape is ValueShape.ARRAY
        assert registry.resolve("nn").store_operator == "not null"

    def test_same_store_operator_keeps_builtin(self) -> None:
        registry = DEFAULT_OPERATOR_REGISTRY.merge({"contains": "like"})
        assert registry.resolve("contains").template == "%{value}%"

    def test_override_replaces_builtin(self) -> None:
        registry = DEFAULT_OPERATOR_REGISTRY.merge({"contains": "ilike"})
        definition = registry.resolve("contains")
        assert definition.store_operator == "ilike"
        assert definition.template is None

    def test_unknown_store_operator(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            DEFAULT_OPERATOR_REGISTRY.merge({"matches": "regexp"})
        assert "operators.matches" in exc_info.value.errors

    def test_empty_registry(self) -> None:
        registry = OperatorRegistry([])
        assert len(registry) == 0
        with pytest.raises(UnsupportedOperatorError):
            registry.resolve("eq")


class TestStoreOperators:
    @pytest.mark.parametrize(
        ("token", "expected"),
        [
            ("NOT_IN", "not in"),
            ("<>", "!="),
            ("==", "="),
            ("notnull", "not null"),
            ("is null", "null"),
            ("not  like", "not like"),
        ],
    )
    def test_normalize_store_token(self, token: str, expected: str) -> None:
        assert normalize_store_token(token) == expected

    def test_supported_store_operators(self) -> None:
        assert DEFAULT_STORE_REGISTRY.supported_operators == {
            "=", "!=", ">", ">=", "<", "<=",
            "like", "not like", "ilike", "not ilike",
            "in", "not in", "between", "not between",
            "null", "not null",
        }  # fmt: skip

    def test_unknown_store_operator_raises(self) -> None:
        with pytest.raises(ValueError, match="Unsupported store operator"):
            DEFAULT_STORE_REGISTRY.apply("regexp", None, "x")
