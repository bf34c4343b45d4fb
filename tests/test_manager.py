from __future__ import annotations

import pytest
from conftest import FROZEN_NOW, Note, Post, where_params, where_sql
from sqlalchemy import select

from dynamic_filters import (
    DynamicFilter,
    FilterConfig,
    PageRequest,
    get_default_manager,
    set_default_manager,
)
from dynamic_filters.exceptions import (
    ConfigurationError,
    FieldNotFilterableError,
    SortFieldNotAllowedError,
)


class TestStatementTransforms:
    def test_filter(self, manager: DynamicFilter) -> None:
        stmt = manager.filter(select(Post), {"status": "published"})
        assert where_sql(stmt) == "posts.status = :status_1"

    def test_filter_uses_configured_whitelist(self) -> None:
        manager = DynamicFilter({"global_whitelist": ["title"]})
        assert manager.filter(select(Note), {"title": "x"}).whereclause is not None
        with pytest.raises(FieldNotFilterableError):
            manager.filter(select(Note), {"priority": 1})

    def test_search(self, manager: DynamicFilter) -> None:
        stmt = manager.search(select(Post), "python", ["title"])
        assert where_params(stmt) == {"title_1": "%python%"}

    @pytest.mark.parametrize("term", [None, "", "   "])
    def test_blank_search_is_noop(self, manager: DynamicFilter, term: str) -> None:
        stmt = select(Post)
        assert manager.search(stmt, term) is stmt

    def test_sort(self, manager: DynamicFilter) -> None:
        stmt = manager.sort(select(Post), "-views")
        assert str(stmt.compile()).endswith("ORDER BY posts.views DESC")

    def test_paginate(self, manager: DynamicFilter) -> None:
        _, page = manager.paginate(select(Post), {"page": "2", "per_page": "5"})
        assert page == PageRequest(2, 5)


class TestApplyRequest:
    def test_query_string(self, manager: DynamicFilter) -> None:
        stmt, page = manager.apply_request(
            select(Post),
            "status=published&views[gt]=100&search=python&sort=-views&page=2",
        )
        sql = str(stmt.compile())
        assert "posts.status = :status_1 AND posts.views > :views_1" in sql
        assert "lower(posts.title) LIKE lower(:title_1)" in sql
        assert "ORDER BY posts.views DESC" in sql
        assert page == PageRequest(2, 10)

    def test_without_pagination(self, manager: DynamicFilter) -> None:
        result = manager.apply_request(select(Post), {"status": "a"}, paginate=False)
        assert result.page is None
        assert "LIMIT" not in str(result.statement.compile())

    def test_configured_param_names(self) -> None:
        manager = DynamicFilter(
            {
                "search": {"param": "q"},
                "sort": {"param": "order"},
                "pagination": {"page_name": "p"},
            }
        )
        stmt, page = manager.apply_request(
            select(Post), "q=python&order=title&order=-views&p=3"
        )
        sql = str(stmt.compile())
        assert "ORDER BY posts.title ASC, posts.views DESC" in sql
        assert page.page == 3

    def test_sort_allow_list(self, manager: DynamicFilter) -> None:
        with pytest.raises(SortFieldNotAllowedError):
            manager.apply_request(select(Post), "sort=body")
        stmt, _ = manager.apply_request(select(Post), "sort=body", allowed=["body"])
        assert "ORDER BY posts.body ASC" in str(stmt.compile())

    def test_relative_dates_use_clock(self, manager: DynamicFilter) -> None:
        stmt, _ = manager.apply_request(select(Post), "created_at[today]=")
        params = stmt.whereclause.compile().params
        assert params["created_at_1"].date() == FROZEN_NOW.date()


class TestConfiguration:
    def test_operators(self, manager: DynamicFilter) -> None:
        assert manager.get_operator("between") == "between"
        assert manager.get_operator(" GTE ") == ">="
        assert manager.get_operator("missing") is None
        assert manager.has_operator("not_in")
        assert len(manager.get_operators()) == 30

    def test_configure_operators(self, manager: DynamicFilter) -> None:
        manager.configure({"operators": {"above": ">"}})
        assert manager.has_operator("above")
        stmt = manager.filter(select(Post), {"views": {"above": 1}})
        assert where_sql(stmt) == "posts.views > :views_1"

    def test_configure_rejects_invalid(self, manager: DynamicFilter) -> None:
        with pytest.raises(ConfigurationError):
            manager.configure({"pagination": {"per_page": 0}})
        assert manager.get_pagination_config()["per_page"] == 10

    def test_search_config(self, manager: DynamicFilter) -> None:
        manager.set_search_config({"min_term_length": 4, "blacklist": ["foo"]})
        config = manager.get_search_config()
        assert config["min_term_length"] == 4
        assert manager.get_blacklisted_terms() == ["foo"]

    def test_get_and_set_config(self, manager: DynamicFilter) -> None:
        manager.set_config("max_filters", 3)
        assert manager.get_config("max_filters") == 3
        assert manager.get_config("nope", "default") == "default"
        assert isinstance(manager.config, FilterConfig)

    def test_accessors(self) -> None:
        manager = DynamicFilter(
            {
                "global_whitelist": ["status"],
                "presets": {"live": {"status": "published"}},
                "custom_filters": {"min_views": "app_filters:MinimumViews"},
            }
        )
        assert manager.get_global_whitelist() == ["status"]
        assert manager.get_filter_presets() == {"live": {"status": "published"}}
        assert manager.get_custom_filters() == {
            "min_views": "app_filters:MinimumViews"
        }
        assert manager.get_pagination_config() == {
            "per_page": 10,
            "max_per_page": 100,
            "page_name": "page",
            "per_page_name": "per_page",
        }


class TestSearchTermValidation:
    def test_valid(self, manager: DynamicFilter) -> None:
        assert manager.validate_search_term("python") == {
            "valid": True,
            "message": "Search term is valid.",
            "error": None,
        }
        assert manager.is_search_term_valid("python")

    @pytest.mark.parametrize("term", [None, "", "  "])
    def test_empty(self, manager: DynamicFilter, term: str | None) -> None:
        result = manager.validate_search_term(term)
        assert result["error"] == "EMPTY_SEARCH_TERM"
        assert result["message"] == "Search term cannot be empty."

    def test_too_short(self, manager: DynamicFilter) -> None:
        result = manager.validate_search_term("a")
        assert result == {
            "valid": False,
            "message": (
                "Search term must be at least 2 character(s) long. "
                "Current length: 1."
            ),
            "error": "SEARCH_TERM_TOO_SHORT",
        }

    def test_blacklisted(self, manager: DynamicFilter) -> None:
        result = manager.validate_search_term("The")
        assert result["error"] == "SEARCH_TERM_BLACKLISTED"
        assert not manager.is_search_term_valid("the")


class TestDefaultManager:
    def test_created_once(self) -> None:
        assert get_default_manager() is get_default_manager()

    def test_replace_and_reset(self) -> None:
        custom = DynamicFilter({"max_filters": 2})
        set_default_manager(custom)
        assert get_default_manager() is custom
        set_default_manager(None)
        assert get_default_manager() is not custom
