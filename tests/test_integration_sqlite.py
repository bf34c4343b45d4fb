"""End-to-end checks against an in-memory SQLite database."""

from __future__ import annotations

import pytest
from conftest import Author, Post
from sqlalchemy import select

from dynamic_filters import DynamicFilter


def titles(session, stmt) -> set[str]:
    return {post.title for post in session.scalars(stmt)}


def ordered_titles(session, stmt) -> list[str]:
    return [post.title for post in session.scalars(stmt)]


@pytest.fixture
def sqlite_manager(manager: DynamicFilter) -> DynamicFilter:
    manager.configure({"dialect": "sqlite"})
    return manager


def test_equality_and_comparison(session, sqlite_manager: DynamicFilter) -> None:
    stmt = sqlite_manager.filter(
        select(Post), {"published": "1", "views": {"gt": "100"}}
    )
    assert titles(session, stmt) == {"Python Tips", "Advanced Python"}


def test_between_with_numeric_strings(session, sqlite_manager) -> None:
    stmt = sqlite_manager.filter(select(Post), {"views": {"between": "50,150"}})
    assert titles(session, stmt) == {"Python Tips", "SQL Basics"}


def test_in_and_not_in(session, sqlite_manager) -> None:
    stmt = sqlite_manager.filter(select(Post), {"status": ["draft", "archived"]})
    assert titles(session, stmt) == {"Draft ideas"}
    stmt = sqlite_manager.filter(select(Post), {"status": {"not_in": "draft"}})
    assert titles(session, stmt) == {"Python Tips", "SQL Basics", "Advanced Python"}


def test_null_check(session, sqlite_manager) -> None:
    stmt = sqlite_manager.filter(select(Post), {"rating": {"null": True}})
    assert titles(session, stmt) == {"Draft ideas"}


def test_pattern_operators(session, sqlite_manager) -> None:
    stmt = sqlite_manager.filter(select(Post), {"title": {"starts_with": "Py"}})
    assert titles(session, stmt) == {"Python Tips"}
    stmt = sqlite_manager.filter(select(Post), {"title": {"ends_with": "Python"}})
    assert titles(session, stmt) == {"Advanced Python"}


def test_relationship_filter(session, sqlite_manager) -> None:
    stmt = sqlite_manager.filter(select(Post), {"author.name": "John"})
    assert titles(session, stmt) == {"Python Tips", "Draft ideas"}


def test_multi_hop_relationship(session, sqlite_manager) -> None:
    stmt = sqlite_manager.filter(select(Post), {"author.publisher.name": "Globex"})
    assert titles(session, stmt) == {"SQL Basics", "Advanced Python"}


def test_collection_relationship(session, sqlite_manager) -> None:
    stmt = sqlite_manager.filter(select(Post), {"comments.body": {"contains": "Great"}})
    assert titles(session, stmt) == {"Python Tips"}


def test_or_group(session, sqlite_manager) -> None:
    stmt = sqlite_manager.filter(
        select(Post),
        {
            "_group": {
                "boolean": "or",
                "filters": {"status": "draft", "views": {"gte": 300}},
            }
        },
    )
    assert titles(session, stmt) == {"Draft ideas", "Advanced Python"}


def test_relative_date(session, sqlite_manager) -> None:
    stmt = sqlite_manager.filter(select(Post), {"created_at": {"this_month": ""}})
    assert titles(session, stmt) == {"Python Tips", "Draft ideas"}


def test_search_is_accent_and_case_insensitive(session, sqlite_manager) -> None:
    stmt = sqlite_manager.search(select(Post), "PYTHÖN")
    assert titles(session, stmt) == {"Python Tips", "Advanced Python"}


def test_search_and_mode(session, sqlite_manager) -> None:
    stmt = sqlite_manager.search(select(Post), "learn sql", mode="and")
    assert titles(session, stmt) == {"SQL Basics"}


def test_search_with_wildcard(session, sqlite_manager) -> None:
    stmt = sqlite_manager.search(select(Post), "adv*python", ["title"])
    assert titles(session, stmt) == {"Advanced Python"}


def test_sort_by_relationship(session, sqlite_manager) -> None:
    stmt = sqlite_manager.sort(select(Post), "author.name;title")
    assert ordered_titles(session, stmt) == [
        "Advanced Python",
        "SQL Basics",
        "Draft ideas",
        "Python Tips",
    ]


def test_sorted_relationship_is_loaded(session, sqlite_manager) -> None:
    stmt = sqlite_manager.sort(select(Post), "-author.name")
    posts = session.scalars(stmt).all()
    assert [post.author.name for post in posts] == ["John", "John", "Jane", "Jane"]


def test_sort_through_collection(session, sqlite_manager) -> None:
    stmt = sqlite_manager.sort(select(Author), "posts.views")
    authors = session.scalars(stmt).all()
    assert [author.name for author in authors] == ["John", "Jane"]
    assert [len(author.posts) for author in authors] == [2, 2]

    stmt = sqlite_manager.sort(select(Author), "-posts.views")
    assert [author.name for author in session.scalars(stmt)] == ["Jane", "John"]


def test_collection_sort_keeps_one_row_per_parent(session, sqlite_manager) -> None:
    stmt = sqlite_manager.sort(select(Author), "posts.title")
    stmt, _ = sqlite_manager.paginate(stmt, {"page": "2", "per_page": "1"})
    assert [author.name for author in session.scalars(stmt)] == ["John"]


def test_apply_request(session, sqlite_manager) -> None:
    stmt, page = sqlite_manager.apply_request(
        select(Post), "status=published&sort=-views&page=1&per_page=2"
    )
    assert ordered_titles(session, stmt) == ["Advanced Python", "Python Tips"]
    assert page.offset == 0


def test_apply_request_second_page(session, sqlite_manager) -> None:
    stmt, _ = sqlite_manager.apply_request(
        select(Post), "status=published&sort=-views&page=2&per_page=2"
    )
    assert ordered_titles(session, stmt) == ["SQL Basics"]


def test_mixin_round_trip(session) -> None:
    stmt = Post.sort_query("views", Post.filter_query({"author.name": "Jane"}))
    assert ordered_titles(session, stmt) == ["SQL Basics", "Advanced Python"]
