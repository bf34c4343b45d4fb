from __future__ import annotations

import pytest
from conftest import Author, Post

from dynamic_filters.exceptions import NestingTooDeepError, UnknownRelationshipError
from dynamic_filters.relationships import RelationshipPredicateBuilder


def name_equals(target, column):
    return getattr(target, column) == "x"


class TestRelationshipPredicateBuilder:
    def test_has_for_many_to_one(self) -> None:
        builder = RelationshipPredicateBuilder()
        predicate = builder.build(Post, "author.name", name_equals)
        sql = str(predicate.compile())
        assert sql.startswith("EXISTS (SELECT 1")
        assert "FROM authors" in sql

    def test_any_for_one_to_many(self) -> None:
        builder = RelationshipPredicateBuilder()
        predicate = builder.build(Author, "posts.title", name_equals)
        sql = str(predicate.compile())
        assert "FROM posts" in sql
        assert "posts.title = :title_1" in sql

    def test_leaf_receives_target_model(self) -> None:
        seen = []

        def leaf(target, column):
            seen.append((target, column))
            return getattr(target, column) == "Acme"

        RelationshipPredicateBuilder().build(Post, "author.publisher.name", leaf)
        assert [(t.__name__, c) for t, c in seen] == [("Publisher", "name")]

    def test_empty_leaf_yields_nothing(self) -> None:
        builder = RelationshipPredicateBuilder()
        assert builder.build(Post, "author.name", lambda target, column: None) is None

    def test_depth_counts_enclosing_groups(self) -> None:
        builder = RelationshipPredicateBuilder(max_nesting_level=2)
        builder.build(Post, "author.name", name_equals, depth=1)
        with pytest.raises(NestingTooDeepError):
            builder.build(Post, "author.name", name_equals, depth=2)

    def test_unknown_relationship_suggests(self) -> None:
        with pytest.raises(UnknownRelationshipError) as exc_info:
            RelationshipPredicateBuilder().build(Post, "autor.name", name_equals)
        error = exc_info.value
        assert error.suggestions == ["author"]
        assert error.context == {"relation": "autor", "model": "Post"}
        assert "Did you mean: author?" in error.message
