from pytest_archon import archrule


def test_pure_modules_are_store_independent() -> None:
    """
    Exceptions, value casting and the request-string grammar are plain
    Python. They must not pull in SQLAlchemy.
    """
    (
        archrule("pure_modules")
        .match("dynamic_filters.exceptions")
        .match("dynamic_filters.casting")
        .match("dynamic_filters.query_string")
        .should_not_import("sqlalchemy*")
        .check("dynamic_filters")
    )


def test_store_operators_layering() -> None:
    """
    Store operators are the lowest layer. They know nothing of the symbolic
    operator table or the evaluators built on it.
    """
    (
        archrule("store_operators_layering")
        .match("dynamic_filters.strategy")
        .match("dynamic_filters.operators*")
        .should_not_import("dynamic_filters.registry")
        .should_not_import("dynamic_filters.evaluator")
        .should_not_import("dynamic_filters.manager")
        .check("dynamic_filters")
    )


def test_evaluators_do_not_depend_on_facade() -> None:
    """
    Filter, search and sort evaluators are used by the facade and the mixin,
    never the other way round.
    """
    (
        archrule("evaluators_layering")
        .match("dynamic_filters.evaluator")
        .match("dynamic_filters.search")
        .match("dynamic_filters.sorting")
        .match("dynamic_filters.relationships")
        .should_not_import("dynamic_filters.manager")
        .should_not_import("dynamic_filters.mixins")
        .check("dynamic_filters")
    )


def test_configuration_layering() -> None:
    """
    The configuration snapshot only depends on the operator table.
    """
    (
        archrule("configuration_layering")
        .match("dynamic_filters.config")
        .should_not_import("dynamic_filters.evaluator")
        .should_not_import("dynamic_filters.search")
        .should_not_import("dynamic_filters.sorting")
        .should_not_import("dynamic_filters.manager")
        .check("dynamic_filters")
    )
