"""
Path extraction and projection tests.
"""

from types import SimpleNamespace

import pytest

from routeflow.common import get_path, project, split_path


SOURCE = {
    "a": {"b": [{"c": "first"}, {"c": "second"}]},
    "user": {"name": "ada", "roles": ["admin", "dev"]},
    "counts": {1: "one"},
}


def test_split_path_string_and_list():
    assert split_path("a.b.0.c") == ["a", "b", "0", "c"]
    assert split_path(["a", "b", 0, "c"]) == ["a", "b", 0, "c"]
    assert split_path("") == []


def test_split_path_rejects_other_types():
    with pytest.raises(TypeError):
        split_path(1.5)


def test_string_and_segment_paths_resolve_identically():
    assert get_path("a.b.0.c", SOURCE) == "first"
    assert get_path(["a", "b", 0, "c"], SOURCE) == "first"
    assert get_path(["a", "b", "1", "c"], SOURCE) == "second"


def test_missing_segments_yield_none():
    assert get_path("a.x.y", SOURCE) is None
    assert get_path("a.b.5.c", SOURCE) is None
    assert get_path("user.name.first", SOURCE) is None
    assert get_path("a.b.0.c", None) is None


def test_negative_index_and_integer_keys():
    assert get_path("user.roles.-1", SOURCE) == "dev"
    assert get_path("counts.1", SOURCE) == "one"


def test_non_ascii_digits_and_repeated_signs_are_not_indexes():
    assert get_path("a.²", {"a": {}}) is None
    assert get_path("a.--1", {"a": [1, 2]}) is None
    assert get_path("a.+1", {"a": [1, 2]}) is None
    assert get_path("a.١", {"a": ["x"]}) is None


def test_attribute_access_on_objects():
    ctx = SimpleNamespace(params={"id": "42"}, body=None)
    assert get_path("params.id", ctx) == "42"
    assert get_path("body.id", ctx) is None
    assert get_path("missing", ctx) is None


def test_empty_path_returns_source():
    assert get_path("", SOURCE) is SOURCE


def test_get_path_without_source_returns_getter():
    name_of = get_path("user.name")
    assert name_of(SOURCE) == "ada"
    assert name_of({"user": {"name": "grace"}}) == "grace"


def test_project_paths_and_functions():
    result = project(
        {
            "name": "user.name",
            "first": ["a", "b", 0, "c"],
            "role_count": lambda src: len(src["user"]["roles"]),
            "missing": "nope.nothing",
        },
        SOURCE,
    )
    assert result == {"name": "ada", "first": "first", "role_count": 2, "missing": None}


def test_project_key_order_is_irrelevant():
    one = project({"a": "user.name", "b": "a.b.1.c"}, SOURCE)
    two = project({"b": "a.b.1.c", "a": "user.name"}, SOURCE)
    assert one == two


def test_project_partial_application():
    summarize = project({"id": "body.id", "tags": lambda ctx: sorted(ctx["body"]["tags"])})
    assert summarize({"body": {"id": 1, "tags": ["b", "a"]}}) == {"id": 1, "tags": ["a", "b"]}
    assert summarize({"body": {"id": 2, "tags": []}}) == {"id": 2, "tags": []}


def test_project_empty_descriptor():
    assert project({}, SOURCE) == {}
