"""Tests for relkit.core.structured module."""

from relkit.core.structured import (
    as_obj_list,
    as_str_dict,
    get_float,
    get_int,
    get_str,
    get_str_list,
    get_table,
)


def test_as_str_dict() -> None:
    assert as_str_dict({"a": 1}) == {"a": 1}
    assert as_str_dict({1: "a"}) is None
    assert as_str_dict([]) is None


def test_as_obj_list() -> None:
    assert as_obj_list([1, "x"]) == [1, "x"]
    assert as_obj_list({"a": 1}) is None


def test_get_str_strips_and_rejects_empty() -> None:
    table = {"a": "  v1.0.0 ", "b": "   ", "c": 3}
    assert get_str(table, "a") == "v1.0.0"
    assert get_str(table, "b") is None
    assert get_str(table, "c") is None
    assert get_str(table, "missing") is None


def test_numbers_reject_bools() -> None:
    table = {"n": 42, "f": 1.5, "b": True}
    assert get_int(table, "n") == 42
    assert get_int(table, "f") is None
    assert get_int(table, "b") is None
    assert get_float(table, "n") == 42.0
    assert get_float(table, "f") == 1.5
    assert get_float(table, "b") is None


def test_get_table() -> None:
    assert get_table({"t": {"k": "v"}}, "t") == {"k": "v"}
    assert get_table({"t": "v"}, "t") is None


def test_get_str_list() -> None:
    assert get_str_list({"l": ["a", " ", " b "]}, "l") == ["a", "b"]
    assert get_str_list({"l": ["a", 1]}, "l") is None
    assert get_str_list({}, "l") is None
