from __future__ import annotations

import pytest

from jsonshelf import DatabaseError, ErrorCode


@pytest.fixture
def filled(db):
    db.set_many(
        {
            "ali": "King",
            "hello": "World",
            "umm": "Are you there?",
            "ilost": ["i lost.."],
            "count": 6,
            "also_king": "King",
        }
    )
    return db


def test_get_by_value_returns_first_key(filled):
    assert filled.get_by_value("World") == "hello"
    assert filled.get_by_value("King") == "ali"
    assert filled.get_by_value(["i lost.."]) == "ilost"
    assert filled.get_by_value("nobody") is None
    assert filled.get_by_value("nobody", "There is no such data!") == "There is no such data!"


def test_get_by_value_uses_structural_equality(db):
    db.set("nested", {"a": [1, {"b": 2}]})
    assert db.get_by_value({"a": [{"b": 2}, 1]}) == "nested"
    assert db.get_by_value({"a": [1, {"b": 3}]}) is None


def test_get_many_by_value_always_returns_list(filled):
    assert filled.get_many_by_value(["World", "King", ["i lost.."]]) == ["hello", "ali", "ilost"]
    assert filled.get_many_by_value(["World"]) == ["hello"]
    assert filled.get_many_by_value([["i lost.."], "alisa", "fear"]) == ["ilost"]
    assert filled.get_many_by_value(["ali", "test"], "No data found!") == "No data found!"


def test_value_membership(filled):
    assert filled.has_value(6)
    assert not filled.has_value("6")
    assert filled.has_any_value(["x", "World"])
    assert not filled.has_any_value(["x", "y"])
    assert filled.has_all_value(["World", "King"])
    assert not filled.has_all_value(["World", "x"])


def test_find(filled):
    assert filled.find(lambda key, value, index: key == "count") == 6
    assert filled.find(lambda key, value, index: index == 1) == "World"
    assert filled.find(lambda key, value, index: False) is None


def test_filter_preserves_order(filled):
    result = filled.filter(lambda key, value, index: isinstance(value, str))
    assert list(result) == ["ali", "hello", "umm", "also_king"]


def test_key_text_search(filled):
    assert filled.includes("l") == {"ali": "King", "hello": "World", "ilost": ["i lost.."], "also_king": "King"}
    assert filled.starts_with("al") == {"ali": "King", "also_king": "King"}


def test_key_text_search_events(filled):
    fired = []
    for event in ("filter", "includes", "startsWith"):
        filled.on(event, lambda payload, event=event: fired.append((event, payload.get("value"), list(payload["result"]))))

    filled.includes("lost")
    filled.starts_with("hel")

    assert fired == [("includes", "lost", ["ilost"]), ("startsWith", "hel", ["hello"])]


def test_some_every_for_each(filled):
    assert filled.some(lambda key, value, index: value == 6)
    assert not filled.some(lambda key, value, index: value == 7)
    assert filled.every(lambda key, value, index: isinstance(key, str))
    assert not filled.every(lambda key, value, index: isinstance(value, str))

    seen = []
    filled.for_each(lambda key, value, index: seen.append((index, key)))
    assert seen[:2] == [(0, "ali"), (1, "hello")]
    assert len(seen) == 6


def test_find_and_delete(filled):
    assert filled.find_and_delete(lambda key, value, index: value == "King") == "King"
    assert not filled.has("ali")
    assert filled.has("also_king")
    assert filled.find_and_delete(lambda key, value, index: False) is None


def test_filter_and_delete(filled):
    removed = filled.filter_and_delete(lambda key, value, index: value == "King")
    assert removed == ["King", "King"]
    assert filled.keys() == ["hello", "umm", "ilost", "count"]


def test_filter_and_delete_limit(filled):
    assert filled.filter_and_delete(lambda key, value, index: True, limit=2) == ["King", "World"]
    assert filled.filter_and_delete(lambda key, value, index: True, limit=0) == []
    assert len(filled.keys()) == 4


@pytest.mark.parametrize(("limit", "code"), ((-1, ErrorCode.NEGATIVE_NUMBER), (1.5, ErrorCode.INVALID_INPUT), (True, ErrorCode.INVALID_INPUT)))
def test_filter_and_delete_bad_limit(filled, limit, code):
    with pytest.raises(DatabaseError) as exc:
        filled.filter_and_delete(lambda key, value, index: True, limit=limit)
    assert exc.value.code is code
    assert len(filled.keys()) == 6


def test_predicate_must_be_callable(db):
    with pytest.raises(DatabaseError) as exc:
        db.find("not callable")
    assert exc.value.code is ErrorCode.INVALID_INPUT


def test_predicate_errors_propagate(filled):
    def explode(key, value, index):
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        filled.filter_and_delete(explode)
    assert len(filled.keys()) == 6
