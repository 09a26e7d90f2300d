from __future__ import annotations

import json

import pytest

from jsonshelf.errors import DatabaseError, ErrorCode
from jsonshelf.json_store import atomic_write_json, dump_json, normalize_name, read_json


@pytest.mark.parametrize(
    ("name", "expected"),
    (
        pytest.param("database", "database", id="plain"),
        pytest.param("database.json", "database", id="suffix"),
        pytest.param("database.json  ", "database", id="trailing_whitespace"),
        pytest.param("database.JSON", "database.JSON", id="case_sensitive"),
        pytest.param("a.json.json", "a.json", id="only_one_suffix"),
        pytest.param("dir/users.json", "dir/users", id="nested"),
    ),
)
def test_normalize_name(name, expected):
    assert normalize_name(name) == expected


def test_dump_keeps_insertion_order():
    text = dump_json({"b": 1, "a": 2}, indent=2)
    assert text.index('"b"') < text.index('"a"')
    assert text.endswith("\n")
    assert '\n  "b": 1' in text


def test_dump_with_zero_indent_is_compact():
    assert dump_json({"a": [1, 2]}, indent=0) == '{"a": [1, 2]}\n'


def test_dump_rejects_unserializable_values():
    with pytest.raises(DatabaseError) as exc:
        dump_json({"a": {1, 2}})
    assert exc.value.code is ErrorCode.INVALID_INPUT


@pytest.mark.parametrize("number", [float("nan"), float("inf"), float("-inf")])
def test_dump_rejects_non_finite_numbers(number):
    with pytest.raises(DatabaseError) as exc:
        dump_json({"a": [number]})
    assert exc.value.code is ErrorCode.INVALID_INPUT


def test_atomic_write_then_read(tmp_path):
    path = tmp_path / "nested" / "doc.json"
    atomic_write_json(path, {"x": "ü", "y": [1, None]}, indent=2)

    assert read_json(path) == {"x": "ü", "y": [1, None]}
    assert not path.with_suffix(".json.tmp").exists()
    assert "ü" in path.read_text(encoding="utf-8")


def test_read_missing_file(tmp_path):
    with pytest.raises(DatabaseError) as exc:
        read_json(tmp_path / "nope.json")
    assert exc.value.code is ErrorCode.MISSING_FILE


@pytest.mark.parametrize("content", ["", "   ", "{not json", "[1, 2]", '"text"'])
def test_read_corrupt_file(tmp_path, content):
    path = tmp_path / "bad.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(DatabaseError) as exc:
        read_json(path)
    assert exc.value.code is ErrorCode.CORRUPT_DOCUMENT


def test_error_message_and_timestamp():
    err = DatabaseError("boom", ErrorCode.IO_ERROR)
    assert str(err) == "[DatabaseError]: boom"
    assert err.message == "boom"
    assert err.code.value == "ioError"
    assert err.timestamp
    assert json.dumps({"code": err.code}) == '{"code": "ioError"}'
