from __future__ import annotations

import logging

import pytest

from jsonshelf import DatabaseError, ErrorCode, EventEmitter


def test_listener_receives_payload(db):
    got = []
    db.on("set", lambda payload: got.append(payload))

    db.set("eventKey", 42)

    assert len(got) == 1
    assert got[0]["key"] == "eventKey"
    assert got[0]["value"] == 42
    assert got[0]["file_name"] == "test"
    assert got[0]["file"] == {"eventKey": 42}


def test_listeners_run_in_registration_order():
    emitter = EventEmitter()
    calls = []
    emitter.on("ping", lambda p: calls.append("first"))
    emitter.on("ping", lambda p: calls.append("second"))

    emitter.emit("ping", {"file_name": "x"})

    assert calls == ["first", "second"]


def test_duplicate_registration_is_kept_once():
    emitter = EventEmitter()
    calls = []

    def listener(payload):
        calls.append(payload)

    emitter.on("ping", listener).on("ping", listener)
    emitter.emit("ping", {})
    assert len(calls) == 1


def test_off_removes_listener(db):
    got = []

    def listener(payload):
        got.append(payload)

    db.on("delete", listener)
    db.off("delete", listener)
    db.set("a", 1)
    db.delete("a")

    assert got == []
    assert db.listeners("delete") == []


def test_failing_listener_is_logged_not_raised(db, caplog):
    after = []

    def broken(payload):
        raise ValueError("listener bug")

    db.on("set", broken)
    db.on("set", lambda payload: after.append(payload["key"]))

    with caplog.at_level(logging.ERROR, logger="jsonshelf.events"):
        assert db.set("a", 1) == {"a": 1}

    assert after == ["a"]
    assert db.get("a") == 1
    assert any("listener" in r.getMessage() for r in caplog.records)


def test_events_fire_after_persist(db, sandbox):
    on_disk = []
    db.on("push", lambda payload: on_disk.append((sandbox / "test.json").read_text(encoding="utf-8")))
    db.push("list", 1)
    assert '"list"' in on_disk[0]


def test_mutation_and_io_events(cached_db):
    names = []
    for event in ("getFile", "writeFile", "writeCache", "add", "pop", "reset", "destroy"):
        cached_db.on(event, lambda payload, event=event: names.append(event))

    cached_db.add("n", 1)
    cached_db.pop("list")
    cached_db.reset()
    cached_db.destroy()

    assert names == [
        "getFile", "writeFile", "writeCache", "add",
        "getFile", "writeFile", "writeCache", "pop",
        "writeFile", "writeCache", "reset",
        "destroy",
    ]


def test_pop_payload_carries_removed_values(db):
    payloads = []
    db.on("pop", payloads.append)
    db.set("list", [1, 2, 3])
    db.pop("list", 2)
    assert payloads[0]["deleted_values"] == [2, 3]
    assert payloads[0]["result"] == [1]


@pytest.mark.parametrize(("event", "listener"), ((1, print), ("set", "not callable")))
def test_registration_validation(event, listener):
    emitter = EventEmitter()
    with pytest.raises(DatabaseError) as exc:
        emitter.on(event, listener)
    assert exc.value.code is ErrorCode.INVALID_INPUT


def test_listener_mutations_do_not_reach_the_caller(db):
    def meddle(payload):
        payload["file"]["intruder"] = True
        payload["result"].append("intruder")

    db.on("push", meddle)
    result = db.push("list", 1)

    assert result == [1]
    assert db.get_all() == {"list": [1]}


def test_each_listener_sees_the_same_copy():
    emitter = EventEmitter()
    original = {"file_name": "x", "file": {"a": 1}}
    seen = []
    emitter.on("ping", lambda p: p["file"].update(b=2))
    emitter.on("ping", lambda p: seen.append(dict(p["file"])))

    emitter.emit("ping", original)

    assert seen == [{"a": 1, "b": 2}]
    assert original["file"] == {"a": 1}
