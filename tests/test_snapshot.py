"""Tests for the session snapshot producer."""

from dataclasses import replace

import orjson

from ccm.core.session import StoreData
from ccm.core.snapshot import find_session, get_session, get_sessions, prune_dead_sessions

from conftest import FakeOracle, make_session


class StubTabNames:
    def __init__(self, names=None, error=None):
        self.names = names or {}
        self.error = error

    def enrich(self, sessions):
        if self.error:
            raise self.error
        return [
            replace(s, tab_name=self.names[s.tty]) if s.tty in self.names else s
            for s in sessions
        ]


def _write(store, *sessions):
    store.write(StoreData(sessions={s.key: s for s in sessions}))
    store.flush_now()


def test_prune_dead_sessions():
    alive = make_session("a", tty="/dev/ttys1")
    dead = make_session("b", tty="/dev/ttys2")
    sessions = {alive.key: alive, dead.key: dead}

    removed = prune_dead_sessions(sessions, FakeOracle({"/dev/ttys2"}).is_alive)

    assert removed == [dead.key]
    assert list(sessions) == [alive.key]


class DeadOracle:
    """Oracle that reports every terminal as closed."""

    def __init__(self):
        self.calls = []

    def is_alive(self, tty):
        self.calls.append(tty)
        return False


def test_sessions_without_tty_are_never_pruned(store):
    untethered = make_session("a", tty=None)
    tethered = make_session("b", tty="/dev/ttys1", created_offset=1)
    _write(store, untethered, tethered)
    oracle = DeadOracle()

    sessions = get_sessions(store, oracle=oracle)

    assert [s.session_id for s in sessions] == ["a"]
    assert oracle.calls == ["/dev/ttys1"]


def test_pruned_map_is_persisted_once(store, monkeypatch):
    """Test that a refresh with dead sessions is one write."""
    _write(
        store,
        make_session("a", tty="/dev/ttys1"),
        make_session("b", tty="/dev/ttys2"),
        make_session("c", tty="/dev/ttys3"),
    )
    writes = []
    original = store.write
    monkeypatch.setattr(store, "write", lambda data: (writes.append(data), original(data)))

    sessions = get_sessions(store, oracle=FakeOracle({"/dev/ttys2", "/dev/ttys3"}))
    store.flush_now()

    assert [s.session_id for s in sessions] == ["a"]
    assert len(writes) == 1
    raw = orjson.loads(store.path.read_bytes())
    assert list(raw["sessions"]) == ["a:/dev/ttys1"]


def test_no_write_when_nothing_pruned(store, monkeypatch):
    _write(store, make_session("a"))
    writes = []
    monkeypatch.setattr(store, "write", writes.append)

    get_sessions(store, oracle=FakeOracle())

    assert writes == []


def test_sorted_by_created_at_with_stable_ties(store):
    _write(
        store,
        make_session("late", tty="/dev/ttys1", created_offset=60),
        make_session("tie-first", tty="/dev/ttys2", created_offset=0),
        make_session("tie-second", tty="/dev/ttys3", created_offset=0),
        make_session("early", tty="/dev/ttys4", created_offset=-60),
    )

    sessions = get_sessions(store, oracle=FakeOracle())

    assert [s.session_id for s in sessions] == ["early", "tie-first", "tie-second", "late"]


def test_tab_names_are_attached(store):
    _write(store, make_session("a", tty="/dev/ttys1"), make_session("b", tty="/dev/ttys2"))

    sessions = get_sessions(
        store, oracle=FakeOracle(), tab_names=StubTabNames({"/dev/ttys1": "api server"})
    )

    assert [s.tab_name for s in sessions] == ["api server", None]
    # tab names are display-only
    assert all(s.tab_name is None for s in store.read().sessions.values())


def test_tab_name_failure_is_absorbed(store):
    _write(store, make_session("a"))

    sessions = get_sessions(
        store, oracle=FakeOracle(), tab_names=StubTabNames(error=RuntimeError("osascript"))
    )

    assert [s.session_id for s in sessions] == ["a"]
    assert sessions[0].tab_name is None


def test_get_session_and_find_session(store):
    session = make_session("a", tty="/dev/ttys1")
    _write(store, session)

    assert get_session(store, "a", "/dev/ttys1") == session
    assert get_session(store, "a") is None
    assert find_session([session], "a") == session
    assert find_session([session], "zzz") is None
