"""Tests for the session model and its on-disk layout."""

from datetime import datetime, timezone

import pytest

from ccm.core.session import Session, StoreData, session_key

from conftest import BASE_TIME, make_session


def test_session_key():
    assert session_key("abc", "/dev/ttys003") == "abc:/dev/ttys003"
    assert session_key("abc", None) == "abc"
    assert session_key("abc", "") == "abc"


def test_invalid_status_rejected():
    with pytest.raises(ValueError, match="Invalid status"):
        make_session(status="paused")


def test_to_dict_layout():
    session = make_session("abc", tty="/dev/ttys003", last_message="hi")
    assert session.to_dict() == {
        "session_id": "abc",
        "cwd": "/tmp/project",
        "tty": "/dev/ttys003",
        "status": "running",
        "source": "hook",
        "created_at": "2026-01-01T12:00:00Z",
        "updated_at": "2026-01-01T12:00:00Z",
        "last_message": "hi",
    }


def test_to_dict_omits_empty_message_and_tab_name():
    session = Session(
        session_id="abc",
        cwd="/w",
        status="stopped",
        created_at=BASE_TIME,
        updated_at=BASE_TIME,
        tab_name="build",
    )
    data = session.to_dict()
    assert "last_message" not in data
    assert "tab_name" not in data
    assert data["tty"] is None


def test_from_dict_defaults():
    """Test that older records without source or tty still load."""
    session = Session.from_dict(
        {
            "session_id": "abc",
            "cwd": "/w",
            "status": "waiting_input",
            "created_at": "2026-01-01T12:00:00.500Z",
            "updated_at": "2026-01-01T12:00:01+00:00",
        }
    )
    assert session.source == "hook"
    assert session.tty is None
    assert session.key == "abc"
    assert session.created_at == datetime(2026, 1, 1, 12, 0, 0, 500000, tzinfo=timezone.utc)


def test_from_dict_round_trip():
    session = make_session("abc", source="codex", last_message="done")
    assert Session.from_dict(session.to_dict()) == session


@pytest.mark.parametrize(
    "record",
    [
        {"cwd": "/w", "status": "running"},
        {"session_id": "a", "status": "nope", "created_at": "x", "updated_at": "x"},
        {"session_id": "a", "status": "running", "created_at": "yesterday", "updated_at": "x"},
    ],
)
def test_from_dict_malformed(record):
    with pytest.raises((KeyError, ValueError)):
        Session.from_dict(record)


def test_store_data_from_dict_requires_sessions_map():
    with pytest.raises(ValueError):
        StoreData.from_dict({"updated_at": "2026-01-01T00:00:00Z"})
    with pytest.raises(ValueError):
        StoreData.from_dict({"sessions": []})


def test_store_data_copy_is_shallow_map_copy():
    session = make_session()
    data = StoreData(sessions={session.key: session})
    clone = data.copy()
    clone.sessions.clear()
    assert session.key in data.sessions
