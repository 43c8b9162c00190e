"""Tests for the ccm dashboard."""

from dataclasses import replace

import threading

import pytest

from ccm.core.config import read_settings
from ccm.core.scanner import DetectedProcess
from ccm.core.session import StoreData
from ccm.core.store import SessionStore
from ccm.core.tab_names import TabNameResolver
from ccm.tui.app import MonitorApp
from ccm.tui.widgets.session_table import SessionTable, session_label

from conftest import FakeOracle, make_session


@pytest.fixture
def focus_calls():
    return []


@pytest.fixture
def make_app(mock_ccm_home, tmp_path, focus_calls):
    """Build a dashboard with no web server, no process scanner and fake OS access."""

    def factory(
        *sessions,
        dead=(),
        oracle=None,
        scanner=None,
        show_web_panel=False,
        focus_ok=True,
        serve=False,
    ):
        store = SessionStore(tmp_path / "sessions.json", debounce=0.05)
        if sessions:
            store.write(StoreData(sessions={s.key: s for s in sessions}))
            store.flush_now()

        def focus(tty):
            focus_calls.append(tty)
            return focus_ok

        return MonitorApp(
            store=store,
            oracle=oracle or FakeOracle(set(dead)),
            tab_names=TabNameResolver(enabled=False),
            serve=serve,
            show_web_panel=show_web_panel,
            scan_processes=False,
            scanner=scanner or (lambda: []),
            focus=focus,
        )

    return factory


@pytest.mark.asyncio
async def test_app_shows_empty_message(make_app):
    """Test that empty state shows message."""
    app = make_app()
    async with app.run_test():
        assert app.query_one(SessionTable).display is False
        assert app.query_one("#empty-message").display is True
        assert app.sub_title == "● 0  ◐ 0  ✓ 0"


@pytest.mark.asyncio
async def test_app_displays_sessions(make_app):
    """Test that sessions are listed oldest first with status counts."""
    app = make_app(
        make_session("b", tty="/dev/ttys2", status="stopped", created_offset=10),
        make_session("a", tty="/dev/ttys1", status="waiting_input"),
        make_session("c", tty="/dev/ttys3", status="running", created_offset=20),
    )
    async with app.run_test():
        table = app.query_one(SessionTable)
        assert table.display is True
        assert table.row_count == 3
        assert [s.session_id for s in table.sessions] == ["a", "b", "c"]
        assert app.sub_title == "● 1  ◐ 1  ✓ 1"


@pytest.mark.asyncio
async def test_app_prunes_dead_sessions(make_app):
    app = make_app(
        make_session("alive", tty="/dev/ttys1"),
        make_session("dead", tty="/dev/ttys2"),
        dead={"/dev/ttys2"},
    )
    async with app.run_test():
        assert [s.session_id for s in app.sessions] == ["alive"]


@pytest.mark.asyncio
async def test_refresh_picks_up_external_writes(make_app, tmp_path):
    app = make_app()
    async with app.run_test() as pilot:
        hook_store = SessionStore(tmp_path / "sessions.json")
        session = make_session("new", tty="/dev/ttys5")
        hook_store.write(StoreData(sessions={session.key: session}))
        hook_store.flush_now()

        await app.refresh_sessions()
        await pilot.pause()

        assert app.query_one(SessionTable).row_count == 1


class ThreadRecordingOracle(FakeOracle):
    def __init__(self):
        super().__init__()
        self.threads = []

    def is_alive(self, tty):
        self.threads.append(threading.get_ident())
        return super().is_alive(tty)


@pytest.mark.asyncio
async def test_refresh_checks_liveness_off_the_event_loop(make_app):
    oracle = ThreadRecordingOracle()
    app = make_app(make_session("a", tty="/dev/ttys1"), oracle=oracle)
    async with app.run_test() as pilot:
        await app.refresh_sessions()
        await pilot.pause()

        assert oracle.threads
        assert threading.get_ident() not in oracle.threads
        assert [s.session_id for s in app.sessions] == ["a"]


@pytest.mark.asyncio
async def test_web_panel_hidden_when_server_fails(make_app, monkeypatch):
    def fail(*args, **kwargs):
        raise OSError("Web server could not listen on port 3456")

    monkeypatch.setattr("ccm.server.app.start_background_server", fail)
    app = make_app(serve=True, show_web_panel=True)
    async with app.run_test():
        assert app.query_one("#web-panel").display is False


@pytest.mark.asyncio
async def test_focus_binding(make_app, focus_calls):
    app = make_app(
        make_session("a", tty="/dev/ttys1"),
        make_session("b", tty="/dev/ttys2", created_offset=1),
    )
    async with app.run_test() as pilot:
        await pilot.press("j")
        await pilot.press("f")
        await pilot.pause()
        assert focus_calls == ["/dev/ttys2"]


@pytest.mark.asyncio
async def test_quick_select(make_app, focus_calls):
    app = make_app(
        make_session("a", tty="/dev/ttys1"),
        make_session("b", tty="/dev/ttys2", created_offset=1),
    )
    async with app.run_test() as pilot:
        await pilot.press("2")
        await pilot.pause()
        assert focus_calls == ["/dev/ttys2"]
        assert app.query_one(SessionTable).cursor_row == 1

        await pilot.press("9")
        await pilot.pause()
        assert focus_calls == ["/dev/ttys2"]


@pytest.mark.asyncio
async def test_focus_failure_notifies(make_app, focus_calls):
    app = make_app(make_session("a", tty="/dev/ttys1"), focus_ok=False)
    async with app.run_test() as pilot:
        await pilot.press("f")
        await pilot.pause()
        assert focus_calls == ["/dev/ttys1"]


@pytest.mark.asyncio
async def test_clear_binding(make_app):
    app = make_app(make_session("a"), make_session("b", tty="/dev/ttys2"))
    async with app.run_test() as pilot:
        await pilot.press("c")
        await pilot.pause()
        assert app.query_one(SessionTable).display is False
        assert app.store.read().sessions == {}


@pytest.mark.asyncio
async def test_toggle_web_panel_persists(make_app):
    app = make_app(show_web_panel=True)
    async with app.run_test() as pilot:
        await pilot.press("h")
        await pilot.pause()
        assert read_settings().web_panel_visible is False

        await pilot.press("h")
        await pilot.pause()
        assert read_settings().web_panel_visible is True


@pytest.mark.asyncio
async def test_scan_processes_adds_codex_sessions(make_app):
    detected = [DetectedProcess(pid=100, tty="/dev/ttys7", cwd="/work/codex-app")]
    app = make_app(scanner=lambda: detected)
    async with app.run_test() as pilot:
        await app.scan_processes()
        await pilot.pause()

        assert [s.session_id for s in app.sessions] == ["codex-100"]

        detected.clear()
        await app.scan_processes()
        await pilot.pause()
        assert app.sessions == []


@pytest.mark.asyncio
async def test_quit_binding(make_app):
    app = make_app()
    async with app.run_test() as pilot:
        await pilot.press("q")
        assert not app.is_running


def test_session_label_prefers_tab_name():
    session = make_session(cwd="/srv/api")
    assert session_label(session) == "/srv/api"
    assert session_label(replace(session, tab_name="api")) == "api"
