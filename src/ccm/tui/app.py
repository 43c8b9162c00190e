"""Main Textual app for the ccm dashboard."""

import asyncio
import logging
from collections.abc import Callable

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import DataTable, Footer, Header, Static

from ccm.core.config import (
    DEFAULT_SERVER_PORT,
    PROCESS_SCAN_INTERVAL_SECONDS,
    SESSION_REFRESH_INTERVAL_SECONDS,
    read_settings,
    write_settings,
)
from ccm.core.liveness import TtyLivenessOracle
from ccm.core.reconciler import sync_process_sessions
from ccm.core.reducer import clear_sessions
from ccm.core.scanner import DetectedProcess, scan_for_codex_processes
from ccm.core.session import STATUS_RUNNING, STATUS_STOPPED, STATUS_WAITING_INPUT, Session
from ccm.core.snapshot import get_sessions
from ccm.core.store import SessionStore, get_default_store
from ccm.core.tab_names import TabNameResolver
from ccm.core.terminal import focus_session
from ccm.core.watcher import watch_store
from ccm.tui.widgets.session_table import SessionTable

log = logging.getLogger(__name__)


class MonitorApp(App):
    """ccm dashboard.

    Lists tracked sessions, refreshes when the store file changes, polls
    for Codex processes and optionally hosts the mobile web mirror.
    """

    TITLE = "Claude Code Monitor"
    BINDINGS = [
        ("j", "cursor_down", "Down"),
        ("k", "cursor_up", "Up"),
        ("f", "focus_session", "Focus"),
        ("c", "clear_sessions", "Clear"),
        ("h", "toggle_web_panel", "Web UI"),
        ("q,escape", "quit", "Quit"),
        *[
            Binding(str(n), f"quick_select({n})", f"Focus #{n}", show=False)
            for n in range(1, 10)
        ],
    ]
    CSS = """
    SessionTable {
        height: 1fr;
    }

    #empty-message {
        width: 100%;
        height: 1fr;
        content-align: center middle;
        color: $text-muted;
    }

    #web-panel {
        height: auto;
        padding: 0 1;
        border: round $accent;
    }
    """

    def __init__(
        self,
        store: SessionStore | None = None,
        oracle: TtyLivenessOracle | None = None,
        tab_names: TabNameResolver | None = None,
        serve: bool = True,
        port: int = DEFAULT_SERVER_PORT,
        prefer_tailscale: bool = False,
        show_web_panel: bool | None = None,
        scan_processes: bool = True,
        scanner: Callable[[], list[DetectedProcess]] = scan_for_codex_processes,
        focus: Callable[[str], bool] = focus_session,
    ) -> None:
        super().__init__()
        self.store = store or get_default_store()
        self._oracle = oracle or TtyLivenessOracle()
        self._tab_names = tab_names or TabNameResolver()
        self._serve = serve
        self._port = port
        self._prefer_tailscale = prefer_tailscale
        self._web_visible = (
            read_settings().web_panel_visible if show_web_panel is None else show_web_panel
        )
        self._scan_processes = scan_processes
        self._scanner = scanner
        self._focus = focus
        self._server = None
        self._web_url: str | None = None
        self._watcher_task: asyncio.Task | None = None
        self._refresh_lock = asyncio.Lock()

    def compose(self) -> ComposeResult:
        """Compose the app layout."""
        yield Header()
        yield SessionTable()
        yield Static("No active sessions", id="empty-message")
        yield Static("", id="web-panel")
        yield Footer()

    async def on_mount(self) -> None:
        """Called when the app is mounted."""
        await self.refresh_sessions()
        await self._start_server()
        self._render_web_panel()
        self._watcher_task = asyncio.create_task(
            watch_store(self.store.path, self.refresh_sessions)
        )
        # Relative times and dead terminals need a refresh even without writes
        self.set_interval(SESSION_REFRESH_INTERVAL_SECONDS, self.refresh_sessions)
        if self._scan_processes:
            self.set_interval(PROCESS_SCAN_INTERVAL_SECONDS, self.scan_processes)
            self.call_later(self.scan_processes)

    async def on_unmount(self) -> None:
        """Called when the app is unmounted."""
        if self._watcher_task:
            self._watcher_task.cancel()
            try:
                await self._watcher_task
            except asyncio.CancelledError:
                pass
        if self._server is not None:
            await asyncio.to_thread(self._server.stop)
            self._server = None
        self.store.close()

    @property
    def sessions(self) -> list[Session]:
        return self.query_one(SessionTable).sessions

    async def refresh_sessions(self) -> None:
        """Reload and display all sessions.

        The snapshot is built on a worker thread, the widgets are updated on
        the event loop.
        """
        async with self._refresh_lock:
            sessions = await asyncio.to_thread(
                get_sessions, self.store, oracle=self._oracle, tab_names=self._tab_names
            )
            self._show_sessions(sessions)

    def _show_sessions(self, sessions: list[Session]) -> None:
        table = self.query_one(SessionTable)
        empty_msg = self.query_one("#empty-message", Static)

        table.update_sessions(sessions)
        table.display = bool(sessions)
        empty_msg.display = not sessions

        running = sum(1 for s in sessions if s.status == STATUS_RUNNING)
        waiting = sum(1 for s in sessions if s.status == STATUS_WAITING_INPUT)
        stopped = sum(1 for s in sessions if s.status == STATUS_STOPPED)
        self.sub_title = f"● {running}  ◐ {waiting}  ✓ {stopped}"

    async def scan_processes(self) -> None:
        """Sync Codex processes into the store."""
        detected = await asyncio.to_thread(self._scanner)
        if await asyncio.to_thread(sync_process_sessions, self.store, detected):
            await self.refresh_sessions()

    async def _start_server(self) -> None:
        if not self._serve:
            return
        from ccm.server.app import start_background_server

        try:
            self._server = await asyncio.to_thread(
                start_background_server,
                self.store,
                port=self._port,
                prefer_tailscale=self._prefer_tailscale,
            )
        except OSError as e:
            log.debug("Web server failed to start: %s", e)
            self.notify(f"Web UI unavailable: {e}", severity="warning")
            return
        self._web_url = self._server.info.url

    def _render_web_panel(self) -> None:
        panel = self.query_one("#web-panel", Static)
        if not self._web_url:
            panel.display = False
            return
        panel.update(
            f"[b magenta]Web UI[/]  {self._web_url}\n"
            "[dim]Open it on your phone to monitor sessions.\n"
            "Tap a session to focus its terminal on this Mac.[/]"
        )
        panel.display = self._web_visible

    def action_toggle_web_panel(self) -> None:
        """Show or hide the web UI panel and remember the choice."""
        self._web_visible = not self._web_visible
        settings = read_settings()
        settings.web_panel_visible = self._web_visible
        write_settings(settings)
        self._render_web_panel()

    def action_cursor_down(self) -> None:
        self.query_one(SessionTable).action_cursor_down()

    def action_cursor_up(self) -> None:
        self.query_one(SessionTable).action_cursor_up()

    async def _focus_session(self, session: Session | None) -> None:
        if session is None or not session.tty:
            return
        if not await asyncio.to_thread(self._focus, session.tty):
            self.notify("Could not focus terminal", severity="warning")

    async def action_focus_session(self) -> None:
        """Focus the terminal of the selected session."""
        await self._focus_session(self.query_one(SessionTable).selected_session())

    async def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        """Handle row selection (enter key) to focus the session's terminal."""
        await self.action_focus_session()

    async def action_quick_select(self, number: int) -> None:
        """Select session #number and focus its terminal."""
        table = self.query_one(SessionTable)
        index = number - 1
        if index >= len(table.sessions):
            return
        table.move_cursor(row=index)
        await self._focus_session(table.sessions[index])

    async def action_clear_sessions(self) -> None:
        """Forget every tracked session."""
        clear_sessions(self.store)
        self.query_one(SessionTable).move_cursor(row=0)
        await self.refresh_sessions()
