"""Mobile web mirror of the session dashboard.

Serves a single page and a WebSocket. Every connected client gets the
session snapshot on connect and again whenever the store file changes, and
can ask ccm to focus a session's terminal or type text into it.
"""

import asyncio
import logging
import threading
import time
from collections.abc import Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass

import click
import orjson
import uvicorn
from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import HTMLResponse, JSONResponse

from ccm.core.config import DEFAULT_SERVER_PORT
from ccm.core.liveness import TtyLivenessOracle
from ccm.core.network import get_local_ip, get_tailscale_ip
from ccm.core.session import Session
from ccm.core.snapshot import find_session, get_sessions
from ccm.core.store import SessionStore, get_default_store
from ccm.core.tab_names import TabNameResolver
from ccm.core.terminal import SendResult, focus_session, send_text_to_terminal
from ccm.core.watcher import watch_store
from ccm.server.page import INDEX_HTML

log = logging.getLogger(__name__)


def session_to_json(session: Session) -> dict:
    """Wire form of a session: the stored fields plus the tab name."""
    data = session.to_dict()
    data["tab_name"] = session.tab_name
    return data


class Broadcaster:
    """Tracks connected WebSocket clients and fans messages out to them."""

    def __init__(self) -> None:
        self._clients: set[WebSocket] = set()

    def __len__(self) -> int:
        return len(self._clients)

    def add(self, websocket: WebSocket) -> None:
        self._clients.add(websocket)

    def discard(self, websocket: WebSocket) -> None:
        self._clients.discard(websocket)

    async def broadcast(self, message: dict) -> None:
        payload = orjson.dumps(message).decode()
        for websocket in list(self._clients):
            try:
                await websocket.send_text(payload)
            except (WebSocketDisconnect, RuntimeError, OSError) as e:
                log.debug("Dropping WebSocket client: %s", e)
                self._clients.discard(websocket)


def create_app(
    store: SessionStore,
    oracle: TtyLivenessOracle | None = None,
    tab_names: TabNameResolver | None = None,
    focus: Callable[[str], bool] = focus_session,
    send_text: Callable[[str, str], SendResult] = send_text_to_terminal,
    watch: bool = True,
) -> FastAPI:
    """Build the web mirror app for a store.

    Args:
        store: Session store to mirror.
        oracle: Liveness oracle used when producing snapshots.
        tab_names: Tab name resolver used when producing snapshots.
        focus: Focuses a TTY's terminal tab.
        send_text: Types text into a TTY's terminal tab.
        watch: Push snapshots to clients when the store file changes.
    """
    oracle = oracle or TtyLivenessOracle()
    tab_names = tab_names or TabNameResolver()
    broadcaster = Broadcaster()

    def snapshot() -> list[Session]:
        return get_sessions(store, oracle=oracle, tab_names=tab_names)

    async def sessions_message() -> dict:
        sessions = await asyncio.to_thread(snapshot)
        return {"type": "sessions", "data": [session_to_json(s) for s in sessions]}

    async def push_sessions() -> None:
        if len(broadcaster):
            await broadcaster.broadcast(await sessions_message())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        watcher_task = None
        if watch:
            watcher_task = asyncio.create_task(watch_store(store.path, push_sessions))
        yield
        if watcher_task:
            watcher_task.cancel()
            try:
                await watcher_task
            except asyncio.CancelledError:
                pass

    app = FastAPI(title="Claude Code Monitor", lifespan=lifespan)
    app.state.broadcaster = broadcaster
    app.state.push_sessions = push_sessions

    @app.get("/", response_class=HTMLResponse)
    async def index() -> str:
        return INDEX_HTML

    @app.get("/api/sessions")
    async def api_sessions() -> JSONResponse:
        message = await sessions_message()
        return JSONResponse(message["data"])

    async def handle_message(websocket: WebSocket, raw: str) -> None:
        try:
            message = orjson.loads(raw)
        except orjson.JSONDecodeError:
            return
        if not isinstance(message, dict):
            return

        kind = message.get("type")
        session_id = message.get("sessionId")
        if not isinstance(session_id, str) or not session_id:
            return

        if kind == "focus":
            session = find_session(await asyncio.to_thread(snapshot), session_id)
            if session and session.tty:
                success = await asyncio.to_thread(focus, session.tty)
                await websocket.send_text(
                    orjson.dumps({"type": "focusResult", "success": success}).decode()
                )
        elif kind == "sendText":
            text = message.get("text")
            if not isinstance(text, str) or not text:
                return
            session = find_session(await asyncio.to_thread(snapshot), session_id)
            if session and session.tty:
                result = await asyncio.to_thread(send_text, session.tty, text)
            else:
                result = SendResult(False, "Session not found")
            reply: dict = {"type": "sendTextResult", "success": result.success}
            if result.error:
                reply["error"] = result.error
            await websocket.send_text(orjson.dumps(reply).decode())

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket) -> None:
        await websocket.accept()
        broadcaster.add(websocket)
        try:
            await websocket.send_text(orjson.dumps(await sessions_message()).decode())
            while True:
                raw = await websocket.receive_text()
                await handle_message(websocket, raw)
        except WebSocketDisconnect:
            pass
        finally:
            broadcaster.discard(websocket)

    return app


@dataclass(frozen=True)
class ServerInfo:
    url: str
    port: int
    local_ip: str
    tailscale_ip: str | None = None


def resolve_server_info(
    port: int = DEFAULT_SERVER_PORT, prefer_tailscale: bool = False
) -> ServerInfo:
    """Pick the address phones should use to reach the server."""
    local_ip = get_local_ip()
    tailscale_ip = get_tailscale_ip() if prefer_tailscale else None
    host = tailscale_ip or local_ip
    return ServerInfo(
        url=f"http://{host}:{port}",
        port=port,
        local_ip=local_ip,
        tailscale_ip=tailscale_ip,
    )


def _uvicorn_config(app: FastAPI, port: int) -> uvicorn.Config:
    # No uvicorn log handlers: stdout and stderr belong to the TUI
    return uvicorn.Config(
        app,
        host="0.0.0.0",
        port=port,
        log_config=None,
        access_log=False,
        lifespan="on",
    )


class BackgroundServer:
    """uvicorn running on a daemon thread next to the dashboard."""

    def __init__(self, server: uvicorn.Server, info: ServerInfo) -> None:
        self.server = server
        self.info = info
        self._thread = threading.Thread(
            target=server.run, name="ccm-web", daemon=True
        )

    def start(self, timeout: float = 5.0) -> "BackgroundServer":
        """Start serving and wait until the socket is listening.

        Raises:
            OSError: If uvicorn exits during startup (it reports a busy port
                by exiting its thread) or does not come up within
                ``timeout`` seconds.
        """
        self._thread.start()
        deadline = time.monotonic() + timeout
        while not self.server.started:
            if not self._thread.is_alive():
                raise OSError(f"Web server could not listen on port {self.info.port}")
            if time.monotonic() >= deadline:
                self.stop()
                raise OSError(f"Web server did not start on port {self.info.port}")
            time.sleep(0.05)
        return self

    def stop(self, timeout: float = 5.0) -> None:
        self.server.should_exit = True
        if self._thread.is_alive():
            self._thread.join(timeout)


def start_background_server(
    store: SessionStore,
    port: int = DEFAULT_SERVER_PORT,
    prefer_tailscale: bool = False,
) -> BackgroundServer:
    """Start the web mirror on a background thread."""
    info = resolve_server_info(port, prefer_tailscale)
    server = uvicorn.Server(_uvicorn_config(create_app(store), port))
    return BackgroundServer(server, info).start()


def run_server(port: int = DEFAULT_SERVER_PORT, prefer_tailscale: bool = False) -> None:
    """Run the web mirror in the foreground until interrupted."""
    info = resolve_server_info(port, prefer_tailscale)
    click.echo()
    click.echo("  Claude Code Monitor - Mobile Web Interface")
    click.echo()
    click.echo(f"  Server running at: {info.url}")
    if prefer_tailscale and info.tailscale_ip is None:
        click.echo("  Tailscale address not found, using the local network address.")
    click.echo()
    click.echo("  Press Ctrl+C to stop the server.")
    click.echo()

    with get_default_store() as store:
        uvicorn.run(
            create_app(store),
            host="0.0.0.0",
            port=port,
            log_level="warning",
            access_log=False,
        )
