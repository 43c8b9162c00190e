"""Session list widget for the ccm dashboard."""

from rich.text import Text
from textual.widgets import DataTable

from ccm.core.display import abbreviate_home, format_relative_time, get_status_display
from ccm.core.session import Session

MESSAGE_PREVIEW_LENGTH = 60

# Rich has no plain "gray"
_STYLES = {"gray": "grey50"}


def _message_preview(message: str | None) -> str:
    if not message:
        return ""
    line = " ".join(message.split())
    if len(line) > MESSAGE_PREVIEW_LENGTH:
        return line[: MESSAGE_PREVIEW_LENGTH - 1] + "…"
    return line


def session_label(session: Session) -> str:
    """Name shown for a session: its tab name, else its directory."""
    return session.tab_name or abbreviate_home(session.cwd)


class SessionTable(DataTable):
    """DataTable widget displaying tracked sessions.

    Columns: #, Status, Session, Updated, Last message
    Rows are keyed by the session's composite key.
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._sessions: list[Session] = []

    @property
    def sessions(self) -> list[Session]:
        return list(self._sessions)

    def on_mount(self) -> None:
        """Set up the table columns on mount."""
        self.add_columns("#", "Status", "Session", "Updated", "Last message")
        self.cursor_type = "row"

    def update_sessions(self, sessions: list[Session]) -> None:
        """Replace the table contents, keeping the cursor on the same row index.

        Args:
            sessions: Snapshot to display, oldest first.
        """
        cursor_row = self.cursor_row
        self._sessions = list(sessions)
        self.clear()
        for index, session in enumerate(self._sessions, start=1):
            status = get_status_display(session.status)
            style = _STYLES.get(status.color, status.color)
            self.add_row(
                str(index) if index <= 9 else "",
                Text(f"{status.symbol} {status.label}", style=style),
                Text(session_label(session)),
                format_relative_time(session.updated_at),
                Text(_message_preview(session.last_message), style="dim"),
                key=session.key,
            )
        if self._sessions:
            self.move_cursor(row=min(cursor_row, len(self._sessions) - 1))

    def selected_session(self) -> Session | None:
        """The session under the cursor, if any."""
        if not self._sessions or self.cursor_row is None:
            return None
        if 0 <= self.cursor_row < len(self._sessions):
            return self._sessions[self.cursor_row]
        return None
