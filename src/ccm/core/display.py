"""Display helpers shared by the dashboard and the list command."""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from ccm.core.session import STATUS_RUNNING, STATUS_STOPPED, STATUS_WAITING_INPUT, utc_now


@dataclass(frozen=True)
class StatusDisplay:
    symbol: str
    color: str
    label: str


STATUS_DISPLAY = {
    STATUS_RUNNING: StatusDisplay("●", "gray", "Running"),
    STATUS_WAITING_INPUT: StatusDisplay("◐", "yellow", "Waiting"),
    STATUS_STOPPED: StatusDisplay("✓", "green", "Done"),
}


def get_status_display(status: str) -> StatusDisplay:
    return STATUS_DISPLAY[status]


def format_relative_time(timestamp: datetime, now: datetime | None = None) -> str:
    """Format a timestamp as "5s ago", "2m ago" or "1h ago".

    The largest whole unit wins.
    """
    now = now or utc_now()
    seconds = max(int((now - timestamp).total_seconds()), 0)
    minutes = seconds // 60
    hours = minutes // 60
    if hours > 0:
        return f"{hours}h ago"
    if minutes > 0:
        return f"{minutes}m ago"
    return f"{seconds}s ago"


def abbreviate_home(path: str) -> str:
    """Replace the home directory prefix with ~."""
    home = str(Path.home())
    if path == home:
        return "~"
    if path.startswith(home + "/"):
        return "~" + path[len(home):]
    return path
