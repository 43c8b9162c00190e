"""Terminal device helpers."""

import logging
import os
import re
import subprocess

log = logging.getLogger(__name__)

# /dev/ttys003 on macOS, /dev/pts/4 on Linux
TTY_PATH_PATTERN = re.compile(r"^/dev/(ttys?\d+|pts/\d+)$")

MAX_ANCESTOR_DEPTH = 5
PS_TIMEOUT_SECONDS = 2


def is_valid_tty_path(tty: str | None) -> bool:
    """Check that a TTY path looks like a real terminal device."""
    return bool(tty) and TTY_PATH_PATTERN.match(tty) is not None


def normalize_tty(name: str) -> str | None:
    """Turn a ps TTY column value into a device path.

    Returns None for processes without a controlling terminal ("??", "?").
    """
    name = name.strip()
    if not name or name in {"??", "?", "-"}:
        return None
    if name.startswith("/dev/"):
        return name
    return f"/dev/{name}"


def _ps_field(field: str, pid: int) -> str:
    result = subprocess.run(
        ["ps", "-o", f"{field}=", "-p", str(pid)],
        capture_output=True,
        text=True,
        timeout=PS_TIMEOUT_SECONDS,
        check=False,
    )
    return result.stdout.strip()


def get_tty_from_ancestors(pid: int | None = None) -> str | None:
    """Find the controlling terminal of this process or its nearest ancestor.

    Hook commands run without a terminal of their own, so the walk goes up
    the parent chain (at most five levels) until a process reports one.

    Args:
        pid: Process to start from. Defaults to the parent of this process.

    Returns:
        The TTY device path, or None if none was found.
    """
    current = pid if pid is not None else os.getppid()
    try:
        for _ in range(MAX_ANCESTOR_DEPTH):
            if current <= 1:
                break
            tty = normalize_tty(_ps_field("tty", current))
            if tty:
                return tty
            parent = _ps_field("ppid", current)
            if not parent.isdigit():
                break
            current = int(parent)
    except (OSError, subprocess.SubprocessError) as e:
        log.debug("TTY lookup failed at pid %s: %s", current, e)
    return None
