"""Process scanner for assistants that have no hook support."""

import logging
import re
import subprocess
from dataclasses import dataclass

from ccm.core.session import SOURCE_CODEX
from ccm.core.tty import normalize_tty

log = logging.getLogger(__name__)

PS_TIMEOUT_SECONDS = 5
LSOF_TIMEOUT_SECONDS = 3

_PS_LINE = re.compile(r"^(\d+)\s+(\S+)\s+(.+)$")
_CODEX_BINARY = re.compile(r"(?:^|/)codex(?:\s|$)")
_CODEX_NPX = re.compile(r"npx\s+codex(?:\s|$)")
_SELF_MARKERS = ("claude-code-monitor", "ccm")


@dataclass(frozen=True)
class DetectedProcess:
    """A running assistant process found by a scan."""

    pid: int
    tty: str
    cwd: str
    source: str = SOURCE_CODEX


def is_codex_process(args: str) -> bool:
    """Check whether a ps args column is a Codex CLI invocation.

    Matches a direct binary (``codex``, ``/usr/local/bin/codex``), node running
    a codex script, and ``npx codex``.
    """
    return bool(_CODEX_BINARY.search(args) or _CODEX_NPX.search(args))


def get_process_cwd(pid: int) -> str | None:
    """Get a process's working directory via lsof, or None."""
    try:
        result = subprocess.run(
            ["lsof", "-a", "-p", str(pid), "-d", "cwd", "-Fn"],
            capture_output=True,
            text=True,
            timeout=LSOF_TIMEOUT_SECONDS,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as e:
        log.debug("lsof failed for pid %s: %s", pid, e)
        return None

    # -Fn output is "p<pid>" then "n<path>"
    for line in result.stdout.splitlines():
        if line.startswith("n") and len(line) > 1:
            return line[1:]
    return None


def parse_ps_output(output: str) -> list[tuple[int, str, str]]:
    """Pick Codex rows out of ``ps -eo pid,tty,args`` output.

    Returns:
        (pid, tty path, args) for each Codex process that has a terminal.
    """
    rows: list[tuple[int, str, str]] = []
    for line in output.splitlines():
        match = _PS_LINE.match(line.strip())
        if not match:
            continue
        pid_str, tty_name, args = match.groups()
        if not is_codex_process(args):
            continue
        if any(marker in args for marker in _SELF_MARKERS):
            continue
        tty = normalize_tty(tty_name)
        if tty is None:
            continue
        rows.append((int(pid_str), tty, args))
    return rows


def scan_for_codex_processes() -> list[DetectedProcess]:
    """Scan the process table for running Codex CLI sessions.

    Processes whose working directory cannot be resolved are skipped. Any
    failure of ps yields an empty list.
    """
    try:
        result = subprocess.run(
            ["ps", "-eo", "pid,tty,args"],
            capture_output=True,
            text=True,
            timeout=PS_TIMEOUT_SECONDS,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as e:
        log.debug("Process scan failed: %s", e)
        return []
    if result.returncode != 0:
        return []

    detected = []
    for pid, tty, _args in parse_ps_output(result.stdout):
        cwd = get_process_cwd(pid)
        if cwd:
            detected.append(DetectedProcess(pid=pid, tty=tty, cwd=cwd))
    return detected
