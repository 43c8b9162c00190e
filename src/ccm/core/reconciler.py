"""Process-scan reconciler.

Assistants without hooks (Codex) are tracked by scanning the process table.
Each scan is authoritative for its source: detected processes are upserted
as running sessions and every other session of that source is swept.
"""

import logging
from collections.abc import Iterable
from datetime import datetime

from ccm.core.config import PROCESS_TIMESTAMP_REFRESH_SECONDS
from ccm.core.reducer import remove_sessions_on_tty
from ccm.core.scanner import DetectedProcess
from ccm.core.session import (
    SOURCE_CODEX,
    STATUS_RUNNING,
    Session,
    session_key,
    utc_now,
)
from ccm.core.store import SessionStore

log = logging.getLogger(__name__)


def process_session_id(source: str, pid: int) -> str:
    """Session id for a scanned process, e.g. "codex-4242"."""
    return f"{source}-{pid}"


def pid_from_session_id(source: str, session_id: str) -> int | None:
    """Recover the pid from a process session id, or None if it has none."""
    prefix = f"{source}-"
    if not session_id.startswith(prefix):
        return None
    tail = session_id[len(prefix):]
    return int(tail) if tail.isdigit() else None


def reconcile(
    sessions: dict[str, Session],
    detected: Iterable[DetectedProcess],
    source: str = SOURCE_CODEX,
    now: datetime | None = None,
) -> bool:
    """Fold one scan result for ``source`` into a session map in place.

    Args:
        sessions: Session map keyed by composite key. Mutated.
        detected: Every process of ``source`` seen in this scan.
        source: Scanner tag. Sessions of other sources are only touched by
            the one-session-per-TTY rule.
        now: Timestamp to stamp. Defaults to the current time.

    Returns:
        True if the map changed in any way other than timestamps.
    """
    now = now or utc_now()
    changed = False
    seen_pids: set[int] = set()

    for proc in detected:
        if proc.source != source:
            continue
        seen_pids.add(proc.pid)
        session_id = process_session_id(source, proc.pid)
        key = session_key(session_id, proc.tty)

        if remove_sessions_on_tty(sessions, session_id, proc.tty):
            changed = True

        existing = sessions.get(key)
        if (
            existing is None
            or existing.cwd != proc.cwd
            or existing.status != STATUS_RUNNING
        ):
            changed = True
        sessions[key] = Session(
            session_id=session_id,
            cwd=proc.cwd,
            tty=proc.tty,
            status=STATUS_RUNNING,
            created_at=existing.created_at if existing else now,
            updated_at=now,
            source=source,
        )

    gone = [
        key
        for key, session in sessions.items()
        if session.source == source
        and pid_from_session_id(source, session.session_id) not in seen_pids
    ]
    for key in gone:
        log.debug("Process session %s is gone", key)
        del sessions[key]
    return changed or bool(gone)


def sync_process_sessions(
    store: SessionStore,
    detected: Iterable[DetectedProcess],
    source: str = SOURCE_CODEX,
    refresh_after: float = PROCESS_TIMESTAMP_REFRESH_SECONDS,
) -> bool:
    """Apply one scan tick to the store as at most one write.

    The write is skipped when nothing changed and every session of
    ``source`` was stamped less than ``refresh_after`` seconds ago, so an
    idle scan does not wake store watchers.
    """
    data = store.read()
    now = utc_now()
    stale = any(
        session.source == source
        and (now - session.updated_at).total_seconds() >= refresh_after
        for session in data.sessions.values()
    )
    changed = reconcile(data.sessions, detected, source=source, now=now)
    if changed or stale:
        store.write(data)
    return changed
