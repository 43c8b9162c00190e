"""Snapshot producer.

Every reader (dashboard, web mirror, ``ccm list``) goes through
get_sessions() for a pruned, ordered and labelled view of the store.
"""

import logging
from collections.abc import Callable

from ccm.core.liveness import TtyLivenessOracle
from ccm.core.session import Session, session_key
from ccm.core.store import SessionStore
from ccm.core.tab_names import TabNameResolver

log = logging.getLogger(__name__)


def prune_dead_sessions(
    sessions: dict[str, Session], is_alive: Callable[[str | None], bool]
) -> list[str]:
    """Remove sessions whose terminal is gone, in place.

    Sessions without a TTY are kept without asking ``is_alive``.

    Returns:
        Keys of the removed sessions.
    """
    dead = [
        key
        for key, session in sessions.items()
        if session.tty and not is_alive(session.tty)
    ]
    for key in dead:
        del sessions[key]
    return dead


def get_sessions(
    store: SessionStore,
    oracle: TtyLivenessOracle | None = None,
    tab_names: TabNameResolver | None = None,
) -> list[Session]:
    """Produce the current list of live sessions, oldest first.

    Dead sessions are pruned and the pruned map persisted once. Tab names
    are attached best-effort when a resolver is given.
    """
    oracle = oracle or TtyLivenessOracle()
    data = store.read()
    dead = prune_dead_sessions(data.sessions, oracle.is_alive)
    if dead:
        log.debug("Pruned sessions on closed terminals: %s", dead)
        store.write(data)

    # sorted() is stable, so equal timestamps keep insertion order
    sessions = sorted(data.sessions.values(), key=lambda s: s.created_at)

    if tab_names is not None:
        try:
            sessions = tab_names.enrich(sessions)
        except Exception as e:
            log.debug("Tab name enrichment failed: %s", e)
    return list(sessions)


def get_session(
    store: SessionStore, session_id: str, tty: str | None = None
) -> Session | None:
    """Look up one session by id and TTY without pruning."""
    return store.read().sessions.get(session_key(session_id, tty))


def find_session(sessions: list[Session], session_id: str) -> Session | None:
    """Find a session in a snapshot by its id."""
    for session in sessions:
        if session.session_id == session_id:
            return session
    return None
