"""Terminal tab name lookup for session display."""

import logging
import time
from collections.abc import Callable
from dataclasses import replace

from ccm.core.config import TTY_CACHE_TTL_SECONDS
from ccm.core.session import Session
from ccm.core.terminal import DEFAULT_BACKENDS, TerminalBackend, is_macos

log = logging.getLogger(__name__)


class TabNameResolver:
    """Resolve a TTY to its terminal tab title, with a per-TTY TTL cache.

    Misses are cached too, so a TTY in an unsupported terminal costs one
    round of AppleScript per TTL.
    """

    def __init__(
        self,
        backends: tuple[TerminalBackend, ...] = DEFAULT_BACKENDS,
        ttl: float = TTY_CACHE_TTL_SECONDS,
        enabled: bool | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.backends = backends
        self.ttl = ttl
        self.enabled = is_macos() if enabled is None else enabled
        self._clock = clock
        self._cache: dict[str, tuple[str | None, float]] = {}

    def get(self, tty: str) -> str | None:
        if not self.enabled or not tty:
            return None

        now = self._clock()
        cached = self._cache.get(tty)
        if cached is not None and now - cached[1] < self.ttl:
            return cached[0]

        name = None
        for backend in self.backends:
            name = backend.tab_name(tty)
            if name:
                break
        self._cache[tty] = (name, now)
        return name

    def clear(self) -> None:
        self._cache.clear()

    def enrich(self, sessions: list[Session]) -> list[Session]:
        """Return sessions with ``tab_name`` filled in where one is found.

        A lookup error leaves that session unchanged.
        """
        enriched = []
        for session in sessions:
            if session.tty:
                try:
                    name = self.get(session.tty)
                except Exception as e:
                    log.debug("Tab name lookup failed for %s: %s", session.tty, e)
                    name = None
                if name:
                    session = replace(session, tab_name=name)
            enriched.append(session)
        return enriched
