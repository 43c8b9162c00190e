"""TTY liveness oracle.

Answers "is the terminal this session ran in still open?". Results are
cached for a short TTL because the snapshot producer asks for every session
on every refresh.
"""

import logging
import os
import subprocess
import time
from collections import OrderedDict
from collections.abc import Callable

from ccm.core.config import MAX_TTY_CACHE_SIZE, TTY_CACHE_TTL_SECONDS

log = logging.getLogger(__name__)

PS_TIMEOUT_SECONDS = 2


def check_tty(tty: str, timeout: float = PS_TIMEOUT_SECONDS) -> bool | None:
    """Ask the OS whether a terminal is still in use.

    Returns:
        True if some process is attached to the terminal, False if the
        terminal is confirmed gone, None if the check was inconclusive.
    """
    if not os.path.exists(tty):
        return False

    name = tty.removeprefix("/dev/")
    try:
        result = subprocess.run(
            ["ps", "-t", name, "-o", "pid="],
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as e:
        log.debug("Liveness check for %s failed: %s", tty, e)
        return None

    if result.stdout.strip():
        return True
    # ps exits non-zero when nothing matches the terminal
    if result.returncode != 0 and not result.stderr.strip():
        return False
    return None


class TtyLivenessOracle:
    """Cached TTY liveness check.

    Inconclusive checks fail open: the TTY counts as alive and the result is
    not cached, so the next snapshot asks again.
    """

    def __init__(
        self,
        ttl: float = TTY_CACHE_TTL_SECONDS,
        max_entries: int = MAX_TTY_CACHE_SIZE,
        timeout: float = PS_TIMEOUT_SECONDS,
        check: Callable[[str], bool | None] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self.max_entries = max_entries
        self._check = check or (lambda tty: check_tty(tty, timeout=timeout))
        self._clock = clock
        self._cache: OrderedDict[str, tuple[bool, float]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._cache)

    def is_alive(self, tty: str | None) -> bool:
        """Check whether a session's terminal is alive.

        Sessions without a TTY cannot be checked and always count as alive.
        """
        if not tty:
            return True

        now = self._clock()
        cached = self._cache.get(tty)
        if cached is not None and now - cached[1] < self.ttl:
            return cached[0]

        result = self._check(tty)
        if result is None:
            return True

        self._cache.pop(tty, None)
        self._cache[tty] = (result, now)
        while len(self._cache) > self.max_entries:
            self._cache.popitem(last=False)
        return result

    def clear(self) -> None:
        self._cache.clear()
