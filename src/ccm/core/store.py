"""Persistent session store with debounced atomic writes.

A single JSON file holds every tracked session. Writes update an in-memory
cache immediately and reach disk after a short debounce, so bursts of hook
events or scan ticks collapse into one file write. Each flush goes to a temp
file in the same directory which is then renamed over the store, so readers
never see a torn file.
"""

import logging
import os
import tempfile
import threading
from pathlib import Path

import orjson

from ccm.core.config import WRITE_DEBOUNCE_SECONDS, get_store_path
from ccm.core.session import StoreData, utc_now

log = logging.getLogger(__name__)


class SessionStore:
    """Owns the session store file and its write-behind cache.

    The debounce timer fires on its own thread, so all cache and timer state
    is guarded by a re-entrant lock.
    """

    def __init__(self, path: Path, debounce: float = WRITE_DEBOUNCE_SECONDS) -> None:
        self.path = Path(path)
        self.debounce = debounce
        self._lock = threading.RLock()
        self._cache: StoreData | None = None
        self._timer: threading.Timer | None = None

    def __enter__(self) -> "SessionStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def has_pending_write(self) -> bool:
        with self._lock:
            return self._cache is not None

    def read(self) -> StoreData:
        """Return the current store contents.

        A pending write is served from the cache. Otherwise the file is read;
        a missing or unreadable file yields an empty store.
        """
        with self._lock:
            if self._cache is not None:
                return self._cache.copy()
        return self._load()

    def write(self, data: StoreData) -> None:
        """Replace the store contents and schedule a flush."""
        with self._lock:
            self._cache = data.copy()
            self._cancel_timer()
            self._timer = threading.Timer(self.debounce, self._flush_pending)
            self._timer.daemon = True
            self._timer.start()

    def flush_now(self) -> None:
        """Cancel the debounce and persist any pending write synchronously."""
        with self._lock:
            self._cancel_timer()
            self._flush_pending()

    def reset_cache(self) -> None:
        """Drop any pending write without persisting it."""
        with self._lock:
            self._cancel_timer()
            self._cache = None

    def close(self) -> None:
        self.flush_now()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _flush_pending(self) -> None:
        with self._lock:
            data = self._cache
            if data is None:
                return
            self._timer = None
            self._persist(data)
            # Later reads go back to disk so writes by other processes show up.
            self._cache = None

    def _load(self) -> StoreData:
        try:
            content = self.path.read_bytes()
        except FileNotFoundError:
            return StoreData.empty()
        except OSError as e:
            log.debug("Could not read store %s: %s", self.path, e)
            return StoreData.empty()
        try:
            return StoreData.from_dict(orjson.loads(content))
        except (orjson.JSONDecodeError, ValueError) as e:
            log.debug("Ignoring corrupt store %s: %s", self.path, e)
            return StoreData.empty()

    def _persist(self, data: StoreData) -> None:
        data.updated_at = utc_now()
        tmp_name = None
        try:
            self.path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
            payload = orjson.dumps(data.to_dict(), option=orjson.OPT_INDENT_2)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.path)
            tmp_name = None
        except (OSError, TypeError) as e:
            log.debug("Could not write store %s: %s", self.path, e)
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass


def get_default_store() -> SessionStore:
    """Build a store for the per-user store file."""
    return SessionStore(get_store_path())
