"""Store change notifications.

Wraps watchfiles so the dashboard and the web mirror can react to writes
made by hook processes.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path

from watchfiles import awatch

from ccm.core.config import SESSION_UPDATE_DEBOUNCE_MS

log = logging.getLogger(__name__)


async def watch_store(
    path: Path,
    on_change: Callable[[], object | Awaitable[object]],
    debounce_ms: int = SESSION_UPDATE_DEBOUNCE_MS,
    stop_event: asyncio.Event | None = None,
) -> None:
    """Call ``on_change`` whenever the store file changes.

    The parent directory is watched because the store is replaced by rename
    on every flush. Bursts of changes within ``debounce_ms`` are delivered
    as one call. Runs until cancelled or ``stop_event`` is set.
    """
    store_dir = path.parent
    store_name = path.name
    while True:
        store_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
        try:
            async for changes in awatch(
                store_dir, debounce=debounce_ms, stop_event=stop_event
            ):
                if not any(Path(changed).name == store_name for _, changed in changes):
                    continue
                result = on_change()
                if asyncio.iscoroutine(result):
                    await result
        except asyncio.CancelledError:
            return
        except FileNotFoundError:
            # Directory was deleted, recreate and watch again
            log.debug("Store directory %s vanished, restarting watch", store_dir)
            continue
        return
