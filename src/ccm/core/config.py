"""ccm configuration and data directory management.

Handles ~/.claude-monitor for the session store, user settings and the
optional debug log.
"""

import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path

import orjson

log = logging.getLogger(__name__)

WRITE_DEBOUNCE_SECONDS = 0.1
TTY_CACHE_TTL_SECONDS = 30.0
MAX_TTY_CACHE_SIZE = 100
SESSION_UPDATE_DEBOUNCE_MS = 150
SESSION_REFRESH_INTERVAL_SECONDS = 60
PROCESS_SCAN_INTERVAL_SECONDS = 5
PROCESS_TIMESTAMP_REFRESH_SECONDS = 60
DEFAULT_SERVER_PORT = 3456

STORE_FILENAME = "sessions.json"
SETTINGS_FILENAME = "settings.json"
LOG_FILENAME = "ccm.log"


def get_data_dir() -> Path:
    """Get the ccm data directory.

    Honors CCM_HOME so tests and multiple profiles can point elsewhere.
    """
    override = os.environ.get("CCM_HOME")
    if override:
        return Path(override)
    return Path.home() / ".claude-monitor"


def ensure_data_dir() -> Path:
    """Create the data directory (owner-only) if missing."""
    data_dir = get_data_dir()
    data_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
    return data_dir


def get_store_path() -> Path:
    """Get the path to the session store file."""
    return get_data_dir() / STORE_FILENAME


def get_settings_path() -> Path:
    """Get the path to the user settings file."""
    return get_data_dir() / SETTINGS_FILENAME


@dataclass
class Settings:
    """Persisted user preferences.

    Attributes:
        web_panel_visible: Whether the web UI panel is shown in the dashboard.
    """

    web_panel_visible: bool = True


def read_settings() -> Settings:
    """Read user settings, falling back to defaults for missing or bad files."""
    path = get_settings_path()
    if not path.exists():
        return Settings()
    try:
        content = path.read_bytes()
        data = orjson.loads(content) if content else {}
    except (orjson.JSONDecodeError, OSError) as e:
        log.debug("Could not read settings %s: %s", path, e)
        return Settings()
    if not isinstance(data, dict):
        return Settings()
    defaults = Settings()
    visible = data.get("web_panel_visible", defaults.web_panel_visible)
    return Settings(web_panel_visible=bool(visible))


def write_settings(settings: Settings) -> None:
    """Write user settings. Failures are logged and ignored."""
    path = get_settings_path()
    try:
        ensure_data_dir()
        path.write_bytes(orjson.dumps(asdict(settings), option=orjson.OPT_INDENT_2))
        path.chmod(0o600)
    except OSError as e:
        log.debug("Could not write settings %s: %s", path, e)


def configure_logging() -> None:
    """Attach a file handler when CCM_LOG_LEVEL is set.

    stdout and stderr belong to the hook protocol and the TUI, so logs only
    ever go to <data dir>/ccm.log.
    """
    level_name = os.environ.get("CCM_LOG_LEVEL")
    if not level_name:
        return
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.DEBUG

    root = logging.getLogger("ccm")
    if any(getattr(h, "_ccm_handler", False) for h in root.handlers):
        return
    try:
        handler = logging.FileHandler(ensure_data_dir() / LOG_FILENAME)
    except OSError:
        return
    handler._ccm_handler = True  # type: ignore[attr-defined]
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(process)d %(name)s %(levelname)s %(message)s")
    )
    root.addHandler(handler)
    root.setLevel(level)
