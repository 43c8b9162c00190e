"""Hook installation for Claude Code integration.

This module adds `ccm hook <Event>` commands to Claude Code's settings.json
for every lifecycle event ccm tracks, and removes them again on uninstall.
Hooks belonging to the user or other tools are left alone.
"""

import logging
import re
import shutil
import sys
from pathlib import Path

import click
import orjson

log = logging.getLogger(__name__)

PACKAGE_NAME = "claude-code-monitor"

# Installation order, also the order shown in the setup preview
HOOK_EVENTS = ["UserPromptSubmit", "PreToolUse", "PostToolUse", "Notification", "Stop"]

DISABLE_TITLE_ENV_KEY = "CLAUDE_CODE_DISABLE_TERMINAL_TITLE"
GHOSTTY_ASKED_ENV_KEY = "CLAUDE_CODE_MONITOR_GHOSTTY_ASKED"

_HOOK_COMMAND = re.compile(
    rf"^(?:ccm|npx {re.escape(PACKAGE_NAME)}|\S+ -m ccm) hook (?P<event>\w+)$"
)


def get_claude_settings_path() -> Path:
    """Get the path to Claude Code's settings.json."""
    return Path.home() / ".claude" / "settings.json"


def get_ccm_command() -> str:
    """Base command that hooks should run.

    Uses `ccm` when it is on PATH, otherwise this interpreter with `-m ccm`.
    """
    if shutil.which("ccm"):
        return "ccm"
    return f"{sys.executable} -m ccm"


def is_ccm_hook_command(command: str, event: str) -> bool:
    """Check if a hook command is ccm's handler for the given event."""
    match = _HOOK_COMMAND.match(command.strip())
    return match is not None and match.group("event") == event


def has_ccm_hook_for_event(entries: list | None, event: str) -> bool:
    if not entries:
        return False
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        for hook in entry.get("hooks", []):
            if isinstance(hook, dict) and is_ccm_hook_command(
                str(hook.get("command", "")), event
            ):
                return True
    return False


def create_hook_entry(event: str, base_command: str) -> dict:
    """Build the settings.json entry for one event.

    Every event except UserPromptSubmit needs a matcher.
    """
    entry: dict = {
        "hooks": [{"type": "command", "command": f"{base_command} hook {event}"}]
    }
    if event != "UserPromptSubmit":
        entry["matcher"] = ""
    return entry


def load_claude_settings() -> dict:
    """Read Claude Code settings, treating a missing or corrupt file as empty."""
    settings_path = get_claude_settings_path()
    if not settings_path.exists():
        return {}
    try:
        content = settings_path.read_bytes()
        settings = orjson.loads(content) if content else {}
    except (orjson.JSONDecodeError, OSError):
        click.echo(
            "Warning: Failed to parse existing settings.json, creating new one",
            err=True,
        )
        return {}
    return settings if isinstance(settings, dict) else {}


def save_claude_settings(settings: dict) -> None:
    settings_path = get_claude_settings_path()
    settings_path.parent.mkdir(parents=True, exist_ok=True)
    settings_path.write_bytes(orjson.dumps(settings, option=orjson.OPT_INDENT_2))
    settings_path.chmod(0o600)


def categorize_hooks(settings: dict) -> tuple[list[str], list[str]]:
    """Split HOOK_EVENTS into events still to add and events already set up.

    Returns:
        (to_add, to_skip) in HOOK_EVENTS order.
    """
    hooks = settings.get("hooks") or {}
    to_add: list[str] = []
    to_skip: list[str] = []
    for event in HOOK_EVENTS:
        if has_ccm_hook_for_event(hooks.get(event), event):
            to_skip.append(event)
        else:
            to_add.append(event)
    return to_add, to_skip


def is_hooks_configured() -> bool:
    """Check that every tracked event has a ccm hook installed."""
    settings_path = get_claude_settings_path()
    if not settings_path.exists():
        return False
    try:
        content = settings_path.read_bytes()
        settings = orjson.loads(content) if content else {}
    except (orjson.JSONDecodeError, OSError):
        return False
    if not isinstance(settings, dict) or not settings.get("hooks"):
        return False
    to_add, _ = categorize_hooks(settings)
    return not to_add


def install_hooks(settings: dict, to_add: list[str], base_command: str) -> None:
    """Append ccm hook entries for the given events and save settings.

    Existing entries for those events are preserved.
    """
    hooks = settings.setdefault("hooks", {})
    for event in to_add:
        hooks.setdefault(event, []).append(create_hook_entry(event, base_command))
    save_claude_settings(settings)


def uninstall_hooks() -> int:
    """Remove ccm hooks from Claude Code settings.

    Returns:
        Number of hook entries removed.
    """
    settings_path = get_claude_settings_path()
    if not settings_path.exists():
        return 0
    content = settings_path.read_bytes()
    if not content:
        return 0

    settings = orjson.loads(content)
    hooks = settings.get("hooks", {})
    removed = 0

    for event in HOOK_EVENTS:
        if event not in hooks:
            continue
        kept = [
            entry
            for entry in hooks[event]
            if not has_ccm_hook_for_event([entry], event)
        ]
        removed += len(hooks[event]) - len(kept)
        if kept:
            hooks[event] = kept
        else:
            del hooks[event]

    if hooks:
        settings["hooks"] = hooks
    elif "hooks" in settings:
        del settings["hooks"]

    save_claude_settings(settings)
    return removed


def is_ghostty_installed() -> bool:
    if Path("/Applications/Ghostty.app").exists():
        return True
    return shutil.which("ghostty") is not None


def has_ghostty_setting_asked(settings: dict) -> bool:
    return (settings.get("env") or {}).get(GHOSTTY_ASKED_ENV_KEY) == "1"


def apply_ghostty_title_setting(settings: dict, enabled: bool) -> None:
    """Record the Ghostty answer so it is only asked once.

    Accepting also disables Claude Code's terminal title override, which
    would otherwise hide the tab names ccm uses for focus.
    """
    env = settings.setdefault("env", {})
    env[GHOSTTY_ASKED_ENV_KEY] = "1"
    if enabled:
        env[DISABLE_TITLE_ENV_KEY] = "1"
