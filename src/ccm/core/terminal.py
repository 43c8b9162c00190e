"""macOS terminal integration via AppleScript.

Each supported terminal app is a backend offering focus, send-text and
tab-name lookup for a TTY. Callers try the backends in a fixed order and
take the first one that succeeds; a backend that fails never stops the chain.
"""

import logging
import subprocess
import sys
from dataclasses import dataclass

from ccm.core.tty import is_valid_tty_path

log = logging.getLogger(__name__)

OSASCRIPT_TIMEOUT_SECONDS = 5
MAX_TEXT_LENGTH = 10000


def is_macos() -> bool:
    return sys.platform == "darwin"


def sanitize_for_applescript(value: str) -> str:
    """Escape a string for use inside an AppleScript string literal."""
    return (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )


def run_applescript(script: str, timeout: float = OSASCRIPT_TIMEOUT_SECONDS) -> str | None:
    """Run an AppleScript and return its trimmed output.

    Returns:
        The script's output, or None if osascript failed or timed out.
    """
    try:
        result = subprocess.run(
            ["osascript", "-e", script],
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as e:
        log.debug("osascript failed: %s", e)
        return None
    if result.returncode != 0:
        log.debug("osascript exited %s: %s", result.returncode, result.stderr.strip())
        return None
    return result.stdout.strip()


def _succeeded(script: str) -> bool:
    return run_applescript(script) == "true"


# Text goes through the clipboard and Cmd+V so non-ASCII input survives.
_PASTE_AND_RETURN = """
          tell application "System Events"
            tell process "{process}"
              keystroke "v" using command down
              delay 0.05
              keystroke return
            end tell
          end tell"""


class TerminalBackend:
    """One terminal application reachable over AppleScript."""

    name = ""

    def focus(self, tty: str) -> bool:
        return False

    def send_text(self, tty: str, text: str) -> bool:
        return False

    def tab_name(self, tty: str) -> str | None:
        return None


class ITerm2Backend(TerminalBackend):
    name = "iTerm2"

    def _find_session(self, tty: str, body: str) -> str:
        return f"""
tell application "iTerm2"
  repeat with aWindow in windows
    repeat with aTab in tabs of aWindow
      repeat with aSession in sessions of aTab
        if tty of aSession is "{sanitize_for_applescript(tty)}" then
{body}
        end if
      end repeat
    end repeat
  end repeat
  return false
end tell
"""

    def focus_script(self, tty: str) -> str:
        return self._find_session(
            tty,
            """          select aSession
          select aTab
          tell aWindow to select
          activate
          return true""",
        )

    def send_text_script(self, tty: str, text: str) -> str:
        body = (
            """          select aSession
          select aTab
          tell aWindow to select
          activate
          delay 0.1"""
            + _PASTE_AND_RETURN.format(process="iTerm2")
            + "\n          return true"
        )
        return f'set the clipboard to "{sanitize_for_applescript(text)}"\n' + (
            self._find_session(tty, body)
        )

    def tab_name_script(self, tty: str) -> str:
        return f"""
tell application "System Events"
  if not (exists process "iTerm2") then return ""
end tell

tell application "iTerm2"
  repeat with aWindow in windows
    repeat with aTab in tabs of aWindow
      repeat with aSession in sessions of aTab
        if tty of aSession is "{sanitize_for_applescript(tty)}" then
          return name of aSession
        end if
      end repeat
    end repeat
  end repeat
end tell
return ""
"""

    def focus(self, tty: str) -> bool:
        return _succeeded(self.focus_script(tty))

    def send_text(self, tty: str, text: str) -> bool:
        return _succeeded(self.send_text_script(tty, text))

    def tab_name(self, tty: str) -> str | None:
        return run_applescript(self.tab_name_script(tty)) or None


class TerminalAppBackend(TerminalBackend):
    name = "Terminal.app"

    def _find_tab(self, tty: str, body: str) -> str:
        return f"""
tell application "Terminal"
  repeat with aWindow in windows
    repeat with aTab in tabs of aWindow
      if tty of aTab is "{sanitize_for_applescript(tty)}" then
{body}
      end if
    end repeat
  end repeat
  return false
end tell
"""

    def focus_script(self, tty: str) -> str:
        return self._find_tab(
            tty,
            """        set selected of aTab to true
        set index of aWindow to 1
        activate
        return true""",
        )

    def send_text_script(self, tty: str, text: str) -> str:
        body = (
            """        set selected of aTab to true
        set index of aWindow to 1
        activate
        delay 0.1"""
            + _PASTE_AND_RETURN.format(process="Terminal")
            + "\n        return true"
        )
        return f'set the clipboard to "{sanitize_for_applescript(text)}"\n' + (
            self._find_tab(tty, body)
        )

    def tab_name_script(self, tty: str) -> str:
        return f"""
tell application "System Events"
  if not (exists process "Terminal") then return ""
end tell

tell application "Terminal"
  repeat with aWindow in windows
    repeat with aTab in tabs of aWindow
      if tty of aTab is "{sanitize_for_applescript(tty)}" then
        set tabTitle to custom title of aTab
        if tabTitle is not "" then return tabTitle
        return name of aTab
      end if
    end repeat
  end repeat
end tell
return ""
"""

    def focus(self, tty: str) -> bool:
        return _succeeded(self.focus_script(tty))

    def send_text(self, tty: str, text: str) -> bool:
        return _succeeded(self.send_text_script(tty, text))

    def tab_name(self, tty: str) -> str | None:
        return run_applescript(self.tab_name_script(tty)) or None


class GhosttyBackend(TerminalBackend):
    """Ghostty has no per-tab scripting, so it targets the active window."""

    name = "Ghostty"

    FOCUS_SCRIPT = """
tell application "Ghostty"
  activate
end tell
return true
"""

    def send_text_script(self, text: str) -> str:
        # key code 36 is Return; Ghostty ignores "keystroke return"
        return f"""
set the clipboard to "{sanitize_for_applescript(text)}"
tell application "Ghostty"
  activate
end tell
delay 0.3
tell application "System Events"
  tell process "Ghostty"
    keystroke "v" using command down
    delay 0.1
    key code 36
  end tell
end tell
return true
"""

    def focus(self, tty: str) -> bool:
        return _succeeded(self.FOCUS_SCRIPT)

    def send_text(self, tty: str, text: str) -> bool:
        return _succeeded(self.send_text_script(text))


DEFAULT_BACKENDS: tuple[TerminalBackend, ...] = (
    ITerm2Backend(),
    TerminalAppBackend(),
    GhosttyBackend(),
)


def get_supported_terminals() -> list[str]:
    return [backend.name for backend in DEFAULT_BACKENDS]


def focus_session(
    tty: str | None, backends: tuple[TerminalBackend, ...] = DEFAULT_BACKENDS
) -> bool:
    """Bring the terminal tab running ``tty`` to the front.

    Returns:
        True if some backend focused it. Always False off macOS or for an
        invalid TTY path.
    """
    if not is_macos() or not is_valid_tty_path(tty):
        return False
    return any(backend.focus(tty) for backend in backends)


@dataclass(frozen=True)
class SendResult:
    success: bool
    error: str | None = None


def validate_text_input(text: str) -> str | None:
    """Check text before it is typed into a terminal.

    Returns:
        An error message, or None if the text is acceptable.
    """
    if not text or not text.strip():
        return "Text cannot be empty"
    if len(text) > MAX_TEXT_LENGTH:
        return f"Text exceeds maximum length of {MAX_TEXT_LENGTH} characters"
    return None


def send_text_to_terminal(
    tty: str | None,
    text: str,
    backends: tuple[TerminalBackend, ...] = DEFAULT_BACKENDS,
) -> SendResult:
    """Paste text into the terminal tab running ``tty`` and press Enter."""
    if not is_macos():
        return SendResult(False, "This feature is only available on macOS")
    if not is_valid_tty_path(tty):
        return SendResult(False, "Invalid TTY path")
    error = validate_text_input(text)
    if error:
        return SendResult(False, error)

    if any(backend.send_text(tty, text) for backend in backends):
        return SendResult(True)
    return SendResult(False, "Could not send text to any terminal")
