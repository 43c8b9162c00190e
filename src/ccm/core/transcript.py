"""Claude Code transcript helpers."""

import logging
import re
from pathlib import Path

import orjson

log = logging.getLogger(__name__)


def build_transcript_path(cwd: str, session_id: str) -> Path:
    """Build the transcript path Claude Code uses for a session.

    Transcripts live at ~/.claude/projects/<encoded cwd>/<session_id>.jsonl,
    where the cwd is encoded by replacing every "/" and "." with "-".
    """
    encoded_cwd = re.sub(r"[/.]", "-", cwd)
    return Path.home() / ".claude" / "projects" / encoded_cwd / f"{session_id}.jsonl"


def _text_of(entry: dict) -> str | None:
    if entry.get("type") != "assistant":
        return None
    message = entry.get("message") or {}
    content = message.get("content") if isinstance(message, dict) else None
    if not isinstance(content, list):
        return None
    text_parts = [
        block["text"]
        for block in content
        if isinstance(block, dict)
        and block.get("type") == "text"
        and isinstance(block.get("text"), str)
    ]
    text = "\n".join(text_parts)
    return text or None


def get_last_assistant_message(transcript_path: str | Path | None) -> str | None:
    """Extract the most recent assistant text from a transcript JSONL file.

    Args:
        transcript_path: Path to the conversation transcript (.jsonl).

    Returns:
        The text blocks of the last assistant entry that has any, joined with
        newlines, or None if the file is missing or has no such entry.
    """
    if not transcript_path:
        return None
    path = Path(transcript_path).expanduser()
    try:
        lines = path.read_bytes().splitlines()
    except OSError as e:
        log.debug("Could not read transcript %s: %s", path, e)
        return None

    # Walk from the end, the latest answer is near the bottom
    for line in reversed(lines):
        line = line.strip()
        if not line:
            continue
        try:
            entry = orjson.loads(line)
        except orjson.JSONDecodeError:
            continue
        if not isinstance(entry, dict):
            continue
        text = _text_of(entry)
        if text:
            return text
    return None
