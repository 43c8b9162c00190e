"""Hook event reducer.

Folds Claude Code lifecycle events into the session map. Every event is
validated at the boundary, then applied as one read-modify-write against the
store so the one-session-per-TTY rule holds in committed state.
"""

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from ccm.core.session import (
    SOURCE_HOOK,
    STATUS_RUNNING,
    STATUS_STOPPED,
    STATUS_WAITING_INPUT,
    Session,
    session_key,
    utc_now,
)
from ccm.core.store import SessionStore
from ccm.core.transcript import build_transcript_path, get_last_assistant_message

log = logging.getLogger(__name__)

HOOK_EVENTS = frozenset(
    {"PreToolUse", "PostToolUse", "Notification", "Stop", "UserPromptSubmit"}
)


class HookValidationError(ValueError):
    """Raised when a hook payload fails boundary validation."""


@dataclass(frozen=True)
class HookEvent:
    """A validated Claude Code hook event.

    Attributes:
        session_id: Non-empty assistant session identifier.
        cwd: Working directory reported by the assistant.
        event_name: One of HOOK_EVENTS.
        tty: Terminal of the assistant process, if it could be resolved.
        notification_type: Set on Notification events (e.g. "permission_prompt").
        transcript_path: Conversation transcript JSONL file.
    """

    session_id: str
    cwd: str
    event_name: str
    tty: str | None = None
    notification_type: str | None = None
    transcript_path: str | None = None

    @classmethod
    def from_payload(
        cls,
        event_name: str,
        payload: object,
        tty: str | None = None,
        cwd_default: str | None = None,
    ) -> "HookEvent":
        """Validate a raw hook payload.

        Args:
            event_name: Event name given on the command line.
            payload: Parsed JSON from stdin.
            tty: Resolved terminal device path, if any.
            cwd_default: Used when the payload has no cwd. Defaults to os.getcwd().

        Raises:
            HookValidationError: If the event name or any field is invalid.
        """
        if event_name not in HOOK_EVENTS:
            raise HookValidationError(f"Invalid event name: {event_name}")
        if not isinstance(payload, dict):
            raise HookValidationError("Invalid JSON input")

        session_id = payload.get("session_id")
        if not isinstance(session_id, str) or not session_id:
            raise HookValidationError("Invalid or missing session_id")

        cwd = payload.get("cwd")
        if cwd is not None and not isinstance(cwd, str):
            raise HookValidationError("Invalid cwd: must be a string")

        notification_type = payload.get("notification_type")
        if notification_type is not None and not isinstance(notification_type, str):
            raise HookValidationError("Invalid notification_type: must be a string")

        cwd = cwd or cwd_default or os.getcwd()
        transcript_path = payload.get("transcript_path")
        if not isinstance(transcript_path, str):
            transcript_path = str(build_transcript_path(cwd, session_id))

        return cls(
            session_id=session_id,
            cwd=cwd,
            event_name=event_name,
            tty=tty or None,
            notification_type=notification_type,
            transcript_path=transcript_path,
        )


def determine_status(
    event_name: str, notification_type: str | None, current: str | None
) -> str:
    """Compute the next status for a hook event.

    The rules are checked in order and the first match wins:

    1. Stop always stops.
    2. UserPromptSubmit always resumes, even a stopped session.
    3. A stopped session stays stopped for any other event.
    4. PreToolUse runs.
    5. A permission_prompt Notification waits for input.
    6. Anything else runs.
    """
    if event_name == "Stop":
        return STATUS_STOPPED
    if event_name == "UserPromptSubmit":
        return STATUS_RUNNING
    if current == STATUS_STOPPED:
        return STATUS_STOPPED
    if event_name == "PreToolUse":
        return STATUS_RUNNING
    if event_name == "Notification" and notification_type == "permission_prompt":
        return STATUS_WAITING_INPUT
    return STATUS_RUNNING


def remove_sessions_on_tty(
    sessions: dict[str, Session], session_id: str, tty: str | None
) -> list[str]:
    """Drop every other session that claims the same terminal.

    Records with the same TTY and a different session id are removed in
    place, whatever their source.

    Returns:
        Keys of the removed records.
    """
    if not tty:
        return []
    removed = [
        key
        for key, session in sessions.items()
        if session.tty == tty and session.session_id != session_id
    ]
    for key in removed:
        del sessions[key]
    return removed


def apply_hook_event(
    sessions: dict[str, Session],
    event: HookEvent,
    last_message: str | None = None,
    now: datetime | None = None,
) -> Session:
    """Apply one hook event to a session map in place.

    Args:
        sessions: Session map keyed by composite key. Mutated.
        event: Validated hook event.
        last_message: Fresh assistant text, if any was found.
        now: Timestamp to stamp. Defaults to the current time.

    Returns:
        The committed session.
    """
    now = now or utc_now()
    key = session_key(event.session_id, event.tty)

    removed = remove_sessions_on_tty(sessions, event.session_id, event.tty)
    if removed:
        log.debug("Session %s superseded %s on %s", event.session_id, removed, event.tty)

    existing = sessions.get(key)
    session = Session(
        session_id=event.session_id,
        cwd=event.cwd,
        tty=event.tty or (existing.tty if existing else None),
        status=determine_status(
            event.event_name,
            event.notification_type,
            existing.status if existing else None,
        ),
        created_at=existing.created_at if existing else now,
        updated_at=now,
        source=SOURCE_HOOK,
        last_message=last_message
        if last_message is not None
        else (existing.last_message if existing else None),
    )
    sessions[key] = session
    return session


def update_session(
    store: SessionStore,
    event: HookEvent,
    read_message: Callable[[str | Path | None], str | None] = get_last_assistant_message,
) -> Session:
    """Reduce one hook event into the store.

    The store is read right before the mutation so the supersession step
    sees the latest map.
    """
    last_message = read_message(event.transcript_path) if event.transcript_path else None
    data = store.read()
    session = apply_hook_event(data.sessions, event, last_message=last_message)
    store.write(data)
    return session


def remove_session(store: SessionStore, session_id: str, tty: str | None = None) -> bool:
    """Remove one session by id and TTY. Returns whether it existed."""
    data = store.read()
    if data.sessions.pop(session_key(session_id, tty), None) is None:
        return False
    store.write(data)
    return True


def clear_sessions(store: SessionStore) -> None:
    """Drop every session."""
    data = store.read()
    data.sessions.clear()
    store.write(data)
