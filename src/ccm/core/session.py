"""Session and store dataclasses for ccm."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging

log = logging.getLogger(__name__)

STATUS_RUNNING = "running"
STATUS_WAITING_INPUT = "waiting_input"
STATUS_STOPPED = "stopped"
VALID_STATUSES = {STATUS_RUNNING, STATUS_WAITING_INPUT, STATUS_STOPPED}

SOURCE_HOOK = "hook"
SOURCE_CODEX = "codex"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def session_key(session_id: str, tty: str | None) -> str:
    """Build the composite store key for a session.

    Args:
        session_id: Assistant-provided or "<source>-<pid>" identifier.
        tty: Terminal device path, if known.

    Returns:
        ``session_id`` alone when there is no TTY, else ``"<session_id>:<tty>"``.
    """
    return f"{session_id}:{tty}" if tty else session_id


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class Session:
    """A tracked assistant session.

    Attributes:
        session_id: Identifier from the hook payload, or "<source>-<pid>"
            for sessions found by the process scanner.
        cwd: Working directory, used for display only.
        status: One of "running", "waiting_input", "stopped".
        created_at: When the session was first recorded. Never changes.
        updated_at: When the session was last reconciled.
        tty: Terminal device path (e.g. "/dev/ttys003"), if known.
        source: "hook" for hook-driven sessions, else the scanner tag.
        last_message: Most recent assistant text from the transcript.
        tab_name: Terminal tab title. Filled in for snapshots only.
    """

    session_id: str
    cwd: str
    status: str
    created_at: datetime
    updated_at: datetime
    tty: str | None = None
    source: str = SOURCE_HOOK
    last_message: str | None = None
    tab_name: str | None = None

    def __post_init__(self) -> None:
        """Validate session status."""
        if self.status not in VALID_STATUSES:
            raise ValueError(
                f"Invalid status: {self.status}. Must be one of {VALID_STATUSES}"
            )

    @property
    def key(self) -> str:
        return session_key(self.session_id, self.tty)

    def to_dict(self) -> dict:
        """Serialize to the on-disk layout. ``tab_name`` is never persisted."""
        data = {
            "session_id": self.session_id,
            "cwd": self.cwd,
            "tty": self.tty,
            "status": self.status,
            "source": self.source,
            "created_at": _format_timestamp(self.created_at),
            "updated_at": _format_timestamp(self.updated_at),
        }
        if self.last_message is not None:
            data["last_message"] = self.last_message
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Session":
        """Deserialize from the on-disk layout.

        Raises:
            KeyError, TypeError, ValueError: If the record is malformed.
        """
        tty = data.get("tty") or None
        last_message = data.get("last_message")
        return cls(
            session_id=str(data["session_id"]),
            cwd=str(data.get("cwd", "")),
            status=data["status"],
            created_at=_parse_timestamp(data["created_at"]),
            updated_at=_parse_timestamp(data["updated_at"]),
            tty=str(tty) if tty else None,
            source=str(data.get("source") or SOURCE_HOOK),
            last_message=str(last_message) if last_message is not None else None,
        )


@dataclass
class StoreData:
    """The whole persisted state: session map plus last write time."""

    sessions: dict[str, Session] = field(default_factory=dict)
    updated_at: datetime = field(default_factory=utc_now)

    @classmethod
    def empty(cls) -> "StoreData":
        return cls()

    def copy(self) -> "StoreData":
        return StoreData(sessions=dict(self.sessions), updated_at=self.updated_at)

    def to_dict(self) -> dict:
        return {
            "sessions": {key: s.to_dict() for key, s in self.sessions.items()},
            "updated_at": _format_timestamp(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StoreData":
        """Deserialize a store document, skipping malformed session records.

        Raises:
            ValueError: If the document itself is not a store layout.
        """
        if not isinstance(data, dict) or not isinstance(data.get("sessions"), dict):
            raise ValueError("Store document has no sessions map")

        sessions: dict[str, Session] = {}
        for key, raw in data["sessions"].items():
            try:
                sessions[key] = Session.from_dict(raw)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                log.debug("Skipping malformed session %r: %s", key, e)

        updated_at = utc_now()
        raw_updated = data.get("updated_at")
        if isinstance(raw_updated, str):
            try:
                updated_at = _parse_timestamp(raw_updated)
            except ValueError:
                pass
        return cls(sessions=sessions, updated_at=updated_at)
