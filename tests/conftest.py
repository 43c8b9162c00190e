"""Shared pytest fixtures for ccm tests."""

from datetime import datetime, timedelta, timezone

import pytest

from ccm.core.session import Session
from ccm.core.store import SessionStore

BASE_TIME = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_ccm_home(tmp_path, monkeypatch):
    """Point the ccm data directory and HOME at tmp_path.

    This ensures tests don't write to the real ~/.claude-monitor/ or
    ~/.claude/settings.json.
    """
    home = tmp_path / "home"
    home.mkdir()
    data_dir = tmp_path / "data"
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("CCM_HOME", str(data_dir))
    monkeypatch.delenv("CCM_LOG_LEVEL", raising=False)
    return data_dir


@pytest.fixture
def store(tmp_path):
    """A store in tmp_path; pending writes are dropped after the test."""
    s = SessionStore(tmp_path / "sessions.json", debounce=0.05)
    yield s
    s.reset_cache()


class FakeOracle:
    """Liveness oracle answering from a fixed set of dead TTYs."""

    def __init__(self, dead: set[str] | None = None) -> None:
        self.dead = set(dead or ())
        self.calls: list[str | None] = []

    def is_alive(self, tty: str | None) -> bool:
        self.calls.append(tty)
        if not tty:
            return True
        return tty not in self.dead


@pytest.fixture
def alive_oracle():
    return FakeOracle()


def make_session(
    session_id: str = "s1",
    tty: str | None = "/dev/ttys001",
    status: str = "running",
    cwd: str = "/tmp/project",
    source: str = "hook",
    created_offset: int = 0,
    last_message: str | None = None,
) -> Session:
    """Build a session created ``created_offset`` seconds after BASE_TIME."""
    created = BASE_TIME + timedelta(seconds=created_offset)
    return Session(
        session_id=session_id,
        cwd=cwd,
        status=status,
        created_at=created,
        updated_at=created,
        tty=tty,
        source=source,
        last_message=last_message,
    )
