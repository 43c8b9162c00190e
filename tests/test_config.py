"""Tests for the data directory, settings and logging setup."""

import logging
import os
import stat

import orjson
import pytest

from ccm.core.config import (
    Settings,
    configure_logging,
    ensure_data_dir,
    get_data_dir,
    read_settings,
    write_settings,
)


def test_data_dir_defaults_to_home(monkeypatch, tmp_path):
    monkeypatch.delenv("CCM_HOME", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    assert get_data_dir() == tmp_path / ".claude-monitor"


def test_ensure_data_dir_is_owner_only(mock_ccm_home):
    path = ensure_data_dir()
    assert path == mock_ccm_home
    assert stat.S_IMODE(os.stat(path).st_mode) & 0o077 == 0


def test_settings_default_when_missing(mock_ccm_home):
    assert read_settings() == Settings(web_panel_visible=True)


def test_settings_round_trip(mock_ccm_home):
    write_settings(Settings(web_panel_visible=False))

    path = mock_ccm_home / "settings.json"
    assert orjson.loads(path.read_bytes()) == {"web_panel_visible": False}
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o600
    assert read_settings().web_panel_visible is False


@pytest.mark.parametrize("content", [b"{bad json", b"[1, 2]", b""])
def test_settings_bad_file_uses_defaults(mock_ccm_home, content):
    mock_ccm_home.mkdir(parents=True)
    (mock_ccm_home / "settings.json").write_bytes(content)
    assert read_settings() == Settings()


@pytest.fixture
def clean_ccm_logger():
    logger = logging.getLogger("ccm")
    saved = (list(logger.handlers), logger.level)
    yield logger
    for handler in logger.handlers:
        if handler not in saved[0]:
            handler.close()
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])


def test_logging_off_by_default(mock_ccm_home, clean_ccm_logger):
    configure_logging()
    assert not (mock_ccm_home / "ccm.log").exists()


def test_logging_to_file(mock_ccm_home, monkeypatch, clean_ccm_logger):
    monkeypatch.setenv("CCM_LOG_LEVEL", "debug")
    configure_logging()
    configure_logging()

    file_handlers = [h for h in clean_ccm_logger.handlers if isinstance(h, logging.FileHandler)]
    assert len(file_handlers) == 1
    assert clean_ccm_logger.level == logging.DEBUG

    logging.getLogger("ccm.core.store").debug("hello log")
    file_handlers[0].flush()
    assert "hello log" in (mock_ccm_home / "ccm.log").read_text()
