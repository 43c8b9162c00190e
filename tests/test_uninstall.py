"""Tests for the uninstall command."""

import orjson
import pytest
from click.testing import CliRunner

from ccm.commands.uninstall import remove_data_dir, uninstall
from ccm.hooks.install import HOOK_EVENTS, get_claude_settings_path, install_hooks


@pytest.fixture
def runner():
    """Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def installed(mock_ccm_home):
    """Hooks installed and a data directory with a store file."""
    install_hooks({"hooks": {"Stop": [{"hooks": [{"command": "echo bye"}]}]}}, HOOK_EVENTS, "ccm")
    mock_ccm_home.mkdir(parents=True)
    (mock_ccm_home / "sessions.json").write_text('{"sessions": {}}')
    return mock_ccm_home


def test_uninstall_removes_hooks_and_data(runner, installed):
    result = runner.invoke(uninstall, ["-y"])

    assert result.exit_code == 0
    assert "Removed 5 hook(s)." in result.output
    assert "ccm has been uninstalled." in result.output
    assert not installed.exists()
    saved = orjson.loads(get_claude_settings_path().read_bytes())
    assert saved["hooks"] == {"Stop": [{"hooks": [{"command": "echo bye"}]}]}


def test_uninstall_keep_data(runner, installed):
    result = runner.invoke(uninstall, ["-y", "--keep-data"])

    assert result.exit_code == 0
    assert installed.exists()
    assert "Session data" not in result.output


def test_uninstall_cancelled(runner, installed):
    result = runner.invoke(uninstall, input="n\n")

    assert result.exit_code == 0
    assert "Uninstall cancelled." in result.output
    assert installed.exists()
    assert "Stop" in orjson.loads(get_claude_settings_path().read_bytes())["hooks"]


def test_uninstall_nothing_installed(runner, mock_ccm_home):
    result = runner.invoke(uninstall, ["-y"])

    assert result.exit_code == 0
    assert "Removed 0 hook(s)." in result.output
    assert "did not exist." in result.output


def test_remove_data_dir(mock_ccm_home):
    assert remove_data_dir() is False
    mock_ccm_home.mkdir()
    assert remove_data_dir() is True
    assert not mock_ccm_home.exists()
