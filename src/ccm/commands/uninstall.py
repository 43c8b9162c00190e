"""Uninstall command for ccm.

Removes ccm from the system:
- ccm hooks from Claude Code settings
- the ~/.claude-monitor data directory
"""

import shutil

import click

from ccm.core.config import get_data_dir
from ccm.hooks.install import uninstall_hooks


def remove_data_dir() -> bool:
    """Remove the ccm data directory.

    Returns:
        True if the directory was removed, False if it didn't exist.
    """
    data_dir = get_data_dir()
    if data_dir.exists():
        shutil.rmtree(data_dir)
        return True
    return False


@click.command()
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.option(
    "--keep-data",
    is_flag=True,
    help="Keep session data (only remove hooks)",
)
def uninstall(yes: bool, keep_data: bool) -> None:
    """Remove ccm hooks and session data.

    User hooks are preserved.

    Examples:

        ccm uninstall           # Interactive confirmation
        ccm uninstall -y        # Skip confirmation
        ccm uninstall --keep-data
    """
    click.echo("ccm Uninstaller")
    click.echo("=" * 40)
    click.echo()
    click.echo("This will remove:")
    click.echo("  - ccm hooks from Claude Code settings")
    data_dir = get_data_dir()
    if not keep_data and data_dir.exists():
        click.echo(f"  - Session data in {data_dir}")
    click.echo()

    if not yes:
        if not click.confirm("Proceed with uninstall?"):
            click.echo("Uninstall cancelled.")
            raise SystemExit(0)

    click.echo()
    click.echo("Removing ccm hooks from Claude Code settings...")
    removed = uninstall_hooks()
    click.echo(f"  Removed {removed} hook(s).")

    if not keep_data:
        click.echo("Removing ccm data directory...")
        if remove_data_dir():
            click.echo(f"  Removed {data_dir}")
        else:
            click.echo(f"  {data_dir} did not exist.")

    click.echo()
    click.echo("ccm has been uninstalled.")
