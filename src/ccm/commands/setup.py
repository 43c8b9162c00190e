"""Setup command for ccm.

Installs the ccm hooks into Claude Code's settings.
"""

import click

from ccm.hooks.install import (
    apply_ghostty_title_setting,
    categorize_hooks,
    get_ccm_command,
    get_claude_settings_path,
    has_ghostty_setting_asked,
    install_hooks,
    is_ghostty_installed,
    load_claude_settings,
    save_claude_settings,
)


def _confirm(message: str, assume_yes: bool) -> bool:
    if assume_yes:
        return True
    return click.confirm(message, default=True)


def prompt_ghostty_setting(settings: dict, assume_yes: bool = False) -> bool:
    """Ask once whether to disable Claude Code's terminal title override.

    Returns:
        True if the setting was added.
    """
    click.echo("Ghostty detected.")
    click.echo(
        "For reliable tab focus, Claude Code terminal title override should be disabled."
    )
    click.echo()
    accepted = _confirm("Add CLAUDE_CODE_DISABLE_TERMINAL_TITLE setting?", assume_yes)
    apply_ghostty_title_setting(settings, accepted)
    save_claude_settings(settings)
    click.echo()
    if accepted:
        click.echo("Ghostty setting added.")
    else:
        click.echo("Ghostty setting skipped (will not ask again).")
    click.echo()
    return accepted


def prompt_ghostty_setting_if_needed(assume_yes: bool = False) -> None:
    """Ask the Ghostty question if Ghostty is installed and it was never asked."""
    settings = load_claude_settings()
    if is_ghostty_installed() and not has_ghostty_setting_asked(settings):
        prompt_ghostty_setting(settings, assume_yes)


def run_setup(assume_yes: bool = False) -> bool:
    """Run the interactive hook setup.

    Returns:
        True if any change was written.
    """
    click.echo("Claude Code Monitor Setup")
    click.echo("=" * 25)
    click.echo()

    base_command = get_ccm_command()
    click.echo(f"Using command: {base_command}")
    click.echo()

    settings_path = get_claude_settings_path()
    settings_exist = settings_path.exists()
    settings = load_claude_settings()
    to_add, to_skip = categorize_hooks(settings)
    needs_ghostty_prompt = is_ghostty_installed() and not has_ghostty_setting_asked(
        settings
    )

    if not to_add and not needs_ghostty_prompt:
        click.echo("All hooks already configured. No changes needed.")
        click.echo()
        click.echo(f"Start monitoring with: {base_command} watch")
        return False

    hooks_applied = False
    env_applied = False

    if to_add:
        click.echo(f"Target file: {settings_path}")
        click.echo(
            "(file exists, will be modified)"
            if settings_exist
            else "(file will be created)"
        )
        click.echo()
        click.echo("The following hooks will be added:")
        for event in to_add:
            click.echo(f"  [add]  {event}")
        if to_skip:
            click.echo()
            click.echo("Already configured (will be skipped):")
            for event in to_skip:
                click.echo(f"  [skip] {event}")
        click.echo()

        if _confirm("Do you want to apply these changes?", assume_yes):
            install_hooks(settings, to_add, base_command)
            hooks_applied = True
            click.echo()
            click.echo(f"Added {len(to_add)} hook(s) to {settings_path}")
        else:
            click.echo()
            click.echo("Hook setup skipped.")
        click.echo()

    if needs_ghostty_prompt:
        env_applied = prompt_ghostty_setting(settings, assume_yes)

    if hooks_applied or env_applied:
        click.echo("Setup complete!")
        click.echo()
        click.echo(f"Start monitoring with: {base_command} watch")
        return True

    click.echo("No changes were made.")
    return False


@click.command()
@click.option("--yes", "-y", is_flag=True, help="Apply changes without asking")
def setup(yes: bool) -> None:
    """Set up ccm hooks in Claude Code.

    This command:

    \b
    1. Adds a `ccm hook <Event>` command to ~/.claude/settings.json for
       UserPromptSubmit, PreToolUse, PostToolUse, Notification and Stop
    2. Offers to disable Claude Code's terminal title override when
       Ghostty is installed

    Existing hooks are preserved.

    Examples:

        ccm setup

        ccm setup -y
    """
    run_setup(assume_yes=yes)
