"""CLI entry point for ccm.

Usage:
    ccm                       # Set up hooks if needed, then launch the dashboard
    ccm watch                 # Launch the dashboard
    ccm list                  # Print active sessions
    ccm hook <Event>          # Called by Claude Code hooks
"""

import click

from ccm.commands.clear import clear
from ccm.commands.list_sessions import list_sessions
from ccm.commands.serve import serve
from ccm.commands.setup import prompt_ghostty_setting_if_needed, run_setup, setup
from ccm.commands.uninstall import uninstall
from ccm.commands.watch import run_dashboard, watch
from ccm.core.config import configure_logging
from ccm.hooks.handler import hook
from ccm.hooks.install import is_hooks_configured

COMMAND_ALIASES = {"w": "watch", "ls": "list", "s": "serve"}


class AliasedGroup(click.Group):
    """Group that also resolves the short command aliases."""

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        return super().get_command(ctx, COMMAND_ALIASES.get(cmd_name, cmd_name))

    def resolve_command(self, ctx: click.Context, args: list[str]):
        _, cmd, args = super().resolve_command(ctx, args)
        return cmd.name if cmd else None, cmd, args


@click.group(cls=AliasedGroup, invoke_without_command=True)
@click.option("--web/--no-web", default=None, help="Show or hide the web UI panel")
@click.option(
    "--tailscale", "-t", is_flag=True, help="Prefer the Tailscale address for the web UI"
)
@click.version_option(package_name="claude-code-monitor")
@click.pass_context
def main(ctx: click.Context, web: bool | None, tailscale: bool) -> None:
    """Claude Code Monitor - track Claude Code and Codex sessions.

    Running 'ccm' without a subcommand sets up the Claude Code hooks if
    needed, then launches the dashboard.
    """
    configure_logging()

    # If a subcommand was invoked, let it handle things
    if ctx.invoked_subcommand is not None:
        return

    if not is_hooks_configured():
        click.echo("Initial setup required.")
        click.echo()
        run_setup()
        if not is_hooks_configured():
            # Setup was cancelled
            return
        click.echo()
    else:
        prompt_ghostty_setting_if_needed()

    run_dashboard(web=web, prefer_tailscale=tailscale)


# Register commands
main.add_command(watch)
main.add_command(hook)
main.add_command(list_sessions)
main.add_command(clear)
main.add_command(setup)
main.add_command(serve)
main.add_command(uninstall)
