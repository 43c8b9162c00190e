"""Watch command - launch the ccm dashboard."""

import click

from ccm.core.config import DEFAULT_SERVER_PORT


def run_dashboard(
    web: bool | None = None,
    prefer_tailscale: bool = False,
    serve: bool = True,
    port: int = DEFAULT_SERVER_PORT,
) -> None:
    """Run the Textual dashboard until the user quits."""
    from ccm.tui.app import MonitorApp

    app = MonitorApp(
        serve=serve,
        port=port,
        prefer_tailscale=prefer_tailscale,
        show_web_panel=web,
    )
    app.run()


@click.command()
@click.option(
    "--web/--no-web",
    default=None,
    help="Show or hide the web UI panel (default: last choice)",
)
@click.option(
    "--tailscale", "-t", is_flag=True, help="Prefer the Tailscale address for the web UI"
)
@click.option("--no-server", is_flag=True, help="Do not start the mobile web server")
@click.option(
    "--port",
    "-p",
    default=DEFAULT_SERVER_PORT,
    show_default=True,
    help="Port for the mobile web server",
)
def watch(web: bool | None, tailscale: bool, no_server: bool, port: int) -> None:
    """Launch the session dashboard.

    Shows every tracked session and refreshes when hooks report changes.

    \b
    Keys:
      ↑/k ↓/j  move        enter/f  focus terminal
      1-9      quick focus c        clear sessions
      h        web UI      q/esc    quit
    """
    run_dashboard(web=web, prefer_tailscale=tailscale, serve=not no_server, port=port)
