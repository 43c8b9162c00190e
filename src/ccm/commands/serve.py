"""Serve command - run the mobile web UI without the dashboard."""

import click

from ccm.core.config import DEFAULT_SERVER_PORT


@click.command()
@click.option(
    "--port",
    "-p",
    default=DEFAULT_SERVER_PORT,
    show_default=True,
    help="Port number",
)
@click.option(
    "--tailscale", "-t", is_flag=True, help="Prefer the Tailscale address for access"
)
def serve(port: int, tailscale: bool) -> None:
    """Start the web server for mobile monitoring.

    Examples:

        ccm serve

        ccm serve --port 8080 --tailscale
    """
    from ccm.server.app import run_server

    run_server(port=port, prefer_tailscale=tailscale)
