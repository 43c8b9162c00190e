"""List command for ccm."""

import click
import orjson

from ccm.core.display import abbreviate_home, get_status_display
from ccm.core.snapshot import get_sessions
from ccm.core.store import get_default_store


@click.command("list")
@click.option("--json", "as_json", is_flag=True, help="Print sessions as JSON")
def list_sessions(as_json: bool) -> None:
    """List active sessions.

    Sessions whose terminal has closed are pruned first.

    Examples:

        ccm list

        ccm ls --json
    """
    with get_default_store() as store:
        sessions = get_sessions(store)

    if as_json:
        click.echo(
            orjson.dumps(
                [s.to_dict() for s in sessions], option=orjson.OPT_INDENT_2
            ).decode()
        )
        return

    if not sessions:
        click.echo("No active sessions")
        return

    for session in sessions:
        symbol = get_status_display(session.status).symbol
        click.echo(f"{symbol} {abbreviate_home(session.cwd)}")
