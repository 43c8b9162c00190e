"""Clear command for ccm."""

import click

from ccm.core.reducer import clear_sessions
from ccm.core.store import get_default_store


@click.command()
def clear() -> None:
    """Forget every tracked session."""
    with get_default_store() as store:
        clear_sessions(store)
    click.echo("Sessions cleared")
