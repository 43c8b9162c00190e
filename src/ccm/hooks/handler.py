"""Hook handler for Claude Code integration.

Claude Code runs `ccm hook <Event>` for every lifecycle event with the event
payload as JSON on stdin. Each invocation is a short-lived process: resolve
the terminal, validate, reduce the event into the store and flush before
exiting.
"""

import logging
import sys

import click
import orjson

from ccm.core.reducer import HOOK_EVENTS, HookEvent, HookValidationError, update_session
from ccm.core.store import get_default_store
from ccm.core.tty import get_tty_from_ancestors

log = logging.getLogger(__name__)


def read_stdin_json() -> object:
    """Read and parse JSON from stdin.

    Raises:
        HookValidationError: If stdin is not valid JSON.
    """
    try:
        return orjson.loads(sys.stdin.read())
    except (orjson.JSONDecodeError, ValueError) as e:
        raise HookValidationError("Invalid JSON input") from e


@click.command()
@click.argument("event")
def hook(event: str) -> None:
    """Record a Claude Code hook event (called by Claude Code).

    EVENT is one of UserPromptSubmit, PreToolUse, PostToolUse, Notification
    or Stop.
    """
    try:
        if event not in HOOK_EVENTS:
            raise HookValidationError(f"Invalid event name: {event}")
        payload = read_stdin_json()
        hook_event = HookEvent.from_payload(
            event, payload, tty=get_tty_from_ancestors()
        )
    except HookValidationError as e:
        click.echo(str(e), err=True)
        raise SystemExit(1)

    # Hook processes are short-lived: closing the store flushes the write
    with get_default_store() as store:
        session = update_session(store, hook_event)
    log.debug("%s -> %s %s", event, session.key, session.status)
