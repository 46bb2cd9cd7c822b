"""CLI: dispatch scope|execute|status|watch"""

import asyncio
import json

import click
from rich.console import Console
from rich.live import Live

from issue_dispatch.cli.render import output_panel, status_strip
from issue_dispatch.poller import PollerPhase

console = Console()


def _get_client():
    from issue_dispatch.cli.main import _get_client
    return _get_client()


def _run(coro):
    from issue_dispatch.cli.main import _run
    return _run(coro)


@click.command("scope")
@click.argument("number", type=int)
def scope_cmd(number):
    """Start a scope session for issue NUMBER."""

    async def _scope():
        async with _get_client() as client:
            with console.status("Creating scope session..."):
                session = await client.start_scope(number)
        console.print(f"[green]Scope session created: {session.session_id}[/green]")
        if session.url:
            console.print(session.url)

    _run(_scope())


@click.command("execute")
@click.argument("number", type=int)
@click.option("--scope-session", default=None, help="Scope session id (defaults to the stored one).")
@click.option("--clarify", "clarifications", default=None, help="Extra constraints for the agent.")
def execute_cmd(number, scope_session, clarifications):
    """Start an execute session for issue NUMBER from its scope plan."""

    async def _execute():
        async with _get_client() as client:
            with console.status("Creating execute session..."):
                session = await client.start_execute(
                    number, scope_session_id=scope_session, clarifications=clarifications,
                )
        console.print(f"[green]Execute session created: {session.session_id}[/green]")
        if session.url:
            console.print(session.url)

    _run(_execute())


@click.command("status")
@click.argument("number", type=int)
@click.option("--json-output", "--json", is_flag=True)
def status_cmd(number, json_output):
    """Fetch the sessions of issue NUMBER once."""

    async def _status():
        async with _get_client() as client:
            stored = client.store.for_issue(number)
            if not stored:
                console.print(f"[dim]No sessions for issue #{number}.[/dim]")
                return
            fetched = {kind: await client.sessions.get(sid) for kind, sid in stored.items()}
        if json_output:
            click.echo(json.dumps({k.value: s.model_dump(mode="json") for k, s in fetched.items()}, indent=2))
            return
        for kind, session in fetched.items():
            console.print(f"[bold]{kind.value}[/bold] {session.session_id} ({session.status_enum})")
            console.print(output_panel(kind, session))

    _run(_status())


@click.command("watch")
@click.argument("number", type=int)
def watch_cmd(number):
    """Poll the sessions of issue NUMBER until they finish."""

    async def _watch():
        async with _get_client() as client:
            aggregator = client.watch(number)
            watched = client.pollers
            if aggregator.summary() is None:
                console.print(f"[dim]No sessions for issue #{number}.[/dim]")
                return
            changed = asyncio.Event()
            aggregator.add_listener(lambda _summary: changed.set())

            while True:
                with Live(status_strip(aggregator.summary()), console=console, refresh_per_second=4) as live:
                    while True:
                        await changed.wait()
                        changed.clear()
                        summary = aggregator.summary()
                        live.update(status_strip(summary))
                        if summary is None or summary.is_settled:
                            break
                if summary and summary.attention and summary.attention.full_text != summary.attention.text:
                    console.print(f"[yellow]{summary.attention.full_text}[/yellow]")
                exhausted = [p for p in watched if p.snapshot.phase is PollerPhase.EXHAUSTED]
                if not exhausted or not click.confirm("Polling stopped after errors. Retry now?"):
                    break
                for poller in exhausted:
                    await poller.retry()

            for poller in watched:
                if poller.snapshot.data is not None:
                    console.print(output_panel(poller.kind, poller.snapshot.data))

    _run(_watch())
