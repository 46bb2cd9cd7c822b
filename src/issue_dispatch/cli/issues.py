"""CLI: dispatch issues list|show"""

import json

import click
from rich.console import Console
from rich.table import Table

from issue_dispatch.cli.render import render_issue

console = Console()


def _get_client():
    from issue_dispatch.cli.main import _get_client
    return _get_client()


def _run(coro):
    from issue_dispatch.cli.main import _run
    return _run(coro)


@click.group()
def issues():
    """Issues of the configured repository."""


@issues.command("list")
@click.option("--state", type=click.Choice(["open", "closed", "all"]), default="open")
@click.option("--json-output", "--json", is_flag=True)
def issues_list(state, json_output):
    """List issues, most recently updated first."""

    async def _list():
        async with _get_client() as client:
            found = await client.list_issues(state)
            stored = {i.number: client.store.for_issue(i.number) for i in found}
        if json_output:
            click.echo(json.dumps([i.model_dump() | {"body_snippet": i.body_snippet} for i in found], indent=2))
            return
        table = Table(title=f"{client.settings.repo.full_name}: {len(found)} {state} issues")
        table.add_column("#", style="bold", justify="right")
        table.add_column("Title")
        table.add_column("Labels")
        table.add_column("Sessions")
        table.add_column("Updated")
        for issue in found:
            labels = ", ".join(label.name for label in issue.labels)
            sessions = ", ".join(kind.value for kind in stored[issue.number])
            table.add_row(str(issue.number), issue.title, labels, sessions, issue.updated_at)
        console.print(table)

    _run(_list())


@issues.command("show")
@click.argument("number", type=int)
def issues_show(number):
    """Show one issue."""

    async def _show():
        async with _get_client() as client:
            issue = await client.issues.get(number)
        render_issue(console, issue)

    _run(_show())
