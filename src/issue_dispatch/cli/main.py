"""
issue-dispatch CLI: `dispatch` command.

Commands:
  dispatch issues list        Open issues of the configured repo
  dispatch issues show <n>    One issue
  dispatch scope <n>          Start a scope session
  dispatch execute <n>        Start an execute session from the scope plan
  dispatch status <n>         One-shot status of an issue's sessions
  dispatch watch <n>          Poll an issue's sessions until they settle
  dispatch config set ...     Persist settings to ~/.issue-dispatch/config.json
"""

import asyncio
import logging

try:
    import click
    from rich.console import Console
    from rich.logging import RichHandler
except ImportError:
    raise SystemExit("CLI requires extras: pip install issue-dispatch[cli]")

from issue_dispatch import __version__
from issue_dispatch.client import AsyncIssueDispatch
from issue_dispatch.config import Settings, load_config_file
from issue_dispatch.errors import ConfigError, DispatchError

console = Console()


def _get_client() -> AsyncIssueDispatch:
    try:
        settings = Settings.from_env(overrides=load_config_file())
    except ConfigError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)
    return AsyncIssueDispatch(settings)


def _run(coro):
    try:
        return asyncio.run(coro)
    except DispatchError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)


@click.group()
@click.version_option(__version__)
@click.option("-v", "--verbose", is_flag=True, help="Log polling activity.")
def main(verbose):
    """issue-dispatch: scope and execute GitHub issues with agent sessions."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


# Register subcommands from separate modules
from issue_dispatch.cli.config import config  # noqa: E402
from issue_dispatch.cli.issues import issues  # noqa: E402
from issue_dispatch.cli.sessions import execute_cmd, scope_cmd, status_cmd, watch_cmd  # noqa: E402

main.add_command(config)
main.add_command(issues)
main.add_command(scope_cmd)
main.add_command(execute_cmd)
main.add_command(status_cmd)
main.add_command(watch_cmd)


if __name__ == "__main__":
    main()
