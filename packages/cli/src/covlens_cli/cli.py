"""CLI entry point for covlens.

Commands:
  report  merge coverage, compare with the target branch and comment on the PR
  total   print the aggregate line coverage of a single trace file
"""

from __future__ import annotations

import importlib.metadata
import logging
import os

import click
from rich.console import Console
from rich.logging import RichHandler

from covlens_cli.commands.report import report_cmd
from covlens_cli.commands.total import total_cmd

console = Console()


def _configure_logging(verbose: bool) -> None:
    """Annotate warnings/errors as workflow commands on Actions, rich output elsewhere."""
    from covlens_core.actions import ActionsLogHandler

    if os.environ.get("GITHUB_ACTIONS") == "true":
        handler: logging.Handler = ActionsLogHandler()
    else:
        handler = RichHandler(console=console, show_path=False)
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    # PyGithub and urllib3 are chatty at DEBUG.
    logging.getLogger("github").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def _build_store(config: dict, context):
    """Instantiate the artifact store for this run.

    Store selection hierarchy:
      store: local        → LocalArtifactStore (store_path, default .covlens-artifacts)
      token or Actions    → GitHubArtifactStore
      (otherwise)         → NoOpArtifactStore (uploads skipped, no baseline)
    """
    from covlens_store.noop import NoOpArtifactStore

    if config.get("store") == "local":
        from covlens_store.local import LocalArtifactStore

        return LocalArtifactStore(root=config.get("store_path") or ".covlens-artifacts", run_id=context.run_id or None)

    if config.get("github_token") or os.environ.get("ACTIONS_RUNTIME_TOKEN"):
        from covlens_store.github import GitHubArtifactStore

        return GitHubArtifactStore(token=config.get("github_token") or None)

    return NoOpArtifactStore()


@click.group()
@click.version_option(
    version=importlib.metadata.version("covlens"),
    prog_name="covlens",
)
@click.option("--verbose", "-v", is_flag=True, envvar="RUNNER_DEBUG", help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, verbose: bool):
    """LCOV coverage reports for GitHub pull requests."""
    ctx.ensure_object(dict)
    _configure_logging(verbose)


main.add_command(report_cmd)
main.add_command(total_cmd)
