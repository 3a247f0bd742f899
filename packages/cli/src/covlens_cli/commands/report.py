"""report command: the coverage pipeline as a CI step.

Every option also reads the ``INPUT_<NAME>`` variable that GitHub Actions sets
for action inputs, so the same command serves as the action entry point.
"""

from __future__ import annotations

import click
from rich.console import Console

from covlens_core.actions import set_failed
from covlens_core.context import load_context
from covlens_core.pipeline import run

console = Console()


def _input(name: str) -> str:
    return f"INPUT_{name.upper()}"


@click.command("report")
@click.option(
    "--coverage-files",
    envvar=_input("coverage-files"),
    default=None,
    help="Glob pattern(s) of LCOV trace files, one per line.",
)
@click.option(
    "--title-prefix",
    envvar=_input("title-prefix"),
    default=None,
    help="Prefix for the comment title.",
)
@click.option(
    "--additional-message",
    envvar=_input("additional-message"),
    default=None,
    help="Text appended to the comment.",
)
@click.option(
    "--update-comment",
    envvar=_input("update-comment"),
    default=None,
    help="Update the previous report comment instead of adding a new one (true/false).",
)
@click.option(
    "--coverage-artifact-name",
    envvar=_input("coverage-artifact-name"),
    default=None,
    help="Artifact name for the merged trace; also used to find the baseline.",
)
@click.option(
    "--github-token",
    envvar=_input("github-token"),
    default=None,
    help="Token for PR comments and artifacts. Falls back to GITHUB_TOKEN.",
)
@click.option(
    "--minimum-coverage",
    envvar=_input("minimum-coverage"),
    default=None,
    help="Fail when total coverage is below this percentage.",
)
@click.option(
    "--working-directory",
    envvar=_input("working-directory"),
    default=None,
    help="Working directory for genhtml.",
)
@click.option(
    "--artifact-name",
    envvar=_input("artifact-name"),
    default=None,
    help="Artifact name for the HTML report. Empty skips the upload.",
)
@click.option(
    "--config",
    "config_path",
    default=".covlens.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="COVLENS_CONFIG",
)
def report_cmd(config_path: str, **options):
    """Merge LCOV traces, report coverage on the pull request and apply the gate.

    \b
    Exit status:
      0  coverage is at or above --minimum-coverage
      1  the gate failed or any step raised an error
    """
    from covlens_cli.cli import _build_store
    from covlens_core.config import load_config

    try:
        config = load_config(config_path, cli_overrides=options)
    except ValueError as e:
        raise click.UsageError(str(e))
    if not config.get("coverage_files"):
        raise click.UsageError("--coverage-files (or INPUT_COVERAGE-FILES) is required.")

    try:
        context = load_context()
    except (OSError, ValueError) as e:
        set_failed(f"Could not load the workflow run context: {e}")
    store = _build_store(config, context)
    try:
        result = run(config, context, store=store)
    finally:
        store.close()

    if not result.passed:
        set_failed(result.message)
    console.print("[green]Coverage check passed.[/green]")
