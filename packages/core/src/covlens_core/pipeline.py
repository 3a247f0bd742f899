"""Coverage report pipeline.

One invocation walks through:

    merge traces → aggregate coverage → [baseline → summary/detail → comment]
                 → artifact uploads → minimum coverage gate

The bracketed part only runs for pull request events with a GitHub token.
Reporting and uploads always happen before the gate is evaluated, so a run
that fails the gate still leaves its comment and artifacts behind.
"""

from __future__ import annotations

import glob
import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Mapping

from rich.console import Console

from covlens_core.actions import set_output
from covlens_core.baseline import resolve_baseline
from covlens_core.changed_files import filter_detail
from covlens_core.comment import comment_header, publish
from covlens_core.config import parse_minimum_coverage
from covlens_core.errors import CovlensError
from covlens_core.gh.pull_request import get_changed_files, get_issue, get_pull, get_repo
from covlens_core.lcov import genhtml, list_detail, merge, summarize, total_coverage
from covlens_core.report import build_body, format_number, gate_message
from covlens_store.models import ArtifactRef
from covlens_store.noop import NoOpArtifactStore

if TYPE_CHECKING:
    from covlens_core.context import RunContext
    from covlens_store.base import BaseArtifactStore

console = Console()
logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Terminal state of one invocation: passed, or failed with a reason."""

    total_coverage: float | None
    passed: bool
    message: str = ""


def find_trace_files(patterns: str) -> list[str]:
    """Expand newline-separated glob patterns into absolute file paths.

    ``**`` matches recursively; a leading ``!`` excludes matches of that
    pattern. Results keep pattern order and are de-duplicated.
    """
    included: list[str] = []
    excluded: set[str] = set()
    for pattern in str(patterns or "").splitlines():
        pattern = pattern.strip()
        if not pattern or pattern.startswith("#"):
            continue
        negate = pattern.startswith("!")
        matches = sorted(glob.glob(pattern[1:] if negate else pattern, recursive=True))
        for match in matches:
            path = Path(match)
            if not path.is_file():
                continue
            resolved = str(path.resolve())
            if negate:
                excluded.add(resolved)
            elif resolved not in included:
                included.append(resolved)
    return [f for f in included if f not in excluded]


def _report_to_pull_request(
    config: dict,
    context: RunContext,
    repo,
    store: BaseArtifactStore,
    merged: Path,
    total: float,
    failure_message: str | None,
    tmp_path: Path,
) -> None:
    baseline = resolve_baseline(repo, store, context, config.get("coverage_artifact_name") or "", tmp_path)
    summary = summarize(merged)
    detail_lines = list_detail(merged)

    changed = get_changed_files(get_pull(repo, context.pr_number))
    logger.debug("%d file(s) changed in pull request #%s.", len(changed), context.pr_number)
    details = filter_detail(detail_lines, changed)

    header = comment_header(config.get("title_prefix") or "")
    body = build_body(
        header,
        context,
        total,
        baseline,
        summary,
        details,
        additional_message=config.get("additional_message") or "",
        failure_message=failure_message,
    )
    publish(get_issue(repo, context.pr_number), body, header, update=bool(config.get("update_comment")))
    console.print(f"[green]Coverage report posted to pull request #{context.pr_number}.[/green]")


def _upload_artifacts(
    config: dict,
    context: RunContext,
    store: BaseArtifactStore,
    merged: Path,
    html_dir: Path,
) -> None:
    run_id = context.run_id or None
    coverage_artifact = config.get("coverage_artifact_name") or ""
    if config.get("github_token") and coverage_artifact:
        logger.info("Uploading coverage artifact to the workflow run.")
        ref = ArtifactRef(name=coverage_artifact, owner=context.owner, repo=context.repo, run_id=run_id)
        store.upload(ref, [merged], merged.parent)
    else:
        logger.info("Skipping coverage artifact upload.")

    html_artifact = (config.get("artifact_name") or "").strip()
    if html_artifact:
        logger.info("Uploading HTML report artifact %r.", html_artifact)
        html_files = sorted(p for p in html_dir.rglob("*") if p.is_file())
        ref = ArtifactRef(name=html_artifact, owner=context.owner, repo=context.repo, run_id=run_id)
        store.upload(ref, html_files, html_dir)
    else:
        logger.info("Skip uploading HTML report artifact.")


def run_pipeline(
    config: dict,
    context: RunContext,
    repo=None,
    store: BaseArtifactStore | None = None,
    tmp_path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> PipelineResult:
    """Run every step and return the gate decision.

    External tool failures and upload failures propagate; use run() to turn
    them into a failed PipelineResult.
    """
    tmp_path = Path(tmp_path) if tmp_path is not None else Path(tempfile.gettempdir()) / context.action
    store = store if store is not None else NoOpArtifactStore()
    token = config.get("github_token") or ""

    trace_files = find_trace_files(config.get("coverage_files") or "")
    if not trace_files:
        raise CovlensError(f"No coverage files found matching {config.get('coverage_files')!r}.")
    minimum = parse_minimum_coverage(config.get("minimum_coverage"))

    html_dir = genhtml(trace_files, tmp_path / "html", cwd=(config.get("working_directory") or "").strip() or "./")
    merged = merge(trace_files, tmp_path)
    total = total_coverage(merged)
    set_output("total-coverage", format_number(total), environ)
    console.print(f"Total coverage: [bold]{total:.2f}%[/bold] ({len(trace_files)} trace file(s) merged)")

    passed = total >= minimum
    failure_message = None if passed else gate_message(total, minimum)

    if token and context.is_pull_request:
        if repo is None:
            repo = get_repo(context.full_repo, token)
        _report_to_pull_request(config, context, repo, store, merged, total, failure_message, tmp_path)
    elif not token:
        logger.info("github-token received is empty. Skipping writing a comment in the PR.")
        logger.info(
            "Note: This could happen even if github-token was provided in workflow file. "
            "It could be because your github token does not have permissions for commenting in target repo."
        )
    else:
        logger.info("The event is not a pull request. Skipping writing a comment.")
        logger.info("The event type is: %s", context.event_name)

    _upload_artifacts(config, context, store, merged, html_dir)

    if not passed:
        return PipelineResult(total_coverage=total, passed=False, message=failure_message)
    return PipelineResult(total_coverage=total, passed=True)


def run(config: dict, context: RunContext, **kwargs) -> PipelineResult:
    """Run the pipeline; any exception becomes a failed result carrying its message."""
    try:
        return run_pipeline(config, context, **kwargs)
    except Exception as e:
        logger.debug("Pipeline aborted.", exc_info=True)
        return PipelineResult(total_coverage=None, passed=False, message=str(e) or type(e).__name__)
