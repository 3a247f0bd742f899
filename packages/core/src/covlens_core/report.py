"""Compose the markdown body of the coverage comment."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from covlens_core.baseline import BaselineCoverage
    from covlens_core.context import RunContext


def format_number(value: float) -> str:
    """Render a percentage to two places without a trailing ``.0`` (85.0 → "85", 82.5 → "82.5")."""
    return f"{round(value, 2):g}"


def gate_message(total: float, minimum: float) -> str:
    return f"The code coverage is too low: {total:g}. Expected at least {minimum:g}."


def compare_url(context: RunContext, base_sha: str) -> str:
    return f"https://github.com/{context.owner}/{context.repo}/compare/{base_sha}...{context.head_sha}"


def diff_message(total: float, baseline: BaselineCoverage | None, context: RunContext) -> str:
    if baseline is None:
        return f"Total coverage: {total:.2f}%"

    diff = round(total - baseline.coverage, 2) or 0.0  # avoid "-0.00"
    sign = "+" if diff > 0 else ""
    return (
        f"This pull request changes total coverage {sign}{diff:.2f}% "
        f"({baseline.coverage:.2f}% -> {total:.2f}%) "
        f"for this [diff]({compare_url(context, baseline.target_branch_sha)})"
    )


def build_body(
    header: str,
    context: RunContext,
    total: float,
    baseline: BaselineCoverage | None,
    summary: str,
    details: str,
    additional_message: str = "",
    failure_message: str | None = None,
) -> str:
    """Assemble the full comment.

    The first line starts with ``header`` followed by the commit and run that
    produced the report.
    """
    sha = context.head_sha
    lines = [
        f"{header} [<code>{sha[:7]}</code>]({context.pr_number}/commits/{sha}) "
        f"during [{context.workflow} #{context.run_number}](../actions/runs/{context.run_id})",
        diff_message(total, baseline, context),
        f"<pre>{summary}\n\nFiles changed coverage rate:{details}</pre>",
    ]
    if additional_message:
        lines.append(additional_message)
    if failure_message:
        lines.append(f":no_entry: {failure_message}")
    return "\n".join(lines)
