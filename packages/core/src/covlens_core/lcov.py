"""Wrappers around the lcov and genhtml executables.

Every helper runs one external process, captures stdout and stderr as a
single text blob and raises LcovError on a non-zero exit. Nothing here
retries: a failing tool aborts the run.
"""

from __future__ import annotations

import logging
import re
import subprocess
from pathlib import Path
from typing import Sequence

from covlens_core.errors import LcovError

logger = logging.getLogger(__name__)

BRANCH_COVERAGE = ["--rc", "lcov_branch_coverage=1"]
MERGED_FILENAME = "lcov.info"

# "  lines......: 82.5% (165 of 200 lines)"
_LINES_RE = re.compile(r"^\s*lines\.*:\s*(?:[\d.]+%\s*\((\d+) of (\d+) lines?\)|(no data found))", re.MULTILINE)
_NEWLINE_RE = re.compile(r"\r?\n")


def _run(command: list[str], cwd: str | Path | None = None) -> str:
    logger.debug("Running: %s", " ".join(command))
    try:
        result = subprocess.run(
            command,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            cwd=cwd,
        )
    except FileNotFoundError:
        raise LcovError(f"{command[0]} is not installed or not on PATH.", command=command)
    if result.returncode != 0:
        raise LcovError(
            f"{command[0]} failed with exit code {result.returncode}: {result.stdout.strip()}",
            command=command,
            returncode=result.returncode,
            output=result.stdout,
        )
    return result.stdout


def _lines(output: str) -> list[str]:
    return _NEWLINE_RE.split(output.strip())


def merge(trace_files: Sequence[str | Path], output_dir: str | Path) -> Path:
    """Combine ``trace_files`` (in order) into ``<output_dir>/lcov.info``."""
    if not trace_files:
        raise ValueError("At least one trace file is required to merge coverage.")
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    merged = output_dir / MERGED_FILENAME

    command = ["lcov"]
    for trace_file in trace_files:
        command += ["--add-tracefile", str(trace_file)]
    command += ["--output-file", str(merged), *BRANCH_COVERAGE]
    _run(command)
    return merged


def summarize(trace_file: str | Path) -> str:
    """Return ``lcov --summary`` output without its "Reading tracefile" banner."""
    output = _run(["lcov", "--summary", str(trace_file), *BRANCH_COVERAGE])
    return "\n".join(_lines(output)[1:])


def list_detail(trace_file: str | Path) -> list[str]:
    """Return the per-file rows of ``lcov --list``, header included.

    The banner (first line) and the total and separator rows (last two lines)
    are dropped. The first three remaining lines are the table header.
    """
    output = _run(["lcov", "--list", str(trace_file), "--list-full-path", *BRANCH_COVERAGE])
    lines = _lines(output)
    return lines[1:-2]


def parse_total(summary: str) -> float:
    """Extract the aggregate line coverage percentage from summary output.

    The ratio is not rounded; callers round for display only.
    """
    match = _LINES_RE.search(summary)
    if match is None:
        raise LcovError(f"Could not find a line coverage total in lcov output: {summary.strip()!r}", output=summary)
    if match.group(3):
        return 0.0
    hit, found = int(match.group(1)), int(match.group(2))
    if found == 0:
        return 0.0
    return hit / found * 100


def total_coverage(trace_file: str | Path) -> float:
    """Aggregate line coverage of ``trace_file`` as a percentage in [0, 100]."""
    return parse_total(summarize(trace_file))


def genhtml(trace_files: Sequence[str | Path], output_dir: str | Path, cwd: str | Path | None = None) -> Path:
    """Render the HTML report for ``trace_files`` into ``output_dir``."""
    output_dir = Path(output_dir).resolve()
    command = ["genhtml", *[str(f) for f in trace_files], *BRANCH_COVERAGE, "--output-directory", str(output_dir)]
    _run(command, cwd=cwd)
    return output_dir
