"""Narrow the per-file coverage table to the files a pull request touches."""

from __future__ import annotations

from typing import Iterable, Sequence

HEADER_LINES = 3
NOT_APPLICABLE = " n/a"


def is_changed(line: str, changed_files: Iterable[str]) -> bool:
    """True when ``line`` starts with any changed path.

    Plain prefix matching: a row is kept for every changed path that is a
    prefix of it, so a directory entry in ``changed_files`` keeps all rows
    beneath it.
    """
    return any(line.startswith(changed) for changed in changed_files if changed)


def filter_detail(detail_lines: Sequence[str], changed_files: Sequence[str]) -> str:
    """Keep the header plus rows for changed files, rendered for a ``<pre>`` block.

    Returns NOT_APPLICABLE when no data row survives.
    """
    header = list(detail_lines[:HEADER_LINES])
    rows = [line for line in detail_lines[HEADER_LINES:] if is_changed(line, changed_files)]
    if not rows:
        return NOT_APPLICABLE
    return "\n  " + "\n  ".join(header + rows)
