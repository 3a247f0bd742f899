"""Baseline coverage of the pull request's target branch.

The baseline is the merged trace uploaded as an artifact by the newest
workflow run on the target branch. Finding it is a two-step lookup: the run
first, then the artifact scoped to that run. The default artifact scope is
the run currently executing, which never holds the baseline.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from covlens_core.errors import ArtifactMismatchError
from covlens_core.gh.pull_request import get_latest_run
from covlens_core.lcov import total_coverage
from covlens_store.models import ArtifactRef

if TYPE_CHECKING:
    from covlens_core.context import RunContext
    from covlens_store.base import BaseArtifactStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BaselineArtifact:
    path: Path
    run_id: int
    head_sha: str


@dataclass(frozen=True)
class BaselineCoverage:
    coverage: float
    run_id: int
    target_branch_sha: str


def download_single_file_artifact(store: BaseArtifactStore, info, ref: ArtifactRef, dest: str | Path) -> Path:
    """Download an artifact into ``dest`` and return the one file it contains.

    Raises ArtifactMismatchError when ``dest`` ends up with zero or several
    entries.
    """
    dest = Path(dest)
    store.download_artifact(info, ref, dest)
    logger.info("Artifact %r downloaded to %s.", ref.name, dest)

    files = sorted(os.listdir(dest)) if dest.is_dir() else []
    if len(files) != 1:
        raise ArtifactMismatchError(f"Expected a single file, but found {len(files)} files in {dest}.")
    return dest / files[0]


def find_baseline_artifact(
    repo,
    store: BaseArtifactStore,
    context: RunContext,
    artifact_name: str,
    tmp_path: str | Path,
) -> BaselineArtifact | None:
    """Locate and download the coverage artifact of the target branch's newest run.

    Returns None (with a warning) when there is no run or no artifact to
    compare against.
    """
    if not context.is_pull_request or not context.base_ref:
        logger.warning("Not a pull request event. Skipping target branch coverage download.")
        return None

    target_branch = context.base_ref
    logger.info("Searching for the latest workflow run on target branch: %s", target_branch)

    run = get_latest_run(repo, target_branch)
    if run is None:
        logger.warning('No workflow runs found on branch "%s".', target_branch)
        return None
    logger.info("Found run id %s on branch %s.", run.id, target_branch)

    ref = ArtifactRef(name=artifact_name, owner=context.owner, repo=context.repo, run_id=run.id)
    info = store.get_artifact(ref)
    if info is None:
        logger.warning('No artifact found for "%s" on run %s.', artifact_name, run.id)
        return None

    dest = Path(tmp_path) / f"{run.id}-{artifact_name}-lcov.info"
    path = download_single_file_artifact(store, info, ref, dest)
    return BaselineArtifact(path=path, run_id=run.id, head_sha=run.head_sha)


def resolve_baseline(
    repo,
    store: BaseArtifactStore,
    context: RunContext,
    artifact_name: str,
    tmp_path: str | Path,
) -> BaselineCoverage | None:
    """Return the target branch's coverage, or None if it cannot be determined.

    A missing or unreachable baseline never fails the pipeline: every error
    during lookup is logged as a warning and treated as "no baseline".
    """
    if not artifact_name:
        logger.info("No coverage-artifact-name configured. Skipping baseline comparison.")
        return None
    try:
        artifact = find_baseline_artifact(repo, store, context, artifact_name, tmp_path)
        if artifact is None:
            return None
        coverage = total_coverage(artifact.path)
    except Exception as e:
        logger.warning("Error loading previous coverage: %s", e)
        return None

    return BaselineCoverage(coverage=coverage, run_id=artifact.run_id, target_branch_sha=artifact.head_sha)
