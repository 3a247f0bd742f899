"""Artifact data models.

Shared by every store backend and by covlens_core, which builds ArtifactRef
descriptors but never talks to a concrete backend directly.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ArtifactRef:
    """Identifies an artifact across workflow runs.

    An artifact name alone is only unique inside one run. Looking up the
    baseline of another run needs the owning run id and repository too.
    ``run_id=None`` refers to the run that is currently executing.
    """

    name: str
    owner: str
    repo: str
    run_id: int | None = None

    @property
    def full_repo(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True)
class ArtifactInfo:
    """An artifact as reported by a store lookup or upload."""

    id: int
    name: str
    run_id: int | None = None
    size: int = 0
