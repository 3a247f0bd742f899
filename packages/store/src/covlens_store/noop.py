"""No-op store: used when no GitHub token is configured.

Uploads are discarded and lookups find nothing, so a baseline-less run
degrades to an absolute coverage report instead of failing.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Iterable

from covlens_store.base import ArtifactStoreError, BaseArtifactStore

if TYPE_CHECKING:
    from covlens_store.models import ArtifactInfo, ArtifactRef


class NoOpArtifactStore(BaseArtifactStore):
    """Silently discards uploads; needs no configuration."""

    def upload(self, ref: ArtifactRef, files: Iterable[str | Path], root_dir: str | Path) -> ArtifactInfo | None:
        return None

    def get_artifact(self, ref: ArtifactRef) -> ArtifactInfo | None:
        return None

    def download_artifact(self, info: ArtifactInfo, ref: ArtifactRef, dest: str | Path) -> Path:
        raise ArtifactStoreError("NoOpArtifactStore holds no artifacts to download.")
