"""Abstract artifact store interface.

The pipeline depends on BaseArtifactStore, not on a concrete backend, so the
GitHub Actions artifact service can be swapped for a local directory in
development or tests without touching pipeline code.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from covlens_store.models import ArtifactInfo, ArtifactRef


class ArtifactStoreError(Exception):
    """Raised when a store cannot complete an upload or download."""


class BaseArtifactStore(ABC):
    """Pluggable artifact storage.

    Uploads always target the currently executing run. Lookups and downloads
    are scoped explicitly by an ArtifactRef so they can reach artifacts that
    belong to other runs.
    """

    @abstractmethod
    def upload(self, ref: ArtifactRef, files: Iterable[str | Path], root_dir: str | Path) -> ArtifactInfo | None:
        """Upload ``files`` (paths relative to ``root_dir`` inside the archive)."""

    @abstractmethod
    def get_artifact(self, ref: ArtifactRef) -> ArtifactInfo | None:
        """Return the artifact named ``ref.name`` in run ``ref.run_id``, or None."""

    @abstractmethod
    def download_artifact(self, info: ArtifactInfo, ref: ArtifactRef, dest: str | Path) -> Path:
        """Extract the artifact's files into ``dest`` and return ``dest``."""

    def close(self) -> None:
        """Release any resources held by the store (sessions, clients).

        Default is a no-op so callers can always call close() safely.
        """


def relative_names(files: Iterable[str | Path], root_dir: str | Path) -> list[tuple[Path, str]]:
    """Pair each file with its archive name relative to ``root_dir``.

    Raises ArtifactStoreError when a file lies outside ``root_dir``.
    """
    root = Path(root_dir).resolve()
    pairs = []
    for f in files:
        path = Path(f).resolve()
        try:
            arcname = path.relative_to(root).as_posix()
        except ValueError:
            raise ArtifactStoreError(f"{path} is not inside the artifact root directory {root}.")
        pairs.append((path, arcname))
    return pairs
