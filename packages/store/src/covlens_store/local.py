"""LocalArtifactStore: directory-backed artifacts for local runs.

Layout on disk::

    <root>/<owner>/<repo>/<run_id>/<artifact name>/<files...>

Uploads made without a run id land under ``current`` unless the store was
created with an explicit ``run_id``. Useful for reproducing a CI comparison
on a laptop, or as a cache directory shared between jobs.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

from covlens_store.base import ArtifactStoreError, BaseArtifactStore, relative_names
from covlens_store.models import ArtifactInfo

if TYPE_CHECKING:
    from covlens_store.models import ArtifactRef

logger = logging.getLogger(__name__)

_CURRENT_RUN = "current"


class LocalArtifactStore(BaseArtifactStore):
    def __init__(self, root: str | Path = ".covlens-artifacts", run_id: int | None = None):
        self._root = Path(root)
        self._run_id = run_id

    def _artifact_dir(self, ref: ArtifactRef, run_id: int | None) -> Path:
        run_segment = str(run_id) if run_id is not None else _CURRENT_RUN
        return self._root / ref.owner / ref.repo / run_segment / ref.name

    def upload(self, ref: ArtifactRef, files: Iterable[str | Path], root_dir: str | Path) -> ArtifactInfo | None:
        run_id = ref.run_id if ref.run_id is not None else self._run_id
        target = self._artifact_dir(ref, run_id)
        if target.exists():
            shutil.rmtree(target)
        size = 0
        for path, arcname in relative_names(files, root_dir):
            dest = target / arcname
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(path, dest)
            size += dest.stat().st_size
        target.mkdir(parents=True, exist_ok=True)
        logger.debug("Stored artifact %r in %s (%d bytes).", ref.name, target, size)
        return ArtifactInfo(id=0, name=ref.name, run_id=run_id, size=size)

    def get_artifact(self, ref: ArtifactRef) -> ArtifactInfo | None:
        target = self._artifact_dir(ref, ref.run_id)
        if not target.is_dir():
            return None
        size = sum(p.stat().st_size for p in target.rglob("*") if p.is_file())
        return ArtifactInfo(id=0, name=ref.name, run_id=ref.run_id, size=size)

    def download_artifact(self, info: ArtifactInfo, ref: ArtifactRef, dest: str | Path) -> Path:
        source = self._artifact_dir(ref, ref.run_id)
        if not source.is_dir():
            raise ArtifactStoreError(f"Artifact {ref.name!r} does not exist in {source.parent}.")
        dest = Path(dest)
        shutil.copytree(source, dest, dirs_exist_ok=True)
        return dest
