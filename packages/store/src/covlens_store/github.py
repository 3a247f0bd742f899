"""GitHubArtifactStore: workflow-run artifacts on GitHub Actions.

Two different services are involved:
- Lookup and download go through the public REST API (PyGithub for the
  listing, a plain requests GET for the zip archive). These accept any run
  of the repository, which is what baseline retrieval needs.
- Upload goes through the Actions results service used by
  ``actions/upload-artifact@v4``. It only accepts artifacts for the job that
  holds ``ACTIONS_RUNTIME_TOKEN``, i.e. the currently executing run.

Upload protocol (artifact version 4):
  CreateArtifact   → signed blob URL
  PUT blob         → zip archive of the files
  FinalizeArtifact → size + sha256 of the archive, returns the artifact id
"""

from __future__ import annotations

import base64
import hashlib
import io
import json
import logging
import os
import zipfile
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

import requests
from github import Auth, Github

from covlens_store.base import ArtifactStoreError, BaseArtifactStore, relative_names
from covlens_store.models import ArtifactInfo

if TYPE_CHECKING:
    from covlens_store.models import ArtifactRef

logger = logging.getLogger(__name__)

_DEFAULT_API_URL = "https://api.github.com"
_TWIRP_SERVICE = "twirp/github.actions.results.api.v1.ArtifactService"
_ARTIFACT_VERSION = 4
_TIMEOUT = 60


def _backend_ids(runtime_token: str) -> tuple[str, str]:
    """Extract the workflow run / job backend ids from the runtime token.

    The token is a JWT whose ``scp`` claim contains an entry of the form
    ``Actions.Results:<run backend id>:<job backend id>``.
    """
    try:
        payload = runtime_token.split(".")[1]
        payload += "=" * (-len(payload) % 4)
        claims = json.loads(base64.urlsafe_b64decode(payload))
    except (IndexError, ValueError) as e:
        raise ArtifactStoreError(f"ACTIONS_RUNTIME_TOKEN is not a valid JWT: {e}")

    for scope in str(claims.get("scp", "")).split():
        parts = scope.split(":")
        if parts[0] == "Actions.Results" and len(parts) == 3:
            return parts[1], parts[2]
    raise ArtifactStoreError("ACTIONS_RUNTIME_TOKEN does not carry an Actions.Results scope.")


def _zip_files(files: Iterable[str | Path], root_dir: str | Path) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for path, arcname in relative_names(files, root_dir):
            archive.write(path, arcname)
    return buffer.getvalue()


class GitHubArtifactStore(BaseArtifactStore):
    """Artifact store backed by GitHub Actions.

    ``results_url`` and ``runtime_token`` default to the ``ACTIONS_RESULTS_URL``
    and ``ACTIONS_RUNTIME_TOKEN`` variables the runner injects into every
    action step. They are only needed for uploads.
    """

    def __init__(
        self,
        token: str | None,
        api_url: str | None = None,
        results_url: str | None = None,
        runtime_token: str | None = None,
        session: requests.Session | None = None,
        github: Github | None = None,
    ):
        self._token = token
        self._api_url = (api_url or os.environ.get("GITHUB_API_URL") or _DEFAULT_API_URL).rstrip("/")
        self._results_url = results_url if results_url is not None else os.environ.get("ACTIONS_RESULTS_URL", "")
        self._runtime_token = runtime_token if runtime_token is not None else os.environ.get("ACTIONS_RUNTIME_TOKEN", "")
        self._session = session or requests.Session()
        if github is not None:
            self._gh = github
        else:
            auth = Auth.Token(token) if token else None
            self._gh = Github(auth=auth, base_url=self._api_url)

    # ------------------------------------------------------------------ #
    # Lookup / download (REST API, any run)                               #
    # ------------------------------------------------------------------ #

    def get_artifact(self, ref: ArtifactRef) -> ArtifactInfo | None:
        if ref.run_id is None:
            raise ArtifactStoreError("Artifact lookup requires the id of the run that owns it.")
        run = self._gh.get_repo(ref.full_repo).get_workflow_run(ref.run_id)
        for artifact in run.get_artifacts():
            if artifact.name == ref.name and not artifact.expired:
                return ArtifactInfo(id=artifact.id, name=artifact.name, run_id=ref.run_id, size=artifact.size_in_bytes)
        return None

    def download_artifact(self, info: ArtifactInfo, ref: ArtifactRef, dest: str | Path) -> Path:
        url = f"{self._api_url}/repos/{ref.full_repo}/actions/artifacts/{info.id}/zip"
        # requests drops the Authorization header when redirected to the blob host.
        response = self._session.get(
            url,
            headers={"Authorization": f"Bearer {self._token}", "Accept": "application/vnd.github+json"},
            timeout=_TIMEOUT,
        )
        response.raise_for_status()

        dest = Path(dest)
        dest.mkdir(parents=True, exist_ok=True)
        try:
            with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
                archive.extractall(dest)
        except zipfile.BadZipFile as e:
            raise ArtifactStoreError(f"Artifact {info.name!r} (id {info.id}) is not a valid zip archive: {e}")
        logger.debug("Extracted artifact %r into %s.", info.name, dest)
        return dest

    # ------------------------------------------------------------------ #
    # Upload (results service, current run only)                          #
    # ------------------------------------------------------------------ #

    def upload(self, ref: ArtifactRef, files: Iterable[str | Path], root_dir: str | Path) -> ArtifactInfo | None:
        if not self._results_url or not self._runtime_token:
            raise ArtifactStoreError(
                "Uploading artifacts requires ACTIONS_RESULTS_URL and ACTIONS_RUNTIME_TOKEN. "
                "Are we running inside a GitHub Actions step?"
            )
        run_backend_id, job_backend_id = _backend_ids(self._runtime_token)
        ids = {"workflowRunBackendId": run_backend_id, "workflowJobRunBackendId": job_backend_id}

        created = self._twirp("CreateArtifact", {**ids, "name": ref.name, "version": _ARTIFACT_VERSION})
        upload_url = created.get("signedUploadUrl") or created.get("signed_upload_url")
        if not created.get("ok") or not upload_url:
            raise ArtifactStoreError(f"CreateArtifact was rejected for {ref.name!r}: {created}")

        archive = _zip_files(files, root_dir)
        response = self._session.put(
            upload_url,
            data=archive,
            headers={"x-ms-blob-type": "BlockBlob", "Content-Type": "application/zip"},
            timeout=_TIMEOUT,
        )
        response.raise_for_status()

        digest = hashlib.sha256(archive).hexdigest()
        finalized = self._twirp(
            "FinalizeArtifact",
            {**ids, "name": ref.name, "size": str(len(archive)), "hash": f"sha256:{digest}"},
        )
        if not finalized.get("ok"):
            raise ArtifactStoreError(f"FinalizeArtifact was rejected for {ref.name!r}: {finalized}")

        artifact_id = int(finalized.get("artifactId") or finalized.get("artifact_id") or 0)
        logger.debug("Uploaded artifact %r (id %d, %d bytes).", ref.name, artifact_id, len(archive))
        return ArtifactInfo(id=artifact_id, name=ref.name, run_id=ref.run_id, size=len(archive))

    def _twirp(self, method: str, body: dict) -> dict:
        url = f"{self._results_url.rstrip('/')}/{_TWIRP_SERVICE}/{method}"
        response = self._session.post(
            url,
            json=body,
            headers={"Authorization": f"Bearer {self._runtime_token}", "Content-Type": "application/json"},
            timeout=_TIMEOUT,
        )
        response.raise_for_status()
        return response.json()

    def close(self) -> None:
        self._session.close()
        self._gh.close()
