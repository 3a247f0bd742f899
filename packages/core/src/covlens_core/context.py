"""Per-run GitHub Actions context.

Built once at startup from the runner environment and the event payload,
then passed explicitly to every component that needs repository or pull
request identity.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

logger = logging.getLogger(__name__)

PULL_REQUEST_EVENTS = ("pull_request", "pull_request_target")


@dataclass(frozen=True)
class RunContext:
    event_name: str = ""
    owner: str = ""
    repo: str = ""
    workflow: str = ""
    run_id: int = 0
    run_number: int = 0
    action: str = "covlens"
    pr_number: int | None = None
    head_sha: str = ""
    base_ref: str = ""

    @property
    def full_repo(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def is_pull_request(self) -> bool:
        return self.event_name in PULL_REQUEST_EVENTS and self.pr_number is not None


def _load_event(event_path: str | None) -> dict:
    if not event_path:
        return {}
    path = Path(event_path)
    if not path.exists():
        logger.debug("Event payload %s does not exist.", event_path)
        return {}
    with open(path, encoding="utf-8") as f:
        return json.load(f) or {}


def _int(value: str | None) -> int:
    try:
        return int(value or 0)
    except ValueError:
        return 0


def load_context(environ: Mapping[str, str] | None = None) -> RunContext:
    """Build a RunContext from ``environ`` (defaults to ``os.environ``)."""
    env = os.environ if environ is None else environ
    event = _load_event(env.get("GITHUB_EVENT_PATH"))

    owner, _, repo = env.get("GITHUB_REPOSITORY", "").partition("/")
    pull_request = event.get("pull_request") or {}

    return RunContext(
        event_name=env.get("GITHUB_EVENT_NAME", ""),
        owner=owner,
        repo=repo,
        workflow=env.get("GITHUB_WORKFLOW", ""),
        run_id=_int(env.get("GITHUB_RUN_ID")),
        run_number=_int(env.get("GITHUB_RUN_NUMBER")),
        action=env.get("GITHUB_ACTION") or "covlens",
        pr_number=pull_request.get("number"),
        head_sha=(pull_request.get("head") or {}).get("sha", ""),
        base_ref=(pull_request.get("base") or {}).get("ref", ""),
    )
