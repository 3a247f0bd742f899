from __future__ import annotations

from github import Auth, Github


def get_repo(repo_name: str, token: str):
    return Github(auth=Auth.Token(token)).get_repo(repo_name)


def get_pull(repo, pr_number: int):
    return repo.get_pull(pr_number)


def get_issue(repo, pr_number: int):
    """Pull request conversation comments live on the issue with the same number."""
    return repo.get_issue(pr_number)


def get_changed_files(pr) -> list[str]:
    """Return the repository-relative paths touched by the pull request (all pages)."""
    return [f.filename for f in pr.get_files()]


def get_latest_run(repo, branch: str):
    """Return the newest workflow run on ``branch``, or None when it has none.

    The listing is ordered newest first; only the first page is fetched.
    """
    return next(iter(repo.get_workflow_runs(branch=branch)), None)
