"""Create or refresh the coverage report comment on a pull request."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

LCOV_LINK = "[LCOV](https://github.com/linux-test-project/lcov)"


def comment_header(title_prefix: str = "") -> str:
    """The identity marker every report comment starts with.

    Depends only on configuration, never on the commit or run, so later runs
    on the same pull request can find the comment again.
    """
    prefix = f"{title_prefix.strip()} " if title_prefix and title_prefix.strip() else ""
    return f"### {prefix}{LCOV_LINK} of commit"


def find_comment(issue, header: str):
    """Return the first comment whose body contains ``header``, or None."""
    for comment in issue.get_comments():
        if header in (comment.body or ""):
            return comment
    return None


def create_comment(issue, body: str):
    logger.debug("Creating a comment in the PR.")
    return issue.create_comment(body)


def upsert_comment(issue, body: str, header: str):
    existing = find_comment(issue, header)
    if existing is None:
        logger.debug("Comment does not exist, a new comment will be created.")
        return create_comment(issue, body)

    logger.debug("Updating comment, id: %s.", existing.id)
    existing.edit(body)
    return existing


def publish(issue, body: str, header: str, update: bool = False):
    """Post ``body`` to the pull request.

    With ``update`` the earlier report comment (found by ``header``) is edited
    in place, so repeated runs converge on one comment.
    """
    if update:
        return upsert_comment(issue, body, header)
    return create_comment(issue, body)
