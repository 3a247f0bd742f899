"""Tests for creating and refreshing the report comment."""

from covlens_core.comment import comment_header, find_comment, publish


class FakeComment:
    def __init__(self, comment_id, body):
        self.id = comment_id
        self.body = body

    def edit(self, body):
        self.body = body


class FakeIssue:
    """Minimal stand-in for a PyGithub Issue holding conversation comments."""

    def __init__(self, comments=None):
        self.comments = list(comments or [])

    def get_comments(self):
        return iter(list(self.comments))

    def create_comment(self, body):
        comment = FakeComment(len(self.comments) + 1, body)
        self.comments.append(comment)
        return comment


HEADER = comment_header("")


class TestCommentHeader:
    def test_without_prefix(self):
        assert comment_header("") == "### [LCOV](https://github.com/linux-test-project/lcov) of commit"

    def test_with_prefix(self):
        assert comment_header("Backend").startswith("### Backend [LCOV]")

    def test_is_deterministic(self):
        assert comment_header("Backend") == comment_header("Backend")

    def test_prefixes_distinguish_reports(self):
        assert comment_header("Backend") not in comment_header("Frontend")


class TestPublish:
    def test_create_mode_always_adds(self):
        issue = FakeIssue()
        publish(issue, f"{HEADER} one", HEADER, update=False)
        publish(issue, f"{HEADER} two", HEADER, update=False)
        assert [c.body for c in issue.comments] == [f"{HEADER} one", f"{HEADER} two"]

    def test_update_mode_creates_when_missing(self):
        issue = FakeIssue([FakeComment(1, "LGTM")])
        publish(issue, f"{HEADER} report", HEADER, update=True)
        assert len(issue.comments) == 2
        assert issue.comments[1].body == f"{HEADER} report"

    def test_update_mode_is_idempotent(self):
        issue = FakeIssue()
        publish(issue, f"{HEADER} first", HEADER, update=True)
        publish(issue, f"{HEADER} second", HEADER, update=True)
        assert len(issue.comments) == 1
        assert issue.comments[0].body == f"{HEADER} second"

    def test_update_mode_keeps_comment_identity(self):
        existing = FakeComment(42, f"{HEADER} old")
        issue = FakeIssue([FakeComment(1, "unrelated"), existing])
        result = publish(issue, f"{HEADER} new", HEADER, update=True)
        assert result is existing
        assert existing.id == 42
        assert existing.body == f"{HEADER} new"
        assert issue.comments[0].body == "unrelated"

    def test_other_prefix_is_not_updated(self):
        backend = comment_header("Backend")
        issue = FakeIssue([FakeComment(1, f"{backend} old")])
        publish(issue, f"{HEADER} new", HEADER, update=True)
        assert len(issue.comments) == 2

    def test_find_comment_handles_empty_body(self):
        issue = FakeIssue([FakeComment(1, None)])
        assert find_comment(issue, HEADER) is None
