"""
Unit tests for core.github module.

Tests the PyGithub wrapper used for issue listing and commenting.
"""

import unittest
from unittest.mock import ANY, Mock, patch

import requests
from github import Github, GithubException
from github.Issue import Issue as GithubIssue
from github.Repository import Repository

from gh_nag.core.errors import NotificationError, TrackerQueryError
from gh_nag.core.github import DEFAULT_PER_PAGE, DEFAULT_TIMEOUT, GitHubClient
from gh_nag.core.models import IssueFilter


def make_raw_issue(number, labels=(), repository_url="https://api.github.com/repos/acme/widgets", title=None):
    """Build a stand-in for a PyGithub Issue."""
    raw = Mock()
    raw.number = number
    raw.title = title or f"Issue {number}"
    raw.labels = []
    for label_name in labels:
        label = Mock()
        label.name = label_name
        raw.labels.append(label)
    raw.repository_url = repository_url
    return raw


class TestGitHubClient(unittest.TestCase):
    """Test GitHubClient functionality."""

    def setUp(self):
        """Set up test fixtures."""
        self.token = "ghp_FAKE_TEST_TOKEN_REPLACED"
        self.mock_github = Mock(spec=Github)
        self.mock_repo = Mock(spec=Repository)
        self.mock_github.get_repo.return_value = self.mock_repo

        with patch("gh_nag.core.github.Github") as mock_github_class:
            mock_github_class.return_value = self.mock_github
            self.client = GitHubClient(self.token, per_page=2)

    def _serve_page(self, raw_issues):
        paginated = Mock()
        paginated.get_page.return_value = raw_issues
        self.mock_repo.get_issues.return_value = paginated
        return paginated

    def test_init_with_defaults(self):
        """Test initialization with default page size and timeout."""
        with patch("gh_nag.core.github.Github") as mock_github_class:
            client = GitHubClient("test_token")

            mock_github_class.assert_called_once_with(
                auth=ANY, per_page=DEFAULT_PER_PAGE, timeout=DEFAULT_TIMEOUT, lazy=True
            )
            self.assertEqual(client.per_page, DEFAULT_PER_PAGE)
            self.assertEqual(client.timeout, DEFAULT_TIMEOUT)

    def test_per_page_clamped(self):
        """Test page size is kept within what the API accepts."""
        with patch("gh_nag.core.github.Github"):
            self.assertEqual(GitHubClient("t", per_page=500).per_page, 100)
            self.assertEqual(GitHubClient("t", per_page=0).per_page, 1)

    def test_user_property_lazy_loading(self):
        """Test that user property is lazily loaded and cached."""
        mock_user = Mock()
        self.mock_github.get_user.return_value = mock_user

        self.assertEqual(self.client.user, mock_user)
        self.assertEqual(self.client.user, mock_user)
        self.mock_github.get_user.assert_called_once()

    def test_get_current_user_login(self):
        mock_user = Mock()
        mock_user.login = "octocat"
        self.mock_github.get_user.return_value = mock_user

        self.assertEqual(self.client.get_current_user_login(), "octocat")

    def test_get_current_user_login_error(self):
        self.mock_github.get_user.side_effect = GithubException(401, "Bad credentials", None)

        self.assertIsNone(self.client.get_current_user_login())

    def test_get_repository_is_lazy(self):
        result = self.client.get_repository("acme", "widgets")

        self.assertEqual(result, self.mock_repo)
        self.mock_github.get_repo.assert_called_once_with("acme/widgets")

    def test_list_issues_default_filter(self):
        """Test the default filter maps to open issues without a milestone."""
        paginated = self._serve_page([make_raw_issue(1, ["tracked/no"])])

        issues, has_more = self.client.list_issues("acme", "widgets", IssueFilter(), 0)

        self.mock_repo.get_issues.assert_called_once_with(state="open", milestone="none")
        paginated.get_page.assert_called_once_with(0)
        self.assertEqual(len(issues), 1)
        self.assertEqual(issues[0].number, 1)
        self.assertEqual(issues[0].labels, ("tracked/no",))
        self.assertEqual(issues[0].identifier, "acme/widgets#1")
        self.assertFalse(has_more)

    def test_list_issues_full_page_has_more(self):
        self._serve_page([make_raw_issue(1), make_raw_issue(2)])

        _, has_more = self.client.list_issues("acme", "widgets", IssueFilter(), 3)

        self.assertTrue(has_more)
        self.mock_repo.get_issues.return_value.get_page.assert_called_once_with(3)

    def test_list_issues_with_labels_and_any_milestone(self):
        self._serve_page([])
        issue_filter = IssueFilter(state="all", milestone="*", labels={"sig/node", "kind/feature"})

        issues, has_more = self.client.list_issues("acme", "widgets", issue_filter, 0)

        self.mock_repo.get_issues.assert_called_once_with(
            state="all", milestone="*", labels=["kind/feature", "sig/node"]
        )
        self.assertEqual(issues, [])
        self.assertFalse(has_more)

    def test_list_issues_numbered_milestone(self):
        """Test a milestone number is resolved to a Milestone object."""
        self._serve_page([])
        milestone = Mock()
        self.mock_repo.get_milestone.return_value = milestone

        self.client.list_issues("acme", "widgets", IssueFilter(milestone="12"), 0)

        self.mock_repo.get_milestone.assert_called_once_with(12)
        self.mock_repo.get_issues.assert_called_once_with(state="open", milestone=milestone)

    def test_numbered_milestone_resolved_once_across_pages(self):
        self._serve_page([make_raw_issue(1), make_raw_issue(2)])
        issue_filter = IssueFilter(milestone="12")

        for page in range(3):
            self.client.list_issues("acme", "widgets", issue_filter, page)

        self.mock_repo.get_milestone.assert_called_once_with(12)
        self.assertEqual(self.mock_repo.get_issues.call_count, 3)

    def test_listed_issue_converted_without_extra_request(self):
        """Test converting a list-payload issue never completes it with a GET."""
        requester = Mock()
        raw = GithubIssue(requester, {}, {
            "url": "https://api.github.com/repos/kubernetes/enhancements/issues/42",
            "repository_url": "https://api.github.com/repos/kubernetes/enhancements",
            "number": 42,
            "title": "Pod priority",
            "labels": [{"name": "tracked/no", "url": "https://api.github.com/labels/tracked/no"}],
        })

        issue = GitHubClient._to_issue(raw, "acme", "widgets")

        requester.requestJsonAndCheck.assert_not_called()
        self.assertEqual(issue.key, ("kubernetes", "enhancements", 42))
        self.assertEqual(issue.labels, ("tracked/no",))
        self.assertEqual(issue.title, "Pod priority")

    def test_list_issues_repository_taken_from_url(self):
        """Test the owning repository comes from the API's repository_url."""
        self._serve_page([
            make_raw_issue(9, repository_url="https://api.github.com/repos/kubernetes/enhancements"),
            make_raw_issue(10, repository_url=None),
        ])

        issues, _ = self.client.list_issues("acme", "widgets", IssueFilter(), 0)

        self.assertEqual(issues[0].key, ("kubernetes", "enhancements", 9))
        self.assertEqual(issues[1].key, ("acme", "widgets", 10))

    def test_list_issues_github_error(self):
        self.mock_repo.get_issues.side_effect = GithubException(404, "Not Found", None)

        with self.assertRaises(TrackerQueryError) as ctx:
            self.client.list_issues("acme", "widgets", IssueFilter(), 0)

        self.assertEqual(ctx.exception.owner, "acme")
        self.assertEqual(ctx.exception.name, "widgets")
        self.assertIsInstance(ctx.exception.cause, GithubException)
        self.assertIn("acme/widgets", str(ctx.exception))

    def test_list_issues_transport_error(self):
        paginated = self._serve_page([])
        paginated.get_page.side_effect = requests.ConnectionError("connection reset")

        with self.assertRaises(TrackerQueryError):
            self.client.list_issues("acme", "widgets", IssueFilter(), 1)

    def test_create_comment(self):
        mock_issue = Mock()
        mock_issue.create_comment.return_value = Mock(id=4242)
        self.mock_repo.get_issue.return_value = mock_issue

        comment_id = self.client.create_comment("acme", "widgets", 7, "ping")

        self.assertEqual(comment_id, 4242)
        self.mock_repo.get_issue.assert_called_once_with(7)
        mock_issue.create_comment.assert_called_once_with("ping")

    def test_create_comment_error(self):
        self.mock_repo.get_issue.side_effect = GithubException(410, "Issue deleted", None)

        with self.assertRaises(NotificationError) as ctx:
            self.client.create_comment("acme", "widgets", 7, "ping")

        self.assertIn("acme/widgets#7", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
