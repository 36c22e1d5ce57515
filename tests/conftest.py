"""Pytest configuration and shared fixtures for gh-nag tests."""

import tempfile
from pathlib import Path
from unittest.mock import Mock

import pytest

from gh_nag.core.errors import TrackerQueryError
from gh_nag.core.github import GitHubClient
from gh_nag.core.models import Issue, IssueFilter, IssueState, NagPlan, RepositoryRef


def make_issue(number, labels=(), owner="acme", name="widgets", title=None):
    """Build an Issue with sensible defaults."""
    return Issue(
        number=number,
        repository_owner=owner,
        repository_name=name,
        labels=tuple(labels),
        title=title if title is not None else f"Issue {number}",
    )


class PagedTrackerStub:
    """Tracker stand-in serving fixed pages and recording every call."""

    def __init__(self, pages, fail_on_page=None, comment_failures=None):
        self.pages = pages
        self.fail_on_page = fail_on_page
        self.comment_failures = comment_failures or {}
        self.page_requests = []
        self.comments = []

    def list_issues(self, owner, name, issue_filter, page):
        self.page_requests.append(page)
        if page == self.fail_on_page:
            raise TrackerQueryError(owner, name, RuntimeError("502 Bad Gateway"))
        if page >= len(self.pages):
            return [], False
        return list(self.pages[page]), page < len(self.pages) - 1

    def create_comment(self, owner, name, issue_number, body):
        self.comments.append((owner, name, issue_number, body))
        if issue_number in self.comment_failures:
            raise self.comment_failures[issue_number]
        return len(self.comments)


@pytest.fixture
def issue_factory():
    """Factory building Issue objects."""
    return make_issue


@pytest.fixture
def tracker_stub():
    """Factory building PagedTrackerStub instances."""
    return PagedTrackerStub


@pytest.fixture
def mock_github_client():
    """Create a mock GitHub client for testing."""
    mock_client = Mock(spec=GitHubClient)
    mock_client.list_issues.return_value = ([], False)
    mock_client.create_comment.return_value = 1
    return mock_client


@pytest.fixture
def repository():
    return RepositoryRef(owner="acme", name="widgets")


@pytest.fixture
def open_no_milestone_filter():
    return IssueFilter(state=IssueState.OPEN, milestone="none")


@pytest.fixture
def sample_issues():
    """Issues #1 (tracked/no), #2 (no labels) and #3 (bug)."""
    return [
        make_issue(1, ["tracked/no"]),
        make_issue(2, []),
        make_issue(3, ["bug"]),
    ]


@pytest.fixture
def sample_plan(repository, open_no_milestone_filter):
    return NagPlan(
        repository=repository,
        comment="Is this still planned for the next release?",
        issue_filter=open_no_milestone_filter,
        exclusions=frozenset({"tracked/no"}),
    )


@pytest.fixture
def temp_directory():
    """Create a temporary directory for file operations."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")


def pytest_collection_modifyitems(config, items):
    """Add markers based on file location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
