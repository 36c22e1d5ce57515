"""GitHub API client wrapper."""

import re
from typing import Any, Optional

import requests
from github import Auth, Github, GithubException
from github.Issue import Issue as GithubIssue
from github.Milestone import Milestone
from github.Repository import Repository

from ..utils.rich_logger import get_logger
from .errors import NotificationError, TrackerQueryError
from .models import ANY_MILESTONE, NO_MILESTONE, Issue, IssueFilter

logger = get_logger(__name__)

DEFAULT_PER_PAGE = 100  # GitHub caps list endpoints at 100 items per page
DEFAULT_TIMEOUT = 30

REPOSITORY_URL_PATTERN = re.compile(r"/repos/([^/]+)/([^/]+)/?$")

# Transport failures surface as requests exceptions rather than GithubException.
TRACKER_ERRORS = (GithubException, requests.RequestException)


class GitHubClient:
    """Wrapper for the GitHub operations gh-nag needs."""

    def __init__(self, token: str, per_page: int = DEFAULT_PER_PAGE, timeout: int = DEFAULT_TIMEOUT):
        """
        Initialize GitHubClient.

        Args:
            token: GitHub authentication token
            per_page: Page size for issue listing (1-100)
            timeout: Request timeout in seconds
        """
        self._token = token
        self.per_page = max(1, min(per_page, DEFAULT_PER_PAGE))
        self.timeout = timeout
        # Lazy objects only hit the API for the call that needs them
        self.github = Github(auth=Auth.Token(token), per_page=self.per_page, timeout=timeout, lazy=True)
        self._user = None
        self._milestones: dict[tuple[str, str, str], Milestone] = {}

    @property
    def user(self):
        """Get the authenticated user."""
        if not self._user:
            self._user = self.github.get_user()
        return self._user

    def get_repository(self, owner: str, name: str) -> Repository:
        """
        Get a lazily loaded repository object.

        Args:
            owner: Repository owner
            name: Repository name

        Returns:
            Repository object
        """
        return self.github.get_repo(f"{owner}/{name}")

    def list_issues(
        self, owner: str, name: str, issue_filter: IssueFilter, page: int
    ) -> tuple[list[Issue], bool]:
        """
        Fetch one page of issues matching the filter.

        Args:
            owner: Repository owner
            name: Repository name
            issue_filter: Tracker-side query (state, milestone, labels)
            page: Zero-based page number

        Returns:
            Tuple of (issues on this page, whether more pages may follow)

        Raises:
            TrackerQueryError: If the request fails for any reason
        """
        kwargs: dict[str, Any] = {"state": issue_filter.state.value}
        if issue_filter.labels:
            kwargs["labels"] = sorted(issue_filter.labels)

        try:
            repository = self.get_repository(owner, name)
            kwargs["milestone"] = self._resolve_milestone(owner, name, repository, issue_filter.milestone)
            paginated = repository.get_issues(**kwargs)
            raw_issues = paginated.get_page(page)
            issues = [self._to_issue(raw, owner, name) for raw in raw_issues]
        except TRACKER_ERRORS as e:
            raise TrackerQueryError(owner, name, e) from e

        logger.debug("Fetched issue page", repository=f"{owner}/{name}", page=page, count=len(issues))

        # A short page is the last one; a full page may or may not be followed by more.
        return issues, len(raw_issues) >= self.per_page

    def create_comment(self, owner: str, name: str, issue_number: int, body: str) -> int:
        """
        Post a comment on an issue.

        Args:
            owner: Repository owner
            name: Repository name
            issue_number: Issue number
            body: Comment body

        Returns:
            ID of the created comment

        Raises:
            NotificationError: If the comment could not be created
        """
        try:
            issue = self.get_repository(owner, name).get_issue(issue_number)
            comment = issue.create_comment(body)
        except TRACKER_ERRORS as e:
            raise NotificationError(f"{owner}/{name}#{issue_number}", e) from e
        return comment.id

    def get_current_user_login(self) -> Optional[str]:
        """
        Get the login of the current authenticated user.

        Returns:
            User login string or None if error
        """
        try:
            return self.user.login
        except TRACKER_ERRORS:
            return None

    def _resolve_milestone(self, owner: str, name: str, repository: Repository, milestone: str):
        """
        Map a milestone filter to what PyGithub accepts: "none", "*" or a Milestone.

        Milestone objects are cached per repository so paging through one
        query resolves the milestone only once.
        """
        if milestone in (NO_MILESTONE, ANY_MILESTONE):
            return milestone

        key = (owner, name, milestone)
        if key not in self._milestones:
            self._milestones[key] = repository.get_milestone(int(milestone))
        return self._milestones[key]

    @staticmethod
    def _to_issue(raw: GithubIssue, owner: str, name: str) -> Issue:
        """Convert a PyGithub issue, taking the owning repository from its API URL."""
        # raw_data would complete the object with one GET per issue
        repository_url = raw.repository_url or ""
        match = REPOSITORY_URL_PATTERN.search(repository_url)
        if match:
            owner, name = match.group(1), match.group(2)

        return Issue(
            number=raw.number,
            repository_owner=owner,
            repository_name=name,
            labels=tuple(label.name for label in raw.labels),
            title=raw.title or "",
        )
