"""Issue selection: paginated retrieval followed by label exclusion."""

import threading
from typing import Iterable, Optional

from ..utils.rich_logger import get_logger
from .errors import SelectionCancelled
from .github import GitHubClient
from .models import Issue, IssueFilter, RepositoryRef

logger = get_logger(__name__)

# Upper bound on pages fetched for one query, in case the tracker keeps reporting full pages.
MAX_PAGES = 1000


def is_excluded(issue: Issue, exclusions: Iterable[str]) -> Optional[str]:
    """
    Check an issue's labels against the exclusion set.

    Args:
        issue: Issue to check
        exclusions: Label names that disqualify an issue

    Returns:
        The first excluded label found on the issue, or None
    """
    excluded = exclusions if isinstance(exclusions, (set, frozenset)) else frozenset(exclusions)
    for label in issue.labels:
        if label in excluded:
            return label
    return None


class IssueSelector:
    """Select the issues a run should notify."""

    def __init__(self, client: GitHubClient, max_pages: int = MAX_PAGES):
        """
        Initialize IssueSelector.

        Args:
            client: Tracker client providing list_issues
            max_pages: Safety cap on the number of pages requested
        """
        self.client = client
        self.max_pages = max(1, max_pages)

    def select(
        self,
        repo: RepositoryRef,
        issue_filter: IssueFilter,
        exclusions: Iterable[str],
        cancel_event: Optional[threading.Event] = None,
    ) -> list[Issue]:
        """
        Fetch every issue matching the filter and drop excluded ones.

        Args:
            repo: Repository to query
            issue_filter: Tracker-side query, used verbatim
            exclusions: Labels that remove an issue from the result
            cancel_event: Set to stop before the next page request

        Returns:
            Surviving issues in tracker order

        Raises:
            TrackerQueryError: If any page request fails
            SelectionCancelled: If cancellation was requested mid-selection
        """
        exclusions = frozenset(exclusions)
        fetched = self._fetch_all(repo, issue_filter, cancel_event)
        logger.info("Issues matching query", repository=repo.full_name, count=len(fetched))

        selected = []
        for issue in fetched:
            logger.debug("Checking issue", issue=issue.identifier, labels=list(issue.labels))
            label = is_excluded(issue, exclusions)
            if label is not None:
                logger.debug("Issue has excluded label, skipping", issue=issue.identifier, label=label)
                continue
            selected.append(issue)

        logger.info(
            "Issues selected",
            repository=repo.full_name,
            selected=len(selected),
            excluded=len(fetched) - len(selected),
        )
        return selected

    def _fetch_all(
        self,
        repo: RepositoryRef,
        issue_filter: IssueFilter,
        cancel_event: Optional[threading.Event],
    ) -> list[Issue]:
        """Request pages until the tracker reports no further results."""
        issues: list[Issue] = []
        seen: set[tuple[str, str, int]] = set()

        for page in range(self.max_pages):
            if cancel_event is not None and cancel_event.is_set():
                raise SelectionCancelled(f"selection in {repo.full_name} cancelled after {page} page(s)")

            page_issues, has_more = self.client.list_issues(repo.owner, repo.name, issue_filter, page)

            for issue in page_issues:
                # Items can shift between pages while we read them.
                if issue.key in seen:
                    logger.debug("Skipping duplicate issue", issue=issue.identifier)
                    continue
                seen.add(issue.key)
                issues.append(issue)

            if not has_more or not page_issues:
                break
        else:
            logger.warning("Stopped paging at safety limit", repository=repo.full_name, pages=self.max_pages)

        return issues
