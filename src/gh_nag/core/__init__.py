"""Core functionality for gh-nag."""

from .errors import NagError, NotificationError, SelectionCancelled, TrackerQueryError
from .github import GitHubClient
from .models import (
    Issue,
    IssueFilter,
    IssueState,
    NagPlan,
    NotificationOutcome,
    NotificationReport,
    NotificationResult,
    RepositoryRef,
)
from .notifier import Notifier
from .runner import NagRunner, NagRunResult
from .selector import IssueSelector, is_excluded

__all__ = [
    "GitHubClient",
    "Issue",
    "IssueFilter",
    "IssueSelector",
    "IssueState",
    "NagError",
    "NagPlan",
    "NagRunResult",
    "NagRunner",
    "NotificationError",
    "NotificationOutcome",
    "NotificationReport",
    "NotificationResult",
    "Notifier",
    "RepositoryRef",
    "SelectionCancelled",
    "TrackerQueryError",
    "is_excluded",
]
