"""Error types raised by the selection and notification phases."""

from typing import Optional


class NagError(Exception):
    """Base class for gh-nag errors."""


class TrackerQueryError(NagError):
    """Listing issues for a repository failed.

    Fatal to a run: no issue is notified once selection fails.
    """

    def __init__(self, owner: str, name: str, cause: Optional[BaseException] = None):
        self.owner = owner
        self.name = name
        self.cause = cause
        message = f"listing issues in {owner}/{name} failed"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class NotificationError(NagError):
    """Posting a comment to a single issue failed."""

    def __init__(self, identifier: str, cause: Optional[BaseException] = None):
        self.identifier = identifier
        self.cause = cause
        message = f"commenting on {identifier} failed"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class SelectionCancelled(NagError):
    """Cancellation was requested before all issue pages were fetched."""
