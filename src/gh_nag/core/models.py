"""Data model for issue selection and notification."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

# Milestone value the tracker understands as "no milestone assigned".
NO_MILESTONE = "none"
ANY_MILESTONE = "*"


class IssueState(str, Enum):
    """Issue state accepted by the tracker-side query."""

    OPEN = "open"
    CLOSED = "closed"
    ALL = "all"


class NotificationOutcome(str, Enum):
    """Outcome of a single comment post."""

    DELIVERED = "delivered"
    FAILED = "failed"


@dataclass(frozen=True)
class RepositoryRef:
    """A single tracker repository."""

    owner: str
    name: str

    def __post_init__(self):
        if not self.owner or not self.owner.strip():
            raise ValueError("Repository owner cannot be empty")
        if not self.name or not self.name.strip():
            raise ValueError("Repository name cannot be empty")

    @classmethod
    def parse(cls, value: str) -> "RepositoryRef":
        """
        Parse an ``owner/name`` string.

        Args:
            value: Repository in owner/name form

        Returns:
            RepositoryRef instance

        Raises:
            ValueError: If the value is not in owner/name form
        """
        if not value or "/" not in value:
            raise ValueError(
                f"Repository '{value}' could not be parsed. Try something like: kubernetes/enhancements"
            )
        owner, name = value.strip().split("/", 1)
        if "/" in name:
            raise ValueError(f"Repository '{value}' must use owner/name format")
        return cls(owner=owner.strip(), name=name.strip())

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def __str__(self) -> str:
        return self.full_name


@dataclass(frozen=True)
class IssueFilter:
    """Tracker-side issue query, passed to the API verbatim."""

    state: IssueState = IssueState.OPEN
    milestone: str = NO_MILESTONE
    labels: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self):
        # Accept plain strings and any iterable of labels from callers.
        object.__setattr__(self, "state", IssueState(self.state))
        object.__setattr__(self, "labels", frozenset(self.labels))
        milestone = str(self.milestone or NO_MILESTONE).strip()
        if milestone not in (NO_MILESTONE, ANY_MILESTONE) and not milestone.isdigit():
            # Milestone titles such as "v1.12" are not accepted by the issues endpoint.
            raise ValueError(
                f"Milestone must be '{NO_MILESTONE}', '{ANY_MILESTONE}' or a milestone number, got '{milestone}'"
            )
        object.__setattr__(self, "milestone", milestone)


@dataclass(frozen=True)
class Issue:
    """An issue as returned by the tracker. Never mutated locally."""

    number: int
    repository_owner: str
    repository_name: str
    labels: tuple[str, ...] = ()
    title: str = ""

    def __post_init__(self):
        if self.number <= 0:
            raise ValueError(f"Issue number must be positive, got {self.number}")
        object.__setattr__(self, "labels", tuple(self.labels))

    @property
    def key(self) -> tuple[str, str, int]:
        return (self.repository_owner, self.repository_name, self.number)

    @property
    def identifier(self) -> str:
        return f"{self.repository_owner}/{self.repository_name}#{self.number}"


@dataclass(frozen=True)
class NotificationResult:
    """Result of notifying one issue."""

    issue: Issue
    outcome: NotificationOutcome
    error: Optional[str] = None

    @property
    def delivered(self) -> bool:
        return self.outcome is NotificationOutcome.DELIVERED


@dataclass
class NotificationReport:
    """Aggregate of all notification results for a run."""

    attempted: int = 0
    delivered: int = 0
    failures: list[NotificationResult] = field(default_factory=list)
    results: list[NotificationResult] = field(default_factory=list)
    cancelled: bool = False
    duration: float = 0.0

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def success_rate(self) -> float:
        """Delivered comments as a percentage of attempted ones."""
        if self.attempted == 0:
            return 0.0
        return (self.delivered / self.attempted) * 100

    def record(self, result: NotificationResult) -> None:
        """
        Add a single result and update the counters.

        Args:
            result: Result of one comment post
        """
        self.results.append(result)
        self.attempted += 1
        if result.delivered:
            self.delivered += 1
        else:
            self.failures.append(result)


@dataclass(frozen=True)
class NagPlan:
    """Everything a run needs, built once at startup and never changed."""

    repository: RepositoryRef
    comment: str
    issue_filter: IssueFilter = field(default_factory=IssueFilter)
    exclusions: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self):
        if not self.comment or not self.comment.strip():
            raise ValueError("Comment body cannot be empty")
        object.__setattr__(self, "exclusions", frozenset(self.exclusions))
