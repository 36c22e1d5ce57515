"""Posting the nag comment to each selected issue."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Optional, Sequence

from rich.progress import Progress

from ..utils.rich_logger import get_logger
from .github import GitHubClient
from .models import Issue, NotificationOutcome, NotificationReport, NotificationResult

logger = get_logger(__name__)

DEFAULT_RATE_LIMIT = 0.0  # seconds between comment posts
MAX_CONCURRENT_OPERATIONS = 10


class Notifier:
    """Comment on a set of issues, recording a result per issue."""

    def __init__(
        self,
        client: GitHubClient,
        rate_limit: float = DEFAULT_RATE_LIMIT,
        max_concurrent: int = 1,
    ):
        """
        Initialize Notifier.

        Args:
            client: Tracker client providing create_comment
            rate_limit: Seconds to wait after each comment post
            max_concurrent: Worker count; 1 posts strictly in input order
        """
        if rate_limit < 0:
            raise ValueError("Rate limit must be non-negative")
        if max_concurrent < 1:
            raise ValueError("Concurrency must be at least 1")

        self.client = client
        self.rate_limit = rate_limit
        self.max_concurrent = min(max_concurrent, MAX_CONCURRENT_OPERATIONS)
        # Guards _last_post so the rate limit holds across worker threads
        self.api_lock = threading.Lock()
        self._last_post: Optional[float] = None

    def notify(
        self,
        comment: str,
        issues: Sequence[Issue],
        cancel_event: Optional[threading.Event] = None,
        progress: Optional[Progress] = None,
    ) -> NotificationReport:
        """
        Post the comment to every issue.

        Per-issue failures are recorded in the report and never stop the
        remaining posts. Each issue gets at most one attempt.

        Args:
            comment: Comment body, identical for every issue
            issues: Issues to notify
            cancel_event: Set to stop before the next post starts
            progress: Optional Rich Progress instance

        Returns:
            NotificationReport for the issues that were attempted
        """
        report = NotificationReport()
        if not issues:
            return report

        start_time = time.time()
        task_id = None
        if progress:
            task_id = progress.add_task("[cyan]Posting comments...", total=len(issues))

        if self.max_concurrent == 1:
            self._notify_sequential(comment, issues, report, cancel_event, progress, task_id)
        else:
            self._notify_concurrent(comment, issues, report, cancel_event, progress, task_id)

        report.duration = time.time() - start_time
        logger.info(
            "Notification run finished",
            attempted=report.attempted,
            delivered=report.delivered,
            failed=report.failed,
            cancelled=report.cancelled,
        )
        return report

    def _notify_sequential(self, comment, issues, report, cancel_event, progress, task_id) -> None:
        for issue in issues:
            if self._is_cancelled(cancel_event):
                report.cancelled = True
                break
            report.record(self._post(comment, issue))
            if progress and task_id is not None:
                progress.update(task_id, advance=1)

    def _notify_concurrent(self, comment, issues, report, cancel_event, progress, task_id) -> None:
        def process_issue(issue: Issue) -> Optional[NotificationResult]:
            # Workers that start after cancellation post nothing.
            if self._is_cancelled(cancel_event):
                return None
            return self._post(comment, issue)

        with ThreadPoolExecutor(max_workers=self.max_concurrent) as executor:
            futures = {executor.submit(process_issue, issue): issue for issue in issues}

            for future in as_completed(futures):
                result = future.result()
                if result is None:
                    report.cancelled = True
                    continue
                report.record(result)

                if progress and task_id is not None:
                    progress.update(task_id, advance=1)

    def _wait_for_slot(self) -> None:
        """Space post start times at least rate_limit seconds apart."""
        if not self.rate_limit:
            return
        with self.api_lock:
            now = time.monotonic()
            if self._last_post is not None:
                delay = self._last_post + self.rate_limit - now
                if delay > 0:
                    time.sleep(delay)
                    now = time.monotonic()
            self._last_post = now

    def _post(self, comment: str, issue: Issue) -> NotificationResult:
        """Make a single comment attempt and turn its outcome into a result."""
        self._wait_for_slot()
        try:
            self.client.create_comment(
                issue.repository_owner, issue.repository_name, issue.number, comment
            )
        except Exception as e:
            logger.error("Failed to comment on issue", issue=issue.identifier, error=str(e))
            return NotificationResult(issue=issue, outcome=NotificationOutcome.FAILED, error=str(e))

        logger.info("Commented on issue", issue=issue.identifier)
        return NotificationResult(issue=issue, outcome=NotificationOutcome.DELIVERED)

    @staticmethod
    def _is_cancelled(cancel_event: Optional[threading.Event]) -> bool:
        return cancel_event is not None and cancel_event.is_set()
