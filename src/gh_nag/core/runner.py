"""Run orchestration: select issues, then notify them."""

import threading
from dataclasses import dataclass, field
from typing import Optional

from rich.progress import Progress

from ..utils.rich_logger import get_logger
from .errors import SelectionCancelled
from .models import Issue, NagPlan, NotificationReport
from .notifier import Notifier
from .selector import IssueSelector

logger = get_logger(__name__)


@dataclass
class NagRunResult:
    """Outcome of one run."""

    plan: NagPlan
    selected: list[Issue] = field(default_factory=list)
    report: NotificationReport = field(default_factory=NotificationReport)
    dry_run: bool = False

    @property
    def cancelled(self) -> bool:
        return self.report.cancelled


class NagRunner:
    """Drive a NagPlan through selection and notification."""

    def __init__(self, selector: IssueSelector, notifier: Notifier):
        self.selector = selector
        self.notifier = notifier

    def run(
        self,
        plan: NagPlan,
        cancel_event: Optional[threading.Event] = None,
        dry_run: bool = False,
        progress: Optional[Progress] = None,
    ) -> NagRunResult:
        """
        Select matching issues and comment on each one.

        A TrackerQueryError from selection propagates unchanged and no
        comment is posted.

        Args:
            plan: Run configuration
            cancel_event: Set to stop between network calls
            dry_run: Select issues but post nothing
            progress: Optional Rich Progress instance for the notify phase

        Returns:
            NagRunResult with the selected issues and the notification report
        """
        result = NagRunResult(plan=plan, dry_run=dry_run)

        try:
            result.selected = self.selector.select(
                plan.repository, plan.issue_filter, plan.exclusions, cancel_event
            )
        except SelectionCancelled as e:
            logger.warning("Run cancelled during selection", reason=str(e))
            result.report.cancelled = True
            return result

        if dry_run:
            logger.info("Dry run, not posting comments", selected=len(result.selected))
            return result

        result.report = self.notifier.notify(plan.comment, result.selected, cancel_event, progress)
        return result
