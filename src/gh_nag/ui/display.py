"""Display and formatting for nag runs."""

from typing import Optional, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..core.models import Issue, NagPlan, NotificationReport

MAX_ERRORS_SHOWN = 5


class DisplayManager:
    """Render selection and notification results to the terminal."""

    def __init__(self, console: Console, verbose: bool = False):
        """
        Initialize DisplayManager.

        Args:
            console: Rich console instance
            verbose: Show verbose output
        """
        self.console = console
        self.verbose = verbose

    def display_plan(self, plan: NagPlan, user_login: Optional[str] = None) -> None:
        """Show what the run is about to do."""
        issue_filter = plan.issue_filter
        labels = ", ".join(sorted(issue_filter.labels)) or "[dim]any[/dim]"
        exclusions = ", ".join(sorted(plan.exclusions)) or "[dim]none[/dim]"

        body = (
            f"Repository: [bold]{plan.repository.full_name}[/bold]\n"
            f"State: {issue_filter.state.value} • Milestone: {issue_filter.milestone}\n"
            f"Labels: {labels}\n"
            f"Excluded labels: {exclusions}"
        )
        if user_login:
            body += f"\nCommenting as: @{user_login}"

        self.console.print(Panel(body, title="gh-nag", border_style="blue"))

        if self.verbose:
            self.console.print(Panel(plan.comment, title="Comment", border_style="dim"))

    def display_selection(self, issues: Sequence[Issue]) -> None:
        """
        Display the selected issues as a table.

        Args:
            issues: Issues that survived selection
        """
        if not issues:
            self.console.print("[yellow]No issues matching filter criteria[/yellow]")
            return

        table = Table(title=f"Selected issues ({len(issues)})")
        table.add_column("#", justify="right", style="cyan")
        table.add_column("Title")
        table.add_column("Labels", style="magenta")

        for issue in issues:
            table.add_row(str(issue.number), Text(issue.title), Text(", ".join(issue.labels)))

        self.console.print(table)

    def display_report(self, report: NotificationReport) -> None:
        """
        Display the notification summary and the first failures.

        Args:
            report: Report returned by the notifier
        """
        self.console.print("\n[bold]Notification Summary[/bold]")
        self.console.print(f"Attempted: {report.attempted}")
        self.console.print(f"Delivered: [green]{report.delivered}[/green]")
        self.console.print(f"Failed: [red]{report.failed}[/red]")
        if report.attempted:
            self.console.print(f"Success Rate: {report.success_rate:.1f}%")
        if self.verbose:
            self.console.print(f"Duration: {report.duration:.1f}s")
        if report.cancelled:
            self.console.print("[yellow]⚠ Run was cancelled before all issues were notified[/yellow]")

        if report.failures:
            self.console.print("\n[yellow]Errors:[/yellow]")
            for failure in report.failures[:MAX_ERRORS_SHOWN]:
                self.console.print(f"  - {failure.issue.identifier}: {failure.error}", markup=False)
            if len(report.failures) > MAX_ERRORS_SHOWN:
                self.console.print(f"  ... and {len(report.failures) - MAX_ERRORS_SHOWN} more errors")
