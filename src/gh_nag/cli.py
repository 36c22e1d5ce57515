#!/usr/bin/env python3
"""Command-line interface for gh-nag."""

import os
import signal
import sys
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional

import click
from rich.console import Console
from rich.progress import Progress

from . import __version__
from .core.errors import TrackerQueryError
from .core.github import GitHubClient
from .core.models import IssueFilter, NagPlan, RepositoryRef
from .core.notifier import Notifier
from .core.runner import NagRunner, NagRunResult
from .core.selector import IssueSelector
from .ui.display import DisplayManager
from .utils.config import ConfigManager
from .utils.export import EXPORT_FORMATS, ExportManager
from .utils.rich_logger import get_logger

console = Console()
logger = get_logger(__name__)

TOKEN_ENV_VARS = ("GH_TOKEN", "GITHUB_TOKEN")
EXIT_CANCELLED = 130


@dataclass
class CLIConfig:
    """Configuration for CLI command."""
    repository: Optional[str] = None
    token: Optional[str] = None
    debug: bool = False
    verbose: bool = False
    state: Optional[str] = None
    milestone: Optional[str] = None
    label: tuple[str, ...] = ()
    exclude_label: tuple[str, ...] = ()
    comment: Optional[str] = None
    comment_file: Optional[str] = None
    config: Optional[str] = None
    rate_limit: Optional[float] = None
    max_concurrent: Optional[int] = None
    dry_run: bool = False
    export: Optional[str] = None
    save_config: bool = False


@click.command()
@click.argument("repository", required=False, metavar="OWNER/REPO")
@click.option(
    "--token", help="GitHub token (can also use GH_TOKEN or GITHUB_TOKEN env vars)", metavar="TOKEN"
)
@click.option("-d", "--debug", is_flag=True, help="Enable debug logging")
@click.option("-v", "--verbose", is_flag=True, help="Show the comment body and run timings")
@click.option(
    "--state", type=click.Choice(["open", "closed", "all"]), help="Issue state to select (default: open)"
)
@click.option(
    "--milestone", help="Milestone number, 'none' for no milestone, or '*' for any (default: none)"
)
@click.option("-l", "--label", multiple=True, help="Required label (repeatable)")
@click.option(
    "-x", "--exclude-label", multiple=True, help="Skip issues carrying this label (repeatable, default: tracked/no)"
)
@click.option("-m", "--comment", help="Comment body to post")
@click.option(
    "--comment-file", type=click.Path(exists=True, dir_okay=False), help="Read the comment body from a file"
)
@click.option("--config", type=click.Path(exists=True), help="Path to config file")
@click.option(
    "--rate-limit",
    type=click.FloatRange(0.0, 60.0),
    help="Seconds between comment posts (default: 1.0)"
)
@click.option(
    "--max-concurrent",
    type=click.IntRange(1, 10),
    help="Comment posts in flight at once (default: 1, sequential)"
)
@click.option("--dry-run", is_flag=True, help="Show matching issues without commenting")
@click.option("--export", type=click.Choice(EXPORT_FORMATS), help="Export the notification report")
@click.option("--save-config", is_flag=True, help="Save the effective settings to the config file")
@click.version_option(__version__, prog_name="gh-nag")
def main(**kwargs) -> None:
    """
    Post a reminder comment to every issue matching a filter.

    Selects issues in OWNER/REPO by state, milestone and labels, skips any
    issue carrying an excluded label, and comments on the rest.

    Examples:
        gh-nag kubernetes/enhancements --dry-run
        gh-nag kubernetes/enhancements --comment-file nag.md
        gh-nag acme/widgets --milestone none -x tracked/no -x wontfix -m "Any update?"
    """
    cfg = CLIConfig(**kwargs)

    config_manager = ConfigManager(config_path=cfg.config)
    config_manager.merge(_cli_overrides(cfg))
    config_manager.setup_logging(debug=cfg.debug)

    token = _resolve_token(cfg.token, config_manager)
    if not token:
        console.print("[red]✗ GitHub token cannot be empty[/red]")
        console.print(f"[dim]Use --token or set {' / '.join(TOKEN_ENV_VARS)}[/dim]")
        sys.exit(1)

    try:
        plan = _build_plan(config_manager)
    except (ValueError, OSError) as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if cfg.save_config:
        saved = config_manager.save()
        if saved:
            console.print(f"[green]✓ Settings saved to {saved}[/green]")
        else:
            console.print("[yellow]⚠ Could not save settings[/yellow]")

    client = GitHubClient(
        token,
        per_page=int(config_manager.get("github.per_page", 100)),
        timeout=int(config_manager.get("github.timeout", 30)),
    )
    notifier = Notifier(
        client,
        rate_limit=float(config_manager.get("notify.rate_limit", 1.0)),
        max_concurrent=int(config_manager.get("notify.max_concurrent", 1)),
    )
    runner = NagRunner(IssueSelector(client), notifier)
    display_manager = DisplayManager(console, verbose=cfg.verbose)

    display_manager.display_plan(plan, client.get_current_user_login() if cfg.verbose else None)

    cancel_event = threading.Event()
    restore_signals = _install_signal_handlers(cancel_event)
    try:
        with Progress(console=console, transient=True) as progress:
            result = runner.run(plan, cancel_event=cancel_event, dry_run=cfg.dry_run, progress=progress)
    except TrackerQueryError as e:
        logger.error("Issue selection failed", error=str(e))
        console.print(f"[red]✗ {e}[/red]")
        console.print("[dim]No comments were posted.[/dim]")
        sys.exit(1)
    finally:
        restore_signals()

    _handle_result(result, display_manager, cfg.export)


def _cli_overrides(cfg: CLIConfig) -> dict[str, Any]:
    """Collect the flags the user actually passed, in config-file shape."""
    nag: dict[str, Any] = {}
    if cfg.repository:
        nag["repository"] = cfg.repository
    if cfg.state:
        nag["state"] = cfg.state
    if cfg.milestone:
        nag["milestone"] = cfg.milestone
    if cfg.label:
        nag["labels"] = list(cfg.label)
    if cfg.exclude_label:
        nag["exclude_labels"] = list(cfg.exclude_label)
    if cfg.comment:
        nag["comment"] = cfg.comment
        nag["comment_file"] = None
    if cfg.comment_file:
        nag["comment_file"] = cfg.comment_file

    notify: dict[str, Any] = {}
    if cfg.rate_limit is not None:
        notify["rate_limit"] = cfg.rate_limit
    if cfg.max_concurrent is not None:
        notify["max_concurrent"] = cfg.max_concurrent

    return {"nag": nag, "notify": notify}


def _resolve_token(token: Optional[str], config_manager: ConfigManager) -> Optional[str]:
    """Token precedence: --token, GH_TOKEN, GITHUB_TOKEN, then the config file."""
    if token:
        return token
    for env_var in TOKEN_ENV_VARS:
        if env_token := os.environ.get(env_var):
            logger.debug("Using token from environment", source=env_var)
            return env_token
    return config_manager.get("github.token")


def _build_plan(config_manager: ConfigManager) -> NagPlan:
    """
    Freeze the merged configuration into a NagPlan.

    Raises:
        ValueError: If the repository, filter or comment is invalid
        OSError: If the comment file cannot be read
    """
    repository = config_manager.get("nag.repository")
    if not repository:
        raise ValueError("No repository given. Pass OWNER/REPO or set nag.repository in the config file")

    issue_filter = IssueFilter(
        state=config_manager.get("nag.state", "open"),
        milestone=str(config_manager.get("nag.milestone", "none")),
        labels=config_manager.get("nag.labels") or [],
    )
    return NagPlan(
        repository=RepositoryRef.parse(repository),
        comment=config_manager.read_comment(),
        issue_filter=issue_filter,
        exclusions=config_manager.get("nag.exclude_labels") or [],
    )


def _install_signal_handlers(cancel_event: threading.Event) -> Callable[[], None]:
    """
    Turn SIGINT/SIGTERM into a cancellation request.

    The in-flight request finishes; no further page fetch or comment post
    starts. A second signal falls back to the previous handler.

    Returns:
        Function restoring the previous handlers
    """
    previous = {}

    def handler(signum, frame):
        logger.info(f"Received {signal.Signals(signum).name}, exiting.")
        cancel_event.set()
        for sig, prev in previous.items():
            signal.signal(sig, prev)

    for sig in (signal.SIGINT, signal.SIGTERM):
        previous[sig] = signal.getsignal(sig)
        signal.signal(sig, handler)

    def restore() -> None:
        for sig, prev in previous.items():
            signal.signal(sig, prev)

    return restore


def _handle_result(result: NagRunResult, display_manager: DisplayManager, export: Optional[str]) -> None:
    """Render the run outcome and pick the exit code."""
    # A run cancelled during selection has no selection to show
    if result.selected or not result.cancelled:
        display_manager.display_selection(result.selected)

    if result.dry_run and not result.cancelled:
        console.print(f"[blue]Dry run: {len(result.selected)} issues would be notified[/blue]")
        return

    display_manager.display_report(result.report)

    if export and not result.dry_run:
        export_manager = ExportManager()
        output_file = export_manager.export_report(result.report, result.plan.repository, format=export)
        console.print(f"\n[green]✓ Report exported to {output_file}[/green]")

    if result.cancelled:
        sys.exit(EXIT_CANCELLED)


if __name__ == "__main__":
    main()
