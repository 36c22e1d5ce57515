"""Unit tests for core.runner."""

import threading
from unittest.mock import Mock

import pytest

from gh_nag.core.errors import NotificationError, TrackerQueryError
from gh_nag.core.notifier import Notifier
from gh_nag.core.runner import NagRunner, NagRunResult
from gh_nag.core.selector import IssueSelector


def build_runner(client):
    return NagRunner(IssueSelector(client), Notifier(client))


class TestNagRunner:
    """Test selection followed by notification."""

    def test_comments_on_selected_issues_only(self, tracker_stub, sample_issues, sample_plan):
        stub = tracker_stub([sample_issues])

        result = build_runner(stub).run(sample_plan)

        assert isinstance(result, NagRunResult)
        assert [issue.number for issue in result.selected] == [2, 3]
        assert [(c[2], c[3]) for c in stub.comments] == [
            (2, sample_plan.comment),
            (3, sample_plan.comment),
        ]
        assert result.report.attempted == 2
        assert result.report.delivered == 2
        assert result.report.failures == []
        assert result.cancelled is False

    def test_comment_failure_is_recorded(self, tracker_stub, sample_issues, sample_plan):
        stub = tracker_stub(
            [sample_issues],
            comment_failures={2: NotificationError("acme/widgets#2", RuntimeError("403 Forbidden"))},
        )

        result = build_runner(stub).run(sample_plan)

        assert result.report.attempted == 2
        assert result.report.delivered == 1
        assert [r.issue.number for r in result.report.failures] == [2]

    def test_query_error_posts_nothing(self, tracker_stub, issue_factory, sample_plan):
        stub = tracker_stub([[issue_factory(2)], [issue_factory(3)]], fail_on_page=1)

        with pytest.raises(TrackerQueryError):
            build_runner(stub).run(sample_plan)

        assert stub.comments == []

    def test_dry_run_selects_without_posting(self, tracker_stub, sample_issues, sample_plan):
        stub = tracker_stub([sample_issues])

        result = build_runner(stub).run(sample_plan, dry_run=True)

        assert result.dry_run is True
        assert [issue.number for issue in result.selected] == [2, 3]
        assert result.report.attempted == 0
        assert stub.comments == []

    def test_cancelled_during_selection(self, tracker_stub, sample_issues, sample_plan):
        stub = tracker_stub([sample_issues])
        cancel_event = threading.Event()
        cancel_event.set()

        result = build_runner(stub).run(sample_plan, cancel_event=cancel_event)

        assert result.cancelled is True
        assert result.selected == []
        assert stub.page_requests == []
        assert stub.comments == []

    def test_passes_plan_to_collaborators(self, sample_plan):
        selector = Mock(spec=IssueSelector)
        selector.select.return_value = ["selected"]
        notifier = Mock(spec=Notifier)
        cancel_event = threading.Event()
        progress = Mock()

        result = NagRunner(selector, notifier).run(sample_plan, cancel_event=cancel_event, progress=progress)

        selector.select.assert_called_once_with(
            sample_plan.repository, sample_plan.issue_filter, sample_plan.exclusions, cancel_event
        )
        notifier.notify.assert_called_once_with(sample_plan.comment, ["selected"], cancel_event, progress)
        assert result.report is notifier.notify.return_value
