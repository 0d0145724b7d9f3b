"""
CarePilot Deadline Tracker Tests
"""
from __future__ import annotations

from datetime import date

import pytest

from carepilot.engine import DeadlineTracker
from carepilot.models import DeadlineStatus, DeadlineType

from tests.conftest import make_child


@pytest.fixture
def tracker():
    return DeadlineTracker(warning_threshold_days=7, reference_date=date(2025, 3, 1))


class TestDetermineStatus:
    """Status relative to the reference date."""

    def test_overdue(self, tracker) -> None:
        assert tracker.determine_status(date(2025, 2, 28)) == DeadlineStatus.OVERDUE

    def test_due_today(self, tracker) -> None:
        assert tracker.determine_status(date(2025, 3, 1)) == DeadlineStatus.DUE_TODAY

    def test_due_soon_at_threshold(self, tracker) -> None:
        assert tracker.determine_status(date(2025, 3, 8)) == DeadlineStatus.DUE_SOON

    def test_pending(self, tracker) -> None:
        assert tracker.determine_status(date(2025, 3, 9)) == DeadlineStatus.PENDING


class TestTracking:
    """Tracking the deadlines on child records."""

    def test_skips_unset_deadlines(self, tracker) -> None:
        child = make_child(
            next_review_date=date(2025, 3, 5),
            next_health_assessment_date=date(2025, 2, 20),
        )
        tracked = tracker.track(child)

        assert [d.deadline_type for d in tracked] == [
            DeadlineType.STATUTORY_REVIEW,
            DeadlineType.HEALTH_ASSESSMENT,
        ]
        assert tracked[0].status == DeadlineStatus.DUE_SOON
        assert tracked[0].days_remaining == 4
        assert tracked[1].is_overdue
        assert tracked[1].to_dict()["status"] == "overdue"

    def test_children_with_overdue_deadlines(self, tracker) -> None:
        on_time = make_child(id="c-ok", next_review_date=date(2025, 6, 1))
        late = make_child(id="c-late", next_review_date=date(2025, 2, 1))
        later = make_child(id="c-later", next_health_assessment_date=date(2025, 1, 15))

        flagged = tracker.children_with_overdue_deadlines([on_time, late, later])

        assert [child.id for child, _ in flagged] == ["c-later", "c-late"]
        assert flagged[0][1][0].deadline_type == DeadlineType.HEALTH_ASSESSMENT

    def test_compliance_report(self, tracker) -> None:
        children = [
            make_child(id="a", next_review_date=date(2025, 2, 1)),
            make_child(id="b", next_review_date=date(2025, 4, 1)),
        ]
        report = tracker.compliance_report(children)

        assert report["compliant"] is False
        assert report["total_deadlines"] == 2
        assert report["status_counts"]["overdue"] == 1
        assert report["status_counts"]["pending"] == 1
        assert report["overdue_items"][0]["child_id"] == "a"
