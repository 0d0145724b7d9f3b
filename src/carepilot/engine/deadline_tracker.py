"""
CarePilot Deadline Tracker

Reports the status of the statutory deadlines held on child records
relative to a reference date.

Statuses:
- PENDING: due after the warning window
- DUE_SOON: due within the warning window
- DUE_TODAY: due on the reference date
- OVERDUE: past due
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Optional

from ..models import Child, DeadlineStatus, DeadlineType


@dataclass(frozen=True)
class TrackedDeadline:
    """A child's deadline with its current status."""
    child_id: str
    deadline_type: DeadlineType
    due_date: date
    status: DeadlineStatus
    days_remaining: int

    @property
    def is_overdue(self) -> bool:
        return self.status == DeadlineStatus.OVERDUE

    def to_dict(self) -> dict[str, Any]:
        return {
            "child_id": self.child_id,
            "deadline_type": self.deadline_type.value,
            "due_date": self.due_date.isoformat(),
            "status": self.status.value,
            "days_remaining": self.days_remaining,
        }


@dataclass
class DeadlineTracker:
    """
    Status tracking for computed statutory deadlines.

    Usage:
        tracker = DeadlineTracker(warning_threshold_days=7)
        for deadline in tracker.track(child):
            print(deadline.deadline_type, deadline.status)
    """

    # Days before a deadline to flag it as "due soon"
    warning_threshold_days: int = 7

    # Reference date for status calculation (defaults to today)
    reference_date: Optional[date] = None

    def determine_status(self, due_date: date, reference_date: Optional[date] = None) -> DeadlineStatus:
        """Status of a due date relative to the reference date."""
        ref = reference_date or self.reference_date or date.today()
        days_until = (due_date - ref).days

        if days_until < 0:
            return DeadlineStatus.OVERDUE
        elif days_until == 0:
            return DeadlineStatus.DUE_TODAY
        elif days_until <= self.warning_threshold_days:
            return DeadlineStatus.DUE_SOON
        else:
            return DeadlineStatus.PENDING

    def track(self, child: Child) -> list[TrackedDeadline]:
        """Status of each deadline set on a child record."""
        ref = self.reference_date or date.today()
        due_dates = (
            (DeadlineType.STATUTORY_REVIEW, child.next_review_date),
            (DeadlineType.HEALTH_ASSESSMENT, child.next_health_assessment_date),
            (DeadlineType.EDUCATION_PLAN, child.next_education_plan_date),
        )

        tracked: list[TrackedDeadline] = []
        for deadline_type, due in due_dates:
            if due is None:
                continue
            tracked.append(TrackedDeadline(
                child_id=child.id,
                deadline_type=deadline_type,
                due_date=due,
                status=self.determine_status(due, ref),
                days_remaining=(due - ref).days,
            ))
        return tracked

    def overdue(self, child: Child) -> list[TrackedDeadline]:
        """Overdue deadlines of one child."""
        return [d for d in self.track(child) if d.is_overdue]

    def children_with_overdue_deadlines(
        self,
        children: Iterable[Child],
    ) -> list[tuple[Child, list[TrackedDeadline]]]:
        """
        Children with at least one overdue deadline.

        Returns (child, overdue deadlines) pairs ordered by the earliest
        overdue due date, then child ID.
        """
        flagged = []
        for child in children:
            overdue = self.overdue(child)
            if overdue:
                flagged.append((child, overdue))

        flagged.sort(key=lambda item: (min(d.due_date for d in item[1]), item[0].id))
        return flagged

    def compliance_report(self, children: Iterable[Child]) -> dict[str, Any]:
        """Aggregate deadline status counts across children."""
        counts = {status.value: 0 for status in DeadlineStatus}
        overdue_items = []
        total = 0

        for child in children:
            for deadline in self.track(child):
                total += 1
                counts[deadline.status.value] += 1
                if deadline.is_overdue:
                    overdue_items.append(deadline.to_dict())

        return {
            "compliant": counts[DeadlineStatus.OVERDUE.value] == 0,
            "total_deadlines": total,
            "status_counts": counts,
            "overdue_items": overdue_items,
        }
