"""
CarePilot Placement Lifecycle

Placement state changes and placement-level reporting.

States: PROPOSED -> ACTIVE -> ENDED, plus PROPOSED -> ENDED when a
proposed placement is withdrawn. A child has at most one ACTIVE
placement; activation goes through the store's atomic
activate_if_none_active.

Also provides:
- The placement review schedule (72-hour, 28-day, 3-month, then 6-monthly)
- Overdue placement reviews for ACTIVE placements
- Placement statistics (counts, average duration, breakdown rate, at risk)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Mapping, Optional

from ..exceptions import NotFoundError, StateError, ValidationError
from ..jurisdictions import add_months
from ..models import Placement, PlacementEndReason, PlacementStatus
from ..ports import PlacementStore
from ..stores import InMemoryPlacementStore
from .breakdown_risk import RiskAssessmentHistory

logger = logging.getLogger(__name__)


# (from, to) pairs permitted for a placement
PLACEMENT_TRANSITIONS = frozenset({
    (PlacementStatus.PROPOSED, PlacementStatus.ACTIVE),
    (PlacementStatus.PROPOSED, PlacementStatus.ENDED),
    (PlacementStatus.ACTIVE, PlacementStatus.ENDED),
})


def check_placement_transition(placement: Placement, target: PlacementStatus) -> None:
    """
    Raise StateError unless the placement may move to target.
    """
    if (placement.status, target) not in PLACEMENT_TRANSITIONS:
        raise StateError(
            message=(
                f"Placement {placement.id} cannot move from "
                f"{placement.status.value} to {target.value}"
            ),
            details={
                "placement_id": placement.id,
                "current_status": placement.status.value,
                "requested_status": target.value,
            },
            child_id=placement.child_id,
        )


# =============================================================================
# Review Schedule
# =============================================================================

@dataclass(frozen=True)
class PlacementReviewDue:
    """One scheduled placement review."""
    number: int
    label: str
    due_date: date

    def to_dict(self) -> dict[str, Any]:
        return {
            "number": self.number,
            "label": self.label,
            "due_date": self.due_date.isoformat(),
        }


def placement_review_schedule(start_date: date, count: int = 5) -> list[PlacementReviewDue]:
    """
    First `count` placement reviews from the placement start.

    Review 1 is 72 hours after the start, review 2 at 28 days, review 3
    at 3 months, and every later review 6 months after the one before.
    """
    if count < 1:
        return []

    reviews = [
        PlacementReviewDue(1, "72-hour", start_date + timedelta(days=3)),
        PlacementReviewDue(2, "28-day", start_date + timedelta(days=28)),
        PlacementReviewDue(3, "3-month", add_months(start_date, 3)),
    ]
    months = 3
    while len(reviews) < count:
        months += 6
        reviews.append(PlacementReviewDue(len(reviews) + 1, "6-month", add_months(start_date, months)))
    return reviews[:count]


@dataclass(frozen=True)
class OverdueReview:
    """The next placement review of an ACTIVE placement, past its due date."""
    placement_id: str
    child_id: str
    review: PlacementReviewDue
    days_overdue: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "placement_id": self.placement_id,
            "child_id": self.child_id,
            "review": self.review.to_dict(),
            "days_overdue": self.days_overdue,
        }


def overdue_placement_reviews(
    placements: Iterable[Placement],
    as_of: date,
    reviews_held: Optional[Mapping[str, int]] = None,
) -> list[OverdueReview]:
    """
    ACTIVE placements whose next placement review is past due.

    Args:
        placements: Placements to check (non-ACTIVE ones are skipped)
        as_of: Reference date; a review due on this date is not yet overdue
        reviews_held: Placement ID -> number of placement reviews held

    Returns:
        Overdue reviews, oldest due date first, then placement ID
    """
    held = reviews_held or {}
    overdue = []
    for placement in placements:
        if not placement.is_active:
            continue
        review = placement_review_schedule(placement.start_date, held.get(placement.id, 0) + 1)[-1]
        if review.due_date < as_of:
            overdue.append(OverdueReview(
                placement_id=placement.id,
                child_id=placement.child_id,
                review=review,
                days_overdue=(as_of - review.due_date).days,
            ))
    return sorted(overdue, key=lambda o: (o.review.due_date, o.placement_id))


# =============================================================================
# Statistics
# =============================================================================

@dataclass(frozen=True)
class PlacementStatistics:
    """Aggregate figures over a set of placements."""
    total: int
    proposed: int
    active: int
    ended: int
    breakdowns: int
    breakdown_rate: Decimal
    average_duration_days: Optional[Decimal]
    at_risk: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "proposed": self.proposed,
            "active": self.active,
            "ended": self.ended,
            "breakdowns": self.breakdowns,
            "breakdown_rate": str(self.breakdown_rate),
            "average_duration_days": (
                str(self.average_duration_days)
                if self.average_duration_days is not None else None
            ),
            "at_risk": self.at_risk,
        }


def placement_statistics(
    placements: Iterable[Placement],
    at_risk_placement_ids: Iterable[str] = (),
) -> PlacementStatistics:
    """
    Counts, breakdown rate, average duration and placements at risk.

    Breakdown rate is breakdowns / ended placements, as a percentage to
    2 d.p. Average duration covers ended placements only. at_risk counts
    ACTIVE placements among at_risk_placement_ids.
    """
    items = list(placements)
    at_risk_ids = set(at_risk_placement_ids)
    ended = [p for p in items if p.status == PlacementStatus.ENDED]
    breakdowns = [p for p in ended if p.is_breakdown]

    quantum = Decimal("0.01")
    rate = Decimal("0.00")
    if ended:
        rate = (Decimal(len(breakdowns)) * 100 / len(ended)).quantize(quantum, rounding=ROUND_HALF_UP)

    average = None
    if ended:
        total_days = sum(p.duration_days() for p in ended)
        average = (Decimal(total_days) / len(ended)).quantize(quantum, rounding=ROUND_HALF_UP)

    return PlacementStatistics(
        total=len(items),
        proposed=sum(1 for p in items if p.status == PlacementStatus.PROPOSED),
        active=sum(1 for p in items if p.status == PlacementStatus.ACTIVE),
        ended=len(ended),
        breakdowns=len(breakdowns),
        breakdown_rate=rate,
        average_duration_days=average,
        at_risk=sum(1 for p in items if p.is_active and p.id in at_risk_ids),
    )


# =============================================================================
# Lifecycle Service
# =============================================================================

@dataclass
class PlacementLifecycleService:
    """
    Applies placement state changes through a PlacementStore.

    Usage:
        service = PlacementLifecycleService(store=InMemoryPlacementStore())
        service.propose(placement)
        service.activate(placement.id)
        service.mark_breakdown(placement.id, date(2025, 6, 1))
    """

    store: PlacementStore = field(default_factory=InMemoryPlacementStore)

    # Source of current HIGH/CRITICAL breakdown-risk assessments
    risk_history: Optional[RiskAssessmentHistory] = None

    def get(self, placement_id: str) -> Placement:
        """
        Get a placement by ID.

        Raises:
            NotFoundError: unknown placement
        """
        placement = self.store.get(placement_id)
        if placement is None:
            raise NotFoundError(
                message=f"Placement not found: {placement_id}",
                details={"placement_id": placement_id},
            )
        return placement

    def propose(self, placement: Placement) -> Placement:
        """Record a new PROPOSED placement."""
        if placement.status != PlacementStatus.PROPOSED:
            raise StateError(
                message=f"New placements must be proposed, got {placement.status.value}",
                details={"placement_id": placement.id, "status": placement.status.value},
                child_id=placement.child_id,
            )
        stored = self.store.add(placement)
        logger.info(
            "Placement proposed: %s for child %s",
            placement.id,
            placement.child_id,
            extra={"placement_id": placement.id, "child_id": placement.child_id},
        )
        return stored

    def activate(self, placement_id: str) -> Placement:
        """
        PROPOSED -> ACTIVE.

        Raises:
            StateError: placement is not PROPOSED
            ConflictError: child already has an active placement
        """
        placement = self.get(placement_id)
        check_placement_transition(placement, PlacementStatus.ACTIVE)
        activated = self.store.activate_if_none_active(placement_id, placement.version)
        logger.info(
            "Placement activated: %s",
            placement_id,
            extra={"placement_id": placement_id, "child_id": placement.child_id},
        )
        return activated

    def end(
        self,
        placement_id: str,
        end_date: date,
        reason: PlacementEndReason,
        notes: Optional[str] = None,
    ) -> Placement:
        """
        End a placement.

        A PROPOSED placement can only end as WITHDRAWN; an ACTIVE one
        cannot be withdrawn.

        Raises:
            StateError: placement already ended, or reason not allowed
            ValidationError: end date before start date
        """
        placement = self.get(placement_id)
        check_placement_transition(placement, PlacementStatus.ENDED)

        is_withdrawal = reason == PlacementEndReason.WITHDRAWN
        if (placement.status == PlacementStatus.PROPOSED) != is_withdrawal:
            raise StateError(
                message=(
                    f"Placement {placement_id} in state {placement.status.value} "
                    f"cannot end with reason {reason.value}"
                ),
                details={
                    "placement_id": placement_id,
                    "current_status": placement.status.value,
                    "end_reason": reason.value,
                },
                child_id=placement.child_id,
            )

        if end_date < placement.start_date:
            raise ValidationError(
                message=(
                    f"End date {end_date.isoformat()} is before start date "
                    f"{placement.start_date.isoformat()}"
                ),
                details={
                    "placement_id": placement_id,
                    "start_date": placement.start_date.isoformat(),
                    "end_date": end_date.isoformat(),
                },
                child_id=placement.child_id,
            )

        updated = replace(
            placement,
            status=PlacementStatus.ENDED,
            end_date=end_date,
            end_reason=reason,
            end_notes=notes,
        )
        saved = self.store.save(updated, placement.version)

        log = logger.warning if reason == PlacementEndReason.BREAKDOWN else logger.info
        log(
            "Placement ended: %s (%s)",
            placement_id,
            reason.value,
            extra={"placement_id": placement_id, "child_id": placement.child_id},
        )
        return saved

    def withdraw(self, placement_id: str, on: date, notes: Optional[str] = None) -> Placement:
        """Withdraw a proposed placement."""
        return self.end(placement_id, on, PlacementEndReason.WITHDRAWN, notes)

    def mark_breakdown(self, placement_id: str, end_date: date, notes: Optional[str] = None) -> Placement:
        """End an active placement as a breakdown."""
        return self.end(placement_id, end_date, PlacementEndReason.BREAKDOWN, notes)

    def active_placement(self, child_id: str) -> Optional[Placement]:
        """The child's ACTIVE placement, if any."""
        for placement in self.store.list_for_child(child_id):
            if placement.is_active:
                return placement
        return None

    def review_schedule(self, placement_id: str, count: int = 5) -> list[PlacementReviewDue]:
        """Placement review due dates for a placement."""
        return placement_review_schedule(self.get(placement_id).start_date, count)

    def statistics(self, child_id: Optional[str] = None) -> PlacementStatistics:
        """Statistics for one child's placements, or for all placements."""
        placements = (
            self.store.list_for_child(child_id) if child_id else self.store.list_all()
        )
        at_risk_ids: list[str] = []
        if self.risk_history is not None:
            at_risk_ids = [a.placement_id for a in self.risk_history.high_risk_placements()]
        return placement_statistics(placements, at_risk_ids)

    def overdue_reviews(
        self,
        as_of: date,
        reviews_held: Optional[Mapping[str, int]] = None,
    ) -> list[OverdueReview]:
        """ACTIVE placements whose next placement review is past due."""
        return overdue_placement_reviews(self.store.list_all(), as_of, reviews_held)
