"""
CarePilot Child Models

Models for a looked-after child's compliance record and the statutory
deadlines computed for it.

Key components:
- Child: the compliance-relevant slice of a child record
- StatutoryDeadline: one computed due date
- DeadlineSet: the three deadline types computed together

A Child is only changed by intake, legal-status change and jurisdiction
transfer. Those operations return a new Child and never mutate the input.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from .enums import DeadlineType, Jurisdiction, LegalStatus


# =============================================================================
# Statutory Deadlines
# =============================================================================

@dataclass(frozen=True)
class StatutoryDeadline:
    """
    A computed statutory due date.

    Attributes:
        deadline_type: Which statutory obligation this is
        jurisdiction: Jurisdiction whose timescales were applied
        from_date: Anchor date the offset was applied to
        due_date: Computed due date
        sequence_number: Review number (statutory reviews only)
    """
    deadline_type: DeadlineType
    jurisdiction: Jurisdiction
    from_date: date
    due_date: date
    sequence_number: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        result: dict[str, Any] = {
            "deadline_type": self.deadline_type.value,
            "jurisdiction": self.jurisdiction.value,
            "from_date": self.from_date.isoformat(),
            "due_date": self.due_date.isoformat(),
        }
        if self.sequence_number is not None:
            result["sequence_number"] = self.sequence_number
        return result


@dataclass(frozen=True)
class DeadlineSet:
    """All statutory deadlines for a child computed from one anchor date."""
    review: StatutoryDeadline
    health_assessment: StatutoryDeadline
    education_plan: Optional[StatutoryDeadline] = None

    @property
    def deadlines(self) -> list[StatutoryDeadline]:
        """Deadlines present in this set, in a fixed order."""
        items = [self.review, self.health_assessment]
        if self.education_plan is not None:
            items.append(self.education_plan)
        return items

    def to_dict(self) -> dict[str, Any]:
        return {
            "review": self.review.to_dict(),
            "health_assessment": self.health_assessment.to_dict(),
            "education_plan": self.education_plan.to_dict() if self.education_plan else None,
        }


# =============================================================================
# Child
# =============================================================================

@dataclass
class Child:
    """
    Compliance record for a looked-after child.

    Invariant: legal_status is in the allow-list of jurisdiction. The
    engine rejects violating combinations; it never coerces them.

    Attributes:
        id: Child identifier
        jurisdiction: Governing jurisdiction
        legal_status: Statutory basis of care
        admission_date: Date the child came into care
        legal_status_start_date: When the current legal status took effect
        date_of_birth: Optional, used for intake age checks
        current_school: School attended (education plan applies if set)
        missing_episodes_count: Running count of missing episodes
        review_sequence: Number of the next statutory review
        next_review_date: Computed statutory review due date
        next_health_assessment_date: Computed health assessment due date
        next_education_plan_date: Computed education plan review due date
    """
    id: str
    jurisdiction: Jurisdiction
    legal_status: LegalStatus
    admission_date: date

    legal_status_start_date: Optional[date] = None
    date_of_birth: Optional[date] = None
    current_school: Optional[str] = None
    missing_episodes_count: int = 0

    # Computed deadlines
    review_sequence: int = 1
    next_review_date: Optional[date] = None
    next_health_assessment_date: Optional[date] = None
    next_education_plan_date: Optional[date] = None

    # Metadata
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def in_education(self) -> bool:
        """Check if child has a current school recorded."""
        return bool(self.current_school)

    def age_on(self, on: date) -> Optional[int]:
        """Age in whole years on a date (None without a date of birth)."""
        if self.date_of_birth is None:
            return None
        years = on.year - self.date_of_birth.year
        if (on.month, on.day) < (self.date_of_birth.month, self.date_of_birth.day):
            years -= 1
        return years

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        def _iso(d: Optional[date]) -> Optional[str]:
            return d.isoformat() if d else None

        return {
            "id": self.id,
            "jurisdiction": self.jurisdiction.value,
            "legal_status": self.legal_status.value,
            "admission_date": self.admission_date.isoformat(),
            "legal_status_start_date": _iso(self.legal_status_start_date),
            "current_school": self.current_school,
            "missing_episodes_count": self.missing_episodes_count,
            "review_sequence": self.review_sequence,
            "next_review_date": _iso(self.next_review_date),
            "next_health_assessment_date": _iso(self.next_health_assessment_date),
            "next_education_plan_date": _iso(self.next_education_plan_date),
        }
