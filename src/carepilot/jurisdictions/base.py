"""
CarePilot Jurisdiction Rule Base

Types for the per-jurisdiction rule table.

A jurisdiction's rules are data: allowed legal statuses, statutory
timescale offsets and terminology. Nothing outside the table branches on
jurisdiction.
"""
from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date, timedelta
from types import MappingProxyType
from typing import Mapping, Optional

from ..models.enums import Jurisdiction, LegalStatus, OffsetUnit


def add_months(start: date, months: int) -> date:
    """
    Add calendar months to a date.

    The day is clamped to the last day of the target month
    (31 January + 1 month = 28/29 February).
    """
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(start.day, last_day))


@dataclass(frozen=True)
class StatutoryOffset:
    """
    A statutory timescale, e.g. 20 days or 3 months.

    Attributes:
        amount: Number of units
        unit: Days or calendar months
    """
    amount: int
    unit: OffsetUnit = OffsetUnit.DAYS

    def apply(self, from_date: date) -> date:
        """Return from_date moved forward by this offset."""
        if self.unit == OffsetUnit.MONTHS:
            return add_months(from_date, self.amount)
        return from_date + timedelta(days=self.amount)

    @property
    def display(self) -> str:
        """Get human-readable description."""
        return f"{self.amount} {self.unit.value}"

    @classmethod
    def days(cls, amount: int) -> StatutoryOffset:
        return cls(amount=amount, unit=OffsetUnit.DAYS)

    @classmethod
    def months(cls, amount: int) -> StatutoryOffset:
        return cls(amount=amount, unit=OffsetUnit.MONTHS)


@dataclass(frozen=True)
class JurisdictionRules:
    """
    All rules for one jurisdiction.

    review_offsets holds the offset for review 1, 2, ...; the last entry
    repeats for every later review.

    Attributes:
        jurisdiction: Jurisdiction these rules govern
        display_name: Human-readable name
        allowed_statuses: Legal statuses valid in this jurisdiction
        review_offsets: Statutory review schedule
        health_assessment_offset: Initial health assessment timescale
        education_plan_offset: Education plan review timescale
        education_plan_statutory: Whether an education plan is a legal duty
        care_plan_label: Local name of the care plan
        education_plan_label: Local name of the education plan
        regulatory_body: Inspectorate / regulator
        primary_act: Principal legislation
        leaving_care_age: Age at which leaving-care support starts
        max_support_age: Maximum age for leaving-care support
        status_transitions: Allowed legal-status changes (None = unrestricted)
    """
    jurisdiction: Jurisdiction
    display_name: str
    allowed_statuses: frozenset[LegalStatus]
    review_offsets: tuple[StatutoryOffset, ...]
    health_assessment_offset: StatutoryOffset
    education_plan_offset: StatutoryOffset
    care_plan_label: str
    education_plan_label: str = "Personal Education Plan"
    education_plan_statutory: bool = True
    regulatory_body: str = ""
    primary_act: str = ""
    leaving_care_age: int = 16
    max_support_age: int = 25
    status_transitions: Optional[Mapping[LegalStatus, frozenset[LegalStatus]]] = field(
        default=None, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        if not self.review_offsets:
            raise ValueError(f"{self.jurisdiction.value}: review_offsets must not be empty")
        if not self.allowed_statuses:
            raise ValueError(f"{self.jurisdiction.value}: allowed_statuses must not be empty")

    def allows(self, legal_status: LegalStatus) -> bool:
        """Check if a legal status is valid in this jurisdiction."""
        return legal_status in self.allowed_statuses

    def review_offset(self, sequence_number: int) -> StatutoryOffset:
        """Offset for the given 1-based review number."""
        index = min(sequence_number, len(self.review_offsets)) - 1
        return self.review_offsets[index]

    def allows_transition(self, current: LegalStatus, new: LegalStatus) -> bool:
        """Check a legal-status change against the transition map, if any."""
        if self.status_transitions is None:
            return True
        return new in self.status_transitions.get(current, frozenset())

    def to_dict(self) -> dict:
        """Serialize the rule entry for display."""
        return {
            "jurisdiction": self.jurisdiction.value,
            "display_name": self.display_name,
            "allowed_statuses": sorted(s.value for s in self.allowed_statuses),
            "review_offsets": [o.display for o in self.review_offsets],
            "health_assessment_offset": self.health_assessment_offset.display,
            "education_plan_offset": self.education_plan_offset.display,
            "education_plan_statutory": self.education_plan_statutory,
            "care_plan_label": self.care_plan_label,
            "education_plan_label": self.education_plan_label,
            "regulatory_body": self.regulatory_body,
            "primary_act": self.primary_act,
            "leaving_care_age": self.leaving_care_age,
            "max_support_age": self.max_support_age,
        }


def freeze_transitions(
    transitions: Mapping[LegalStatus, set[LegalStatus]],
) -> Mapping[LegalStatus, frozenset[LegalStatus]]:
    """Build a read-only transition map."""
    return MappingProxyType({k: frozenset(v) for k, v in transitions.items()})
