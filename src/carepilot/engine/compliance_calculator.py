"""
CarePilot Compliance Calculator

Validates (jurisdiction, legal status) pairs and computes statutory due
dates from the jurisdiction rule table.

Key features:
- O(1) legal-status validation per jurisdiction
- Statutory review, health assessment and education plan due dates
- Review sequence handling (last offset repeats)
- Jurisdiction-specific care plan terminology

The calculator holds no state beyond the rule table it reads; every
operation is pure and deterministic.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Mapping, Union

from ..exceptions import ValidationError
from ..jurisdictions import JURISDICTION_RULES, JurisdictionRules
from ..models import (
    DeadlineSet,
    DeadlineType,
    Jurisdiction,
    LegalStatus,
    StatutoryDeadline,
)


JurisdictionLike = Union[Jurisdiction, str]
LegalStatusLike = Union[LegalStatus, str]
DateLike = Union[date, str]


# =============================================================================
# Input Coercion
# =============================================================================

def coerce_jurisdiction(value: JurisdictionLike) -> Jurisdiction:
    """Coerce a jurisdiction name, raising ValidationError if unknown."""
    if isinstance(value, Jurisdiction):
        return value
    try:
        return Jurisdiction(value)
    except ValueError:
        raise ValidationError(
            message=f"Unknown jurisdiction: {value!r}",
            details={
                "jurisdiction": value,
                "valid_jurisdictions": [j.value for j in Jurisdiction],
            },
        ) from None


def coerce_legal_status(value: LegalStatusLike) -> LegalStatus:
    """Coerce a legal status name, raising ValidationError if unknown."""
    if isinstance(value, LegalStatus):
        return value
    try:
        return LegalStatus(value)
    except ValueError:
        pass
    # Member aliases (e.g. "CSO")
    try:
        return LegalStatus[value]
    except (KeyError, TypeError):
        raise ValidationError(
            message=f"Unknown legal status: {value!r}",
            details={"legal_status": value},
        ) from None


def coerce_date(value: DateLike, field_name: str = "from_date") -> date:
    """
    Coerce a date input.

    Accepts date, datetime (the date part is used) or an ISO-8601 string.
    Anything else is malformed input.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError:
            pass
    raise ValidationError(
        message=f"Malformed date for {field_name}: {value!r}",
        details={field_name: repr(value)},
    )


def coerce_timestamp(value: Union[datetime, str], field_name: str) -> datetime:
    """
    Coerce a timestamp input to an aware UTC datetime.

    Accepts an aware datetime or an ISO-8601 string with an offset.
    Naive timestamps are rejected rather than guessed.
    """
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            pass
    if not isinstance(value, datetime):
        raise ValidationError(
            message=f"Malformed timestamp for {field_name}: {value!r}",
            details={field_name: repr(value)},
        )
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValidationError(
            message=f"Timestamp for {field_name} must include a timezone: {value.isoformat()}",
            details={field_name: value.isoformat()},
        )
    return value.astimezone(timezone.utc)


# =============================================================================
# Compliance Calculator
# =============================================================================

@dataclass
class ComplianceCalculator:
    """
    Statutory compliance rules for the eight British Isles jurisdictions.

    Usage:
        calculator = ComplianceCalculator()

        calculator.validate(Jurisdiction.SCOTLAND, LegalStatus.CSO)

        due = calculator.next_statutory_review_date(
            Jurisdiction.SCOTLAND, date(2025, 1, 1), 1
        )
        # date(2025, 1, 29)
    """

    rules: Mapping[Jurisdiction, JurisdictionRules] = field(
        default_factory=lambda: JURISDICTION_RULES
    )

    def rules_for(self, jurisdiction: JurisdictionLike) -> JurisdictionRules:
        """Get the rule entry for a jurisdiction."""
        return self.rules[coerce_jurisdiction(jurisdiction)]

    # -------------------------------------------------------------------------
    # Legal status validation
    # -------------------------------------------------------------------------

    def is_legal_status_valid(
        self,
        jurisdiction: JurisdictionLike,
        legal_status: LegalStatusLike,
    ) -> bool:
        """Check whether a legal status is valid in a jurisdiction."""
        rules = self.rules_for(jurisdiction)
        return rules.allows(coerce_legal_status(legal_status))

    def validate(
        self,
        jurisdiction: JurisdictionLike,
        legal_status: LegalStatusLike,
    ) -> None:
        """
        Validate a (jurisdiction, legal status) pair.

        Raises:
            ValidationError: "<STATUS> not valid for <JURISDICTION>"
        """
        jurisdiction = coerce_jurisdiction(jurisdiction)
        legal_status = coerce_legal_status(legal_status)
        rules = self.rules[jurisdiction]

        if not rules.allows(legal_status):
            raise ValidationError(
                message=f"{legal_status.value} not valid for {jurisdiction.value}",
                details={
                    "jurisdiction": jurisdiction.value,
                    "legal_status": legal_status.value,
                    "valid_statuses": sorted(s.value for s in rules.allowed_statuses),
                },
            )

    # -------------------------------------------------------------------------
    # Terminology
    # -------------------------------------------------------------------------

    def care_plan_terminology(self, jurisdiction: JurisdictionLike) -> str:
        """Local name of the care plan (e.g. "Child's Plan" in Scotland)."""
        return self.rules_for(jurisdiction).care_plan_label

    # -------------------------------------------------------------------------
    # Due dates
    # -------------------------------------------------------------------------

    def next_statutory_review_date(
        self,
        jurisdiction: JurisdictionLike,
        from_date: DateLike,
        review_sequence_number: int = 1,
    ) -> date:
        """
        Due date of a statutory review.

        Args:
            jurisdiction: Governing jurisdiction
            from_date: Admission date (review 1) or previous review date
            review_sequence_number: 1-based review number; numbers beyond
                the schedule reuse its last offset

        Raises:
            ValidationError: sequence number below 1 or malformed date
        """
        rules = self.rules_for(jurisdiction)
        start = coerce_date(from_date)

        if isinstance(review_sequence_number, bool) or not isinstance(review_sequence_number, int):
            raise ValidationError(
                message=f"Review sequence number must be an integer: {review_sequence_number!r}",
                details={"review_sequence_number": repr(review_sequence_number)},
            )
        if review_sequence_number < 1:
            raise ValidationError(
                message=f"Review sequence number must be >= 1, got {review_sequence_number}",
                details={"review_sequence_number": review_sequence_number},
            )

        return rules.review_offset(review_sequence_number).apply(start)

    def health_assessment_due_date(
        self,
        jurisdiction: JurisdictionLike,
        from_date: DateLike,
    ) -> date:
        """Due date of the initial health assessment."""
        rules = self.rules_for(jurisdiction)
        return rules.health_assessment_offset.apply(coerce_date(from_date))

    def education_plan_due_date(
        self,
        jurisdiction: JurisdictionLike,
        from_date: DateLike,
    ) -> date:
        """Due date of the education plan review."""
        rules = self.rules_for(jurisdiction)
        return rules.education_plan_offset.apply(coerce_date(from_date))

    def compute_deadlines(
        self,
        jurisdiction: JurisdictionLike,
        from_date: DateLike,
        review_sequence_number: int = 1,
        include_education_plan: bool = True,
    ) -> DeadlineSet:
        """
        Compute all statutory deadlines from one anchor date.

        Args:
            jurisdiction: Governing jurisdiction
            from_date: Anchor date
            review_sequence_number: Number of the review being scheduled
            include_education_plan: Compute the education plan deadline

        Returns:
            DeadlineSet with review, health assessment and (optionally)
            education plan deadlines
        """
        jurisdiction = coerce_jurisdiction(jurisdiction)
        start = coerce_date(from_date)

        review = StatutoryDeadline(
            deadline_type=DeadlineType.STATUTORY_REVIEW,
            jurisdiction=jurisdiction,
            from_date=start,
            due_date=self.next_statutory_review_date(
                jurisdiction, start, review_sequence_number
            ),
            sequence_number=review_sequence_number,
        )
        health = StatutoryDeadline(
            deadline_type=DeadlineType.HEALTH_ASSESSMENT,
            jurisdiction=jurisdiction,
            from_date=start,
            due_date=self.health_assessment_due_date(jurisdiction, start),
        )
        education = None
        if include_education_plan:
            education = StatutoryDeadline(
                deadline_type=DeadlineType.EDUCATION_PLAN,
                jurisdiction=jurisdiction,
                from_date=start,
                due_date=self.education_plan_due_date(jurisdiction, start),
            )

        return DeadlineSet(
            review=review,
            health_assessment=health,
            education_plan=education,
        )


# =============================================================================
# Convenience Functions
# =============================================================================

_default_calculator = ComplianceCalculator()


def is_legal_status_valid(
    jurisdiction: JurisdictionLike,
    legal_status: LegalStatusLike,
) -> bool:
    """Check whether a legal status is valid in a jurisdiction."""
    return _default_calculator.is_legal_status_valid(jurisdiction, legal_status)


def validate_legal_status(
    jurisdiction: JurisdictionLike,
    legal_status: LegalStatusLike,
) -> None:
    """Validate a (jurisdiction, legal status) pair."""
    _default_calculator.validate(jurisdiction, legal_status)


def care_plan_terminology(jurisdiction: JurisdictionLike) -> str:
    """Local name of the care plan."""
    return _default_calculator.care_plan_terminology(jurisdiction)


def next_statutory_review_date(
    jurisdiction: JurisdictionLike,
    from_date: DateLike,
    review_sequence_number: int = 1,
) -> date:
    """Due date of a statutory review."""
    return _default_calculator.next_statutory_review_date(
        jurisdiction, from_date, review_sequence_number
    )


def health_assessment_due_date(jurisdiction: JurisdictionLike, from_date: DateLike) -> date:
    """Due date of the initial health assessment."""
    return _default_calculator.health_assessment_due_date(jurisdiction, from_date)


def education_plan_due_date(jurisdiction: JurisdictionLike, from_date: DateLike) -> date:
    """Due date of the education plan review."""
    return _default_calculator.education_plan_due_date(jurisdiction, from_date)
