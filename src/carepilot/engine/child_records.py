"""
CarePilot Child Record Operations

The only operations that change a child's compliance record:
- intake: admit a child and compute the first deadlines
- change_legal_status: move to a new legal status
- transfer_jurisdiction: cross-border transfer
- record_review: record a held statutory review
- record_missing_episode: count a reported missing episode

Every operation validates first and returns a new Child. A rejected
operation leaves the input record untouched.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Optional

from ..exceptions import StateError, ValidationError
from ..models import Child, DeadlineSet, Jurisdiction, MissingEpisode
from ..notifications import CrossBorderTransferAdvisory, NullNotifier
from ..ports import NotificationSink
from .compliance_calculator import (
    ComplianceCalculator,
    DateLike,
    JurisdictionLike,
    LegalStatusLike,
    coerce_date,
    coerce_jurisdiction,
    coerce_legal_status,
)

logger = logging.getLogger(__name__)

# Oldest age at which a young person can be taken into care records
MAX_INTAKE_AGE = 25


@dataclass
class ChildRecordService:
    """
    Applies validated changes to child compliance records.

    Usage:
        service = ChildRecordService(notifier=LoggingNotifier())

        child = service.intake(Child(
            id="c-1",
            jurisdiction=Jurisdiction.ENGLAND,
            legal_status=LegalStatus.SECTION_20,
            admission_date=date(2025, 1, 1),
        ))
        child.next_review_date  # date(2025, 1, 21)
    """

    calculator: ComplianceCalculator = field(default_factory=ComplianceCalculator)
    notifier: NotificationSink = field(default_factory=NullNotifier)

    # Reference date for "future" checks (defaults to today)
    reference_date: Optional[date] = None

    # -------------------------------------------------------------------------
    # Intake
    # -------------------------------------------------------------------------

    def intake(self, child: Child) -> Child:
        """
        Validate a new child record and compute its first deadlines.

        Raises:
            ValidationError: invalid legal status for the jurisdiction,
                admission date in the future, or child older than 25
        """
        child = _normalized(child)
        self.calculator.validate(child.jurisdiction, child.legal_status)
        admission = coerce_date(child.admission_date, "admission_date")
        today = self.reference_date or date.today()

        if admission > today:
            raise ValidationError(
                message=f"Admission date cannot be in the future: {admission.isoformat()}",
                details={"admission_date": admission.isoformat(), "today": today.isoformat()},
                child_id=child.id,
            )

        age = child.age_on(today)
        if age is not None and age > MAX_INTAKE_AGE:
            raise ValidationError(
                message=f"Child aged {age} exceeds maximum age {MAX_INTAKE_AGE}",
                details={"age": age, "max_age": MAX_INTAKE_AGE},
                child_id=child.id,
            )

        deadlines = self._deadlines(child, child.jurisdiction, admission, 1)
        updated = replace(
            child,
            admission_date=admission,
            legal_status_start_date=child.legal_status_start_date or admission,
            **_deadline_fields(deadlines, 1),
        )

        logger.info(
            "Child admitted: %s (%s, %s)",
            child.id,
            child.jurisdiction.value,
            child.legal_status.value,
            extra={"child_id": child.id},
        )
        return updated

    # -------------------------------------------------------------------------
    # Legal status change
    # -------------------------------------------------------------------------

    def change_legal_status(
        self,
        child: Child,
        new_status: LegalStatusLike,
        effective_date: Optional[DateLike] = None,
        recompute_review: bool = False,
    ) -> Child:
        """
        Move a child to a new legal status.

        Args:
            child: Current record
            new_status: Status to move to
            effective_date: When the new status took effect (default today)
            recompute_review: Reschedule the next review from effective_date

        Raises:
            ValidationError: new status not valid in the child's jurisdiction
            StateError: the jurisdiction does not permit this change
        """
        child = _normalized(child)
        new_status = coerce_legal_status(new_status)
        effective = (
            coerce_date(effective_date, "effective_date")
            if effective_date is not None
            else self.reference_date or date.today()
        )

        self.calculator.validate(child.jurisdiction, new_status)

        if new_status == child.legal_status:
            raise StateError(
                message=f"Child already has legal status {new_status.value}",
                details={"legal_status": new_status.value},
                child_id=child.id,
            )

        rules = self.calculator.rules_for(child.jurisdiction)
        if not rules.allows_transition(child.legal_status, new_status):
            allowed = (rules.status_transitions or {}).get(child.legal_status, frozenset())
            raise StateError(
                message=(
                    f"Cannot change legal status from {child.legal_status.value} "
                    f"to {new_status.value} in {child.jurisdiction.value}"
                ),
                details={
                    "jurisdiction": child.jurisdiction.value,
                    "current_status": child.legal_status.value,
                    "requested_status": new_status.value,
                    "allowed_statuses": sorted(s.value for s in allowed),
                },
                child_id=child.id,
            )

        changes: dict = {
            "legal_status": new_status,
            "legal_status_start_date": effective,
        }
        if recompute_review:
            changes["next_review_date"] = self.calculator.next_statutory_review_date(
                child.jurisdiction, effective, child.review_sequence
            )

        logger.info(
            "Legal status changed: %s %s -> %s",
            child.id,
            child.legal_status.value,
            new_status.value,
            extra={"child_id": child.id},
        )
        return replace(child, **changes)

    # -------------------------------------------------------------------------
    # Cross-border transfer
    # -------------------------------------------------------------------------

    def transfer_jurisdiction(
        self,
        child: Child,
        to_jurisdiction: JurisdictionLike,
        transfer_date: Optional[DateLike] = None,
    ) -> Child:
        """
        Move a child to a different jurisdiction.

        The current legal status is re-validated against the destination
        and the whole update fails if it is not recognised there. On
        success all deadlines are recomputed from the transfer date, the
        review sequence restarts at 1 and an advisory is published.

        Raises:
            ValidationError: same jurisdiction, or legal status not valid
                in the destination
        """
        child = _normalized(child)
        destination = coerce_jurisdiction(to_jurisdiction)
        source = child.jurisdiction
        effective = (
            coerce_date(transfer_date, "transfer_date")
            if transfer_date is not None
            else self.reference_date or date.today()
        )

        if destination == source:
            raise ValidationError(
                message=f"Child is already in {destination.value}",
                details={"jurisdiction": destination.value},
                child_id=child.id,
            )

        if not self.calculator.is_legal_status_valid(destination, child.legal_status):
            raise ValidationError(
                message=(
                    f"{child.legal_status.value} not valid for {destination.value} "
                    f"(transfer from {source.value})"
                ),
                details={
                    "legal_status": child.legal_status.value,
                    "source_jurisdiction": source.value,
                    "destination_jurisdiction": destination.value,
                },
                child_id=child.id,
            )

        deadlines = self._deadlines(child, destination, effective, 1)
        updated = replace(
            child,
            jurisdiction=destination,
            **_deadline_fields(deadlines, 1),
        )

        advisory = CrossBorderTransferAdvisory(
            child_id=child.id,
            from_jurisdiction=source,
            to_jurisdiction=destination,
            legal_status=child.legal_status,
            transfer_date=effective,
        )
        logger.warning(
            "Cross-border transfer %s -> %s for child %s: %s",
            source.value,
            destination.value,
            child.id,
            advisory.message,
            extra={"child_id": child.id},
        )
        self.notifier.publish(advisory)
        return updated

    # -------------------------------------------------------------------------
    # Reviews
    # -------------------------------------------------------------------------

    def record_review(self, child: Child, review_date: DateLike) -> Child:
        """
        Record that the due statutory review was held.

        Advances the review sequence and schedules the next review from
        the date the review was held.

        Raises:
            ValidationError: review date before admission or malformed
        """
        child = _normalized(child)
        held = coerce_date(review_date, "review_date")
        if held < child.admission_date:
            raise ValidationError(
                message=(
                    f"Review date {held.isoformat()} is before admission "
                    f"{child.admission_date.isoformat()}"
                ),
                details={
                    "review_date": held.isoformat(),
                    "admission_date": child.admission_date.isoformat(),
                },
                child_id=child.id,
            )

        next_sequence = child.review_sequence + 1
        next_review = self.calculator.next_statutory_review_date(
            child.jurisdiction, held, next_sequence
        )
        logger.info(
            "Review %d recorded for %s, next due %s",
            child.review_sequence,
            child.id,
            next_review.isoformat(),
            extra={"child_id": child.id},
        )
        return replace(child, review_sequence=next_sequence, next_review_date=next_review)

    # -------------------------------------------------------------------------
    # Missing episodes
    # -------------------------------------------------------------------------

    def record_missing_episode(self, child: Child, episode: MissingEpisode) -> Child:
        """
        Count a missing episode reported for this child.

        Call with the episode returned by MissingEpisodeService.report_missing.

        Raises:
            ValidationError: episode belongs to another child
        """
        child = _normalized(child)
        if episode.child_id != child.id:
            raise ValidationError(
                message=f"Episode {episode.id} belongs to child {episode.child_id}",
                details={"episode_id": episode.id, "episode_child_id": episode.child_id},
                child_id=child.id,
            )

        count = child.missing_episodes_count + 1
        logger.info(
            "Missing episode %s counted for %s (total %d)",
            episode.id,
            child.id,
            count,
            extra={"child_id": child.id, "episode_id": episode.id},
        )
        return replace(child, missing_episodes_count=count)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _deadlines(
        self,
        child: Child,
        jurisdiction: Jurisdiction,
        from_date: date,
        review_sequence: int,
    ) -> DeadlineSet:
        rules = self.calculator.rules_for(jurisdiction)
        return self.calculator.compute_deadlines(
            jurisdiction,
            from_date,
            review_sequence_number=review_sequence,
            include_education_plan=child.in_education and rules.education_plan_statutory,
        )


def _normalized(child: Child) -> Child:
    """Child with enum jurisdiction and legal status and a date admission."""
    return replace(
        child,
        jurisdiction=coerce_jurisdiction(child.jurisdiction),
        legal_status=coerce_legal_status(child.legal_status),
        admission_date=coerce_date(child.admission_date, "admission_date"),
    )


def _deadline_fields(deadlines: DeadlineSet, review_sequence: int) -> dict:
    return {
        "review_sequence": review_sequence,
        "next_review_date": deadlines.review.due_date,
        "next_health_assessment_date": deadlines.health_assessment.due_date,
        "next_education_plan_date": (
            deadlines.education_plan.due_date if deadlines.education_plan else None
        ),
    }


# =============================================================================
# Convenience Functions
# =============================================================================

def intake(child: Child, reference_date: Optional[date] = None) -> Child:
    """Validate a new child record and compute its first deadlines."""
    return ChildRecordService(reference_date=reference_date).intake(child)


def change_legal_status(
    child: Child,
    new_status: LegalStatusLike,
    effective_date: Optional[DateLike] = None,
) -> Child:
    """Move a child to a new legal status."""
    return ChildRecordService().change_legal_status(child, new_status, effective_date)


def transfer_jurisdiction(
    child: Child,
    to_jurisdiction: JurisdictionLike,
    transfer_date: Optional[DateLike] = None,
    notifier: Optional[NotificationSink] = None,
) -> Child:
    """Move a child to a different jurisdiction."""
    service = ChildRecordService(notifier=notifier or NullNotifier())
    return service.transfer_jurisdiction(child, to_jurisdiction, transfer_date)


def record_review(child: Child, review_date: DateLike) -> Child:
    """Record that the due statutory review was held."""
    return ChildRecordService().record_review(child, review_date)
