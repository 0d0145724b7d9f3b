"""
CarePilot Breakdown Risk Analyzer

Estimates the risk that a placement breaks down from weighted, explainable
factors. Output is advisory: it feeds matching tie-breaks and alerting and
never blocks a decision.

Factors (each normalized to 0-100):
- placement_moves: moves in the last 12 months, 25 points per move
- move_recency: 100 for a move today, falling linearly to 0 at 365 days
- incidents: severity points in the last 6 months, 10 points per point
- missing_episodes: 20 points per episode
- carer_stress: missed visits 10, escalations 20, respite request 30,
  allegation 40

Bands (fixed): minimal < 20 <= low < 40 <= medium < 60 <= high < 80 <= critical
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Iterable, Mapping, Optional

from ..exceptions import ValidationError
from ..jurisdictions import add_months
from ..models import (
    DEFAULT_WEIGHTS_PACK,
    AssessmentTrigger,
    CarerStressSignals,
    IncidentRecord,
    IncidentSeverity,
    PlacementTransition,
    RiskAssessment,
    RiskBand,
    RiskFactor,
    RiskWeights,
)
from ..notifications import NullNotifier, RiskBandEscalation
from ..ports import NotificationSink

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

MOVE_WINDOW_DAYS = 365
INCIDENT_WINDOW_MONTHS = 6

POINTS_PER_MOVE = 25
POINTS_PER_INCIDENT_POINT = 10
POINTS_PER_MISSING_EPISODE = 20

SEVERITY_POINTS: Mapping[IncidentSeverity, int] = {
    IncidentSeverity.LOW: 1,
    IncidentSeverity.MEDIUM: 2,
    IncidentSeverity.HIGH: 4,
    IncidentSeverity.CRITICAL: 8,
}

CARER_STRESS_POINTS = {
    "missed_visit": 10,
    "escalation": 20,
    "respite_requested": 30,
    "allegation_made": 40,
}

# (lower bound, band), checked from the top
BAND_THRESHOLDS = (
    (80, RiskBand.CRITICAL),
    (60, RiskBand.HIGH),
    (40, RiskBand.MEDIUM),
    (20, RiskBand.LOW),
    (0, RiskBand.MINIMAL),
)

REVIEW_INTERVAL_DAYS: Mapping[RiskBand, int] = {
    RiskBand.CRITICAL: 7,
    RiskBand.HIGH: 14,
    RiskBand.MEDIUM: 28,
    RiskBand.LOW: 91,
    RiskBand.MINIMAL: 182,
}

_HUNDRED = Decimal("100")
_CONTRIBUTION_QUANTUM = Decimal("0.01")


def risk_band(score: int) -> RiskBand:
    """Band for a 0-100 score."""
    for lower, band in BAND_THRESHOLDS:
        if score >= lower:
            return band
    return RiskBand.MINIMAL


def review_interval(band: RiskBand) -> timedelta:
    """Time until the next assessment is due."""
    return timedelta(days=REVIEW_INTERVAL_DAYS[band])


def _capped(points: float) -> Decimal:
    return min(_HUNDRED, max(Decimal("0"), Decimal(str(points))))


def _new_assessment_id() -> str:
    return f"risk-{uuid.uuid4().hex[:12]}"


# =============================================================================
# Analyzer
# =============================================================================

@dataclass
class BreakdownRiskAnalyzer:
    """
    Computes breakdown-risk assessments.

    Usage:
        analyzer = BreakdownRiskAnalyzer()
        assessment = analyzer.assess_risk(
            placement_history=moves,
            incident_history=incidents,
            carer_stress=CarerStressSignals(missed_visits=2),
            missing_episode_count=1,
            assessed_on=date(2025, 6, 1),
        )
        assessment.band  # RiskBand.MINIMAL (score 8)
    """

    weights: RiskWeights = field(default_factory=lambda: DEFAULT_WEIGHTS_PACK.risk)
    weights_version: Optional[str] = DEFAULT_WEIGHTS_PACK.version_tag
    id_factory: Callable[[], str] = _new_assessment_id

    def assess_risk(
        self,
        placement_history: Iterable[PlacementTransition],
        incident_history: Iterable[IncidentRecord],
        carer_stress: Optional[CarerStressSignals] = None,
        missing_episode_count: int = 0,
        child_id: Optional[str] = None,
        placement_id: Optional[str] = None,
        assessed_on: Optional[date] = None,
        trigger: AssessmentTrigger = AssessmentTrigger.SCHEDULED,
        previous: Optional[RiskAssessment] = None,
    ) -> RiskAssessment:
        """
        Assess breakdown risk.

        Events after assessed_on are ignored.

        Args:
            placement_history: Placement moves
            incident_history: Recorded incidents
            carer_stress: Carer-stress indicators
            missing_episode_count: Missing episodes in the current placement
            child_id: Child assessed
            placement_id: Placement assessed
            assessed_on: Assessment date (defaults to today)
            trigger: Why the assessment was requested
            previous: Assessment this one supersedes

        Returns:
            RiskAssessment with its factor breakdown
        """
        on = assessed_on or date.today()
        moves = [m for m in placement_history if m.moved_on <= on]
        incidents = [i for i in incident_history if i.occurred_on <= on]

        factors = [
            self._moves_factor(moves, on),
            self._recency_factor(moves, on),
            self._incidents_factor(incidents, on),
            self._factor(
                "missing_episodes",
                self.weights.missing_episodes,
                missing_episode_count,
                _capped(max(0, missing_episode_count) * POINTS_PER_MISSING_EPISODE),
            ),
            self._carer_stress_factor(carer_stress or CarerStressSignals()),
        ]

        total = sum((f.weight * f.normalized_score for f in factors), Decimal("0"))
        score = int(total.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        score = max(0, min(100, score))
        band = risk_band(score)

        assessment = RiskAssessment(
            id=self.id_factory(),
            score=score,
            band=band,
            assessed_on=on,
            next_review_date=on + review_interval(band),
            factors=factors,
            child_id=child_id,
            placement_id=placement_id,
            trigger=trigger,
            weights_version=self.weights_version,
            supersedes_id=previous.id if previous else None,
        )

        logger.info(
            "Breakdown risk assessed: score %d (%s)",
            score,
            band.value,
            extra={"child_id": child_id, "placement_id": placement_id},
        )
        return assessment

    # -------------------------------------------------------------------------
    # Factors
    # -------------------------------------------------------------------------

    @staticmethod
    def _factor(name: str, weight: Decimal, raw_value: float, normalized: Decimal) -> RiskFactor:
        return RiskFactor(
            name=name,
            weight=weight,
            raw_value=float(raw_value),
            normalized_score=normalized,
            contribution=(weight * normalized).quantize(
                _CONTRIBUTION_QUANTUM, rounding=ROUND_HALF_UP
            ),
        )

    def _moves_factor(self, moves: list[PlacementTransition], on: date) -> RiskFactor:
        cutoff = on - timedelta(days=MOVE_WINDOW_DAYS)
        count = sum(1 for m in moves if m.moved_on > cutoff)
        return self._factor(
            "placement_moves",
            self.weights.placement_moves,
            count,
            _capped(count * POINTS_PER_MOVE),
        )

    def _recency_factor(self, moves: list[PlacementTransition], on: date) -> RiskFactor:
        if not moves:
            days_since = MOVE_WINDOW_DAYS
        else:
            days_since = min(MOVE_WINDOW_DAYS, (on - max(m.moved_on for m in moves)).days)
        fraction = Decimal(MOVE_WINDOW_DAYS - days_since) / MOVE_WINDOW_DAYS
        return self._factor(
            "move_recency",
            self.weights.move_recency,
            days_since,
            _capped(_HUNDRED * fraction),
        )

    def _incidents_factor(self, incidents: list[IncidentRecord], on: date) -> RiskFactor:
        cutoff = add_months(on, -INCIDENT_WINDOW_MONTHS)
        points = sum(SEVERITY_POINTS[i.severity] for i in incidents if i.occurred_on > cutoff)
        return self._factor(
            "incidents",
            self.weights.incidents,
            points,
            _capped(points * POINTS_PER_INCIDENT_POINT),
        )

    def _carer_stress_factor(self, signals: CarerStressSignals) -> RiskFactor:
        points = (
            max(0, signals.missed_visits) * CARER_STRESS_POINTS["missed_visit"]
            + max(0, signals.escalations) * CARER_STRESS_POINTS["escalation"]
            + (CARER_STRESS_POINTS["respite_requested"] if signals.respite_requested else 0)
            + (CARER_STRESS_POINTS["allegation_made"] if signals.allegation_made else 0)
        )
        return self._factor(
            "carer_stress",
            self.weights.carer_stress,
            points,
            _capped(points),
        )


# =============================================================================
# Assessment History
# =============================================================================

def _subject_key(assessment: RiskAssessment) -> str:
    return assessment.placement_id or f"child:{assessment.child_id}"


def high_risk_placements(assessments: Iterable[RiskAssessment]) -> list[RiskAssessment]:
    """
    Latest assessment per placement where the band is HIGH or CRITICAL.

    Ordered by score (descending), then placement ID.
    """
    latest: dict[str, RiskAssessment] = {}
    for assessment in assessments:
        if assessment.placement_id is None:
            continue
        current = latest.get(assessment.placement_id)
        if current is None or (assessment.assessed_on, assessment.superseded_by_id is None) >= (
            current.assessed_on, current.superseded_by_id is None
        ):
            latest[assessment.placement_id] = assessment

    flagged = [a for a in latest.values() if a.is_high_risk]
    return sorted(flagged, key=lambda a: (-a.score, a.placement_id))


@dataclass
class RiskAssessmentHistory:
    """
    Keeps every assessment; a new one supersedes the previous current one.

    Assessments are recorded in date order, so the current entry is always
    the latest by assessed_on.

    Publishes RiskBandEscalation when a placement's band worsens.
    """

    notifier: NotificationSink = field(default_factory=NullNotifier)
    _by_subject: dict[str, list[RiskAssessment]] = field(default_factory=dict)

    def record(self, assessment: RiskAssessment) -> RiskAssessment:
        """
        Add an assessment, superseding the subject's current one.

        Raises:
            ValidationError: assessed before the current assessment
        """
        key = _subject_key(assessment)
        entries = self._by_subject.get(key, [])
        previous = entries[-1] if entries else None

        if previous is not None and assessment.assessed_on < previous.assessed_on:
            raise ValidationError(
                message=(
                    f"Assessment dated {assessment.assessed_on.isoformat()} is older than "
                    f"current assessment {previous.id} ({previous.assessed_on.isoformat()})"
                ),
                details={
                    "assessment_id": assessment.id,
                    "assessed_on": assessment.assessed_on.isoformat(),
                    "current_assessment_id": previous.id,
                    "current_assessed_on": previous.assessed_on.isoformat(),
                },
                child_id=assessment.child_id,
            )

        if previous is not None:
            previous.superseded_by_id = assessment.id
            assessment.supersedes_id = previous.id
        self._by_subject.setdefault(key, []).append(assessment)

        if previous is not None and assessment.band.severity > previous.band.severity:
            logger.warning(
                "Breakdown risk escalated %s -> %s (score %d)",
                previous.band.value,
                assessment.band.value,
                assessment.score,
                extra={"child_id": assessment.child_id, "placement_id": assessment.placement_id},
            )
            self.notifier.publish(RiskBandEscalation(
                assessment_id=assessment.id,
                previous_band=previous.band,
                new_band=assessment.band,
                score=assessment.score,
                child_id=assessment.child_id,
                placement_id=assessment.placement_id,
            ))
        return assessment

    def current(self, placement_id: str) -> Optional[RiskAssessment]:
        """Current assessment of a placement."""
        entries = self._by_subject.get(placement_id)
        return entries[-1] if entries else None

    def history(self, placement_id: str) -> list[RiskAssessment]:
        """All assessments of a placement, oldest first."""
        return list(self._by_subject.get(placement_id, []))

    def all_assessments(self) -> list[RiskAssessment]:
        return [a for entries in self._by_subject.values() for a in entries]

    def high_risk_placements(self) -> list[RiskAssessment]:
        """Current HIGH or CRITICAL assessments."""
        return high_risk_placements(self.all_assessments())

    def due_for_review(self, on: date) -> list[RiskAssessment]:
        """Current assessments whose review date has been reached."""
        due = [
            entries[-1] for entries in self._by_subject.values()
            if entries and entries[-1].next_review_date <= on
        ]
        return sorted(due, key=lambda a: (a.next_review_date, _subject_key(a)))
