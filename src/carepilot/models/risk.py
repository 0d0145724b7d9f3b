"""
CarePilot Breakdown Risk Models

Inputs and outputs of the placement-breakdown risk analysis.

Key components:
- PlacementTransition: one move in a child's placement history
- IncidentRecord: a safeguarding or behavioural incident
- CarerStressSignals: the enumerated carer-stress indicators
- RiskFactor: one weighted, explainable factor
- RiskAssessment: aggregate score, band and review date

Assessments are superseded by later ones, never deleted.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from .enums import AssessmentTrigger, IncidentSeverity, RiskBand


@dataclass(frozen=True)
class PlacementTransition:
    """A placement move."""
    moved_on: date
    from_placement_id: Optional[str] = None
    to_placement_id: Optional[str] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class IncidentRecord:
    """A recorded incident relevant to placement stability."""
    occurred_on: date
    severity: IncidentSeverity
    category: str = "general"


@dataclass(frozen=True)
class CarerStressSignals:
    """Carer-stress indicators reported for the placement."""
    missed_visits: int = 0
    escalations: int = 0
    respite_requested: bool = False
    allegation_made: bool = False


@dataclass(frozen=True)
class RiskFactor:
    """
    One contributing factor.

    Attributes:
        name: Factor key (e.g. "placement_moves")
        weight: Weight applied to the normalized score
        raw_value: The observed value before normalization
        normalized_score: Value mapped onto [0, 100]
        contribution: weight * normalized_score
    """
    name: str
    weight: Decimal
    raw_value: float
    normalized_score: Decimal
    contribution: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "weight": str(self.weight),
            "raw_value": self.raw_value,
            "normalized_score": str(self.normalized_score),
            "contribution": str(self.contribution),
        }


@dataclass
class RiskAssessment:
    """Advisory breakdown-risk assessment for a child's placement."""
    id: str
    score: int
    band: RiskBand
    assessed_on: date
    next_review_date: date
    factors: list[RiskFactor] = field(default_factory=list)

    child_id: Optional[str] = None
    placement_id: Optional[str] = None
    trigger: AssessmentTrigger = AssessmentTrigger.SCHEDULED
    weights_version: Optional[str] = None

    # History
    supersedes_id: Optional[str] = None
    superseded_by_id: Optional[str] = None

    @property
    def is_current(self) -> bool:
        return self.superseded_by_id is None

    @property
    def is_high_risk(self) -> bool:
        return self.band.severity >= RiskBand.HIGH.severity

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "child_id": self.child_id,
            "placement_id": self.placement_id,
            "score": self.score,
            "band": self.band.value,
            "assessed_on": self.assessed_on.isoformat(),
            "next_review_date": self.next_review_date.isoformat(),
            "trigger": self.trigger.value,
            "weights_version": self.weights_version,
            "factors": [f.to_dict() for f in self.factors],
            "supersedes_id": self.supersedes_id,
            "superseded_by_id": self.superseded_by_id,
        }
