"""
CarePilot Placement Models

Models for placements and for the transient objects of a matching request.

Key components:
- Placement: assignment of a child to a provider
- Location: a geographic point
- ChildProfile: matching-relevant view of a child
- ProviderProfile: a candidate provider supplied by the provider directory
- MatchPreferences: per-request weight overrides and options
- PlacementCandidate: a scored, ranked provider (never persisted)
- MatchResult: ranked candidates plus the providers the gate excluded
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from .enums import (
    ExclusionReason,
    Jurisdiction,
    LegalStatus,
    MatchUrgency,
    PlacementEndReason,
    PlacementStatus,
    PlacementType,
    RiskBand,
)


# =============================================================================
# Placement
# =============================================================================

@dataclass
class Placement:
    """
    Assignment of a child to a care setting.

    Invariant: at most one ACTIVE placement per child. Enforced by the
    placement store's atomic activation, not by this model.

    Attributes:
        id: Placement identifier
        child_id: Child being placed
        placement_type: Kind of care setting
        provider_id: Provider delivering the placement
        start_date: Planned or actual start
        end_date: End date once ended
        status: PROPOSED / ACTIVE / ENDED
        end_reason: Why the placement ended
        version: Optimistic concurrency counter
    """
    id: str
    child_id: str
    placement_type: PlacementType
    provider_id: str
    start_date: date

    end_date: Optional[date] = None
    status: PlacementStatus = PlacementStatus.PROPOSED
    end_reason: Optional[PlacementEndReason] = None
    end_notes: Optional[str] = None
    version: int = 0

    @property
    def is_active(self) -> bool:
        return self.status == PlacementStatus.ACTIVE

    @property
    def is_breakdown(self) -> bool:
        return self.end_reason == PlacementEndReason.BREAKDOWN

    def duration_days(self, as_of: Optional[date] = None) -> int:
        """Days from start to end (or to as_of for open placements)."""
        end = self.end_date or as_of or date.today()
        return max(0, (end - self.start_date).days)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "child_id": self.child_id,
            "placement_type": self.placement_type.value,
            "provider_id": self.provider_id,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "status": self.status.value,
            "end_reason": self.end_reason.value if self.end_reason else None,
            "version": self.version,
        }


# =============================================================================
# Matching Inputs
# =============================================================================

@dataclass(frozen=True)
class Location:
    """A point in WGS84 degrees."""
    latitude: float
    longitude: float


@dataclass
class ChildProfile:
    """
    Matching-relevant view of a child.

    jurisdiction and legal_status must form a valid pair; the matching
    service validates them before scoring.
    """
    child_id: str
    jurisdiction: Jurisdiction
    legal_status: LegalStatus

    home_location: Optional[Location] = None
    school_id: Optional[str] = None
    school_location: Optional[Location] = None
    sibling_ids: list[str] = field(default_factory=list)

    # Cultural identity
    languages: set[str] = field(default_factory=set)
    faith: Optional[str] = None
    heritage: Optional[str] = None

    @property
    def places_needed(self) -> int:
        """Beds needed if the sibling group is placed together."""
        return 1 + len(self.sibling_ids)


@dataclass
class ProviderProfile:
    """
    A candidate provider as supplied by the provider directory.

    Compliance check results (registration, DBS, suspension) are
    evaluated by the eligibility gate, not scored.
    """
    provider_id: str
    jurisdiction: Jurisdiction
    placement_types: set[PlacementType]
    vacancies: int

    name: Optional[str] = None
    location: Optional[Location] = None
    available_from: Optional[date] = None

    # Compliance checks
    registration_expires: Optional[date] = None
    dbs_checks_expire: Optional[date] = None
    suspended: bool = False

    # Continuity
    linked_school_ids: set[str] = field(default_factory=set)
    max_sibling_group: int = 1

    # Cultural offer
    languages: set[str] = field(default_factory=set)
    faiths: set[str] = field(default_factory=set)
    heritages: set[str] = field(default_factory=set)

    # Latest breakdown-risk score of the provider's current placements
    breakdown_risk_score: Optional[int] = None
    breakdown_risk_band: Optional[RiskBand] = None


@dataclass
class MatchPreferences:
    """
    Per-request options for a matching run.

    Weight fields are optional overrides; None keeps the pack's weight.
    sibling and school weights split the continuity sub-score.
    """
    location_weight: Optional[Decimal] = None
    school_continuity_weight: Optional[Decimal] = None
    sibling_co_placement_weight: Optional[Decimal] = None
    cultural_match_weight: Optional[Decimal] = None

    urgency: MatchUrgency = MatchUrgency.PLANNED
    place_siblings_together: bool = False
    allow_cross_border: bool = False
    required_start: Optional[date] = None
    max_results: Optional[int] = None


# =============================================================================
# Matching Outputs
# =============================================================================

@dataclass(frozen=True)
class SubScores:
    """Normalized [0, 100] component scores, kept for explainability."""
    proximity: Decimal
    continuity: Decimal
    culture: Decimal
    availability: Decimal

    def to_dict(self) -> dict[str, str]:
        return {
            "proximity": str(self.proximity),
            "continuity": str(self.continuity),
            "culture": str(self.culture),
            "availability": str(self.availability),
        }


@dataclass
class PlacementCandidate:
    """A scored provider within a single matching request."""
    provider_id: str
    score: Decimal
    sub_scores: SubScores
    weights: dict[str, Decimal] = field(default_factory=dict)
    rank: int = 0

    distance_km: Optional[float] = None
    breakdown_risk_score: Optional[int] = None
    breakdown_risk_band: Optional[RiskBand] = None
    requires_cross_border_authorization: bool = False
    provider_name: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider_id": self.provider_id,
            "provider_name": self.provider_name,
            "rank": self.rank,
            "score": str(self.score),
            "sub_scores": self.sub_scores.to_dict(),
            "weights": {k: str(v) for k, v in self.weights.items()},
            "distance_km": round(self.distance_km, 2) if self.distance_km is not None else None,
            "breakdown_risk_score": self.breakdown_risk_score,
            "breakdown_risk_band": (
                self.breakdown_risk_band.value if self.breakdown_risk_band else None
            ),
            "requires_cross_border_authorization": self.requires_cross_border_authorization,
        }


@dataclass(frozen=True)
class ExcludedProvider:
    """A provider removed by the hard eligibility gate."""
    provider_id: str
    reasons: tuple[ExclusionReason, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider_id": self.provider_id,
            "reasons": [r.value for r in self.reasons],
        }


@dataclass
class MatchResult:
    """Full outcome of a matching request."""
    child_id: str
    placement_type: PlacementType
    urgency: MatchUrgency
    candidates: list[PlacementCandidate] = field(default_factory=list)
    excluded: list[ExcludedProvider] = field(default_factory=list)
    weights_version: Optional[str] = None

    @property
    def best(self) -> Optional[PlacementCandidate]:
        return self.candidates[0] if self.candidates else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "child_id": self.child_id,
            "placement_type": self.placement_type.value,
            "urgency": self.urgency.value,
            "weights_version": self.weights_version,
            "candidates": [c.to_dict() for c in self.candidates],
            "excluded": [e.to_dict() for e in self.excluded],
        }
