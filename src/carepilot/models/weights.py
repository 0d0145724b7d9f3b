"""
CarePilot Weight Models

Versioned parameter sets for placement matching and breakdown-risk
scoring. Loaded from weights packs (see carepilot.packs); the defaults
here match the bundled default pack.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, Optional


_ONE = Decimal("1.0")
_TOLERANCE = Decimal("0.001")


def _check_weights(kind: str, values: dict[str, Decimal], require_unit_sum: bool) -> None:
    for name, value in values.items():
        if value < 0:
            raise ValueError(f"{kind} weight '{name}' must be non-negative, got {value}")
    total = sum(values.values(), Decimal("0"))
    if total <= 0:
        raise ValueError(f"{kind} weights must not all be zero")
    if require_unit_sum and abs(total - _ONE) > _TOLERANCE:
        raise ValueError(f"{kind} weights must sum to 1.0, got {total}")


# =============================================================================
# Matching Weights
# =============================================================================

@dataclass(frozen=True)
class ScoringWeights:
    """
    Weights of the four matching sub-scores.

    Weights need not sum to 1; the matching service normalizes them.
    """
    proximity: Decimal = Decimal("0.30")
    continuity: Decimal = Decimal("0.30")
    culture: Decimal = Decimal("0.20")
    availability: Decimal = Decimal("0.20")

    def __post_init__(self) -> None:
        _check_weights("Scoring", self.as_dict(), require_unit_sum=False)

    @property
    def total(self) -> Decimal:
        return self.proximity + self.continuity + self.culture + self.availability

    def normalized(self) -> ScoringWeights:
        """Scale the weights to sum to 1."""
        total = self.total
        return ScoringWeights(
            proximity=self.proximity / total,
            continuity=self.continuity / total,
            culture=self.culture / total,
            availability=self.availability / total,
        )

    def as_dict(self) -> dict[str, Decimal]:
        return {
            "proximity": self.proximity,
            "continuity": self.continuity,
            "culture": self.culture,
            "availability": self.availability,
        }


# Availability-first profile used for IMMEDIATE requests
IMMEDIATE_SCORING_WEIGHTS = ScoringWeights(
    proximity=Decimal("0"),
    continuity=Decimal("0"),
    culture=Decimal("0.20"),
    availability=Decimal("0.80"),
)


@dataclass(frozen=True)
class ContinuityWeights:
    """Split of the continuity sub-score between school and siblings."""
    school: Decimal = Decimal("0.50")
    siblings: Decimal = Decimal("0.50")

    def __post_init__(self) -> None:
        _check_weights("Continuity", {"school": self.school, "siblings": self.siblings}, True)


@dataclass(frozen=True)
class MatchingWeights:
    """
    All matching parameters of a weights pack.

    Attributes:
        standard: Sub-score weights for PLANNED / URGENT requests
        immediate: Sub-score weights for IMMEDIATE requests
        continuity: School / sibling split of the continuity sub-score
        max_distance_km: Distance at which proximity reaches zero
        school_max_distance_km: Distance at which school continuity reaches zero
        unknown_location_score: Proximity score when a location is missing
        delay_penalty_per_day: Availability points lost per day of delay
        capacity_base: Capacity factor when vacancies exactly fit
        capacity_step: Capacity factor gained per spare vacancy
    """
    standard: ScoringWeights = field(default_factory=ScoringWeights)
    immediate: ScoringWeights = IMMEDIATE_SCORING_WEIGHTS
    continuity: ContinuityWeights = field(default_factory=ContinuityWeights)
    max_distance_km: float = 80.0
    school_max_distance_km: float = 25.0
    unknown_location_score: Decimal = Decimal("50")
    delay_penalty_per_day: Decimal = Decimal("10")
    capacity_base: Decimal = Decimal("0.6")
    capacity_step: Decimal = Decimal("0.2")

    def __post_init__(self) -> None:
        if self.max_distance_km <= 0:
            raise ValueError(f"max_distance_km must be positive, got {self.max_distance_km}")
        if self.school_max_distance_km <= 0:
            raise ValueError(
                f"school_max_distance_km must be positive, got {self.school_max_distance_km}"
            )

    def with_max_distance(self, max_distance_km: Optional[float]) -> MatchingWeights:
        """Copy with a different max_distance_km (None keeps the current one)."""
        if max_distance_km is None:
            return self
        return replace(self, max_distance_km=max_distance_km)


# =============================================================================
# Risk Weights
# =============================================================================

@dataclass(frozen=True)
class RiskWeights:
    """
    Weights of the breakdown-risk factors.

    Default weights sum to 1.0 for easy interpretation.
    """
    placement_moves: Decimal = Decimal("0.25")
    move_recency: Decimal = Decimal("0.10")
    incidents: Decimal = Decimal("0.25")
    missing_episodes: Decimal = Decimal("0.15")
    carer_stress: Decimal = Decimal("0.25")

    def __post_init__(self) -> None:
        """Validate weights sum to approximately 1.0."""
        _check_weights("Risk", self.as_dict(), require_unit_sum=True)

    def as_dict(self) -> dict[str, Decimal]:
        return {
            "placement_moves": self.placement_moves,
            "move_recency": self.move_recency,
            "incidents": self.incidents,
            "missing_episodes": self.missing_episodes,
            "carer_stress": self.carer_stress,
        }


# =============================================================================
# Weights Pack
# =============================================================================

@dataclass(frozen=True)
class WeightsPack:
    """A named, versioned set of matching and risk parameters."""
    id: str
    version: str
    name: str = ""
    description: Optional[str] = None
    matching: MatchingWeights = field(default_factory=MatchingWeights)
    risk: RiskWeights = field(default_factory=RiskWeights)

    @property
    def version_tag(self) -> str:
        """Identifier recorded on results (e.g. "default@2025.1")."""
        return f"{self.id}@{self.version}"

    def to_dict(self) -> dict[str, Any]:
        m = self.matching
        return {
            "id": self.id,
            "version": self.version,
            "name": self.name,
            "description": self.description,
            "matching": {
                "standard": {k: str(v) for k, v in m.standard.as_dict().items()},
                "immediate": {k: str(v) for k, v in m.immediate.as_dict().items()},
                "continuity": {"school": str(m.continuity.school), "siblings": str(m.continuity.siblings)},
                "max_distance_km": m.max_distance_km,
                "school_max_distance_km": m.school_max_distance_km,
                "unknown_location_score": str(m.unknown_location_score),
                "delay_penalty_per_day": str(m.delay_penalty_per_day),
                "capacity_base": str(m.capacity_base),
                "capacity_step": str(m.capacity_step),
            },
            "risk": {k: str(v) for k, v in self.risk.as_dict().items()},
        }


DEFAULT_WEIGHTS_PACK = WeightsPack(
    id="default",
    version="2025.1",
    name="Default weights",
)
