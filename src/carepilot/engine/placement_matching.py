"""
CarePilot Placement Matching

Ranks candidate placement providers for a child using a deterministic
weighted score.

Key features:
- Hard eligibility gate (excluded providers never appear in the ranking)
- Four normalized sub-scores: proximity, continuity, culture, availability
- Weighted sum with per-request overrides and an availability-first
  profile for IMMEDIATE requests
- Explicit tie-breakers for determinism

Scoring is a fixed function of its inputs; no learned model.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from ..exceptions import ValidationError
from ..models import (
    DEFAULT_WEIGHTS_PACK,
    ChildProfile,
    ExcludedProvider,
    ExclusionReason,
    Location,
    MatchingWeights,
    MatchPreferences,
    MatchResult,
    MatchUrgency,
    PlacementCandidate,
    PlacementType,
    ProviderProfile,
    ScoringWeights,
    SubScores,
)
from .compliance_calculator import ComplianceCalculator

logger = logging.getLogger(__name__)

# Earth radius in kilometers
EARTH_RADIUS_KM = 6371.0

# Placement types that always need a bed now
IMMEDIATE_PLACEMENT_TYPES = frozenset({PlacementType.EMERGENCY, PlacementType.RESPITE})

_HUNDRED = Decimal("100")
_ZERO = Decimal("0")
_SCORE_QUANTUM = Decimal("0.01")


# =============================================================================
# Distance and Similarity
# =============================================================================

def haversine_km(loc1: Location, loc2: Location) -> float:
    """
    Great-circle distance between two locations using the Haversine formula.

    Returns:
        Distance in kilometers
    """
    lat1 = math.radians(loc1.latitude)
    lon1 = math.radians(loc1.longitude)
    lat2 = math.radians(loc2.latitude)
    lon2 = math.radians(loc2.longitude)

    dlon = lon2 - lon1
    dlat = lat2 - lat1

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def jaccard_similarity(set_a: set, set_b: set) -> float:
    """
    Jaccard similarity between two sets.

    Jaccard = |A ∩ B| / |A ∪ B|

    Returns 0.0 if both sets are empty.
    """
    if not set_a and not set_b:
        return 0.0

    intersection = len(set_a & set_b)
    union = len(set_a | set_b)

    return intersection / union if union > 0 else 0.0


def _casefold_set(values: Iterable[str]) -> set[str]:
    return {v.strip().casefold() for v in values if v and v.strip()}


def _clamp_score(value: Decimal) -> Decimal:
    return max(_ZERO, min(_HUNDRED, value))


def _to_decimal(value: float) -> Decimal:
    return Decimal(str(value))


def _optional_decimal(value) -> Optional[Decimal]:
    if value is None or isinstance(value, Decimal):
        return value
    return Decimal(str(value))


# =============================================================================
# Eligibility Gate
# =============================================================================

def eligibility_failures(
    child: ChildProfile,
    provider: ProviderProfile,
    placement_type: PlacementType,
    preferences: MatchPreferences,
    start_date: date,
) -> list[ExclusionReason]:
    """
    Hard constraints a provider fails for this request.

    An empty list means the provider is eligible. Registration and DBS
    checks must be valid on the placement start date.
    """
    reasons: list[ExclusionReason] = []

    if provider.vacancies <= 0:
        reasons.append(ExclusionReason.NO_VACANCY)
    elif preferences.place_siblings_together and child.sibling_ids:
        needed = child.places_needed
        if provider.vacancies < needed or provider.max_sibling_group < needed:
            reasons.append(ExclusionReason.INSUFFICIENT_SIBLING_CAPACITY)

    if placement_type not in provider.placement_types:
        reasons.append(ExclusionReason.PLACEMENT_TYPE_NOT_OFFERED)

    if provider.registration_expires is None or provider.registration_expires < start_date:
        reasons.append(ExclusionReason.REGISTRATION_EXPIRED)

    if provider.dbs_checks_expire is not None and provider.dbs_checks_expire < start_date:
        reasons.append(ExclusionReason.DBS_EXPIRED)

    if provider.suspended:
        reasons.append(ExclusionReason.PROVIDER_SUSPENDED)

    if provider.jurisdiction != child.jurisdiction and not preferences.allow_cross_border:
        reasons.append(ExclusionReason.OUT_OF_JURISDICTION)

    return reasons


# =============================================================================
# Sort Key
# =============================================================================

def candidate_sort_key(candidate: PlacementCandidate) -> tuple:
    """
    Sort key for stable candidate ordering.

    Tie-breakers (in order):
    1. score (descending)
    2. provider breakdown-risk score (ascending, unknown last)
    3. distance (ascending, unknown last)
    4. provider_id (ascending)
    """
    risk = candidate.breakdown_risk_score
    distance = candidate.distance_km
    return (
        -candidate.score,
        (0, risk) if risk is not None else (1, 0),
        (0, distance) if distance is not None else (1, 0.0),
        candidate.provider_id,
    )


def sort_candidates(candidates: list[PlacementCandidate]) -> list[PlacementCandidate]:
    """Sort candidates and assign 1-based ranks."""
    ordered = sorted(candidates, key=candidate_sort_key)
    for rank, candidate in enumerate(ordered, start=1):
        candidate.rank = rank
    return ordered


# =============================================================================
# Placement Matching Service
# =============================================================================

@dataclass
class PlacementMatchingService:
    """
    Scores and ranks candidate providers for a placement request.

    Usage:
        service = PlacementMatchingService()
        candidates = service.find_matches(
            child_profile=profile,
            placement_type=PlacementType.FOSTER,
            candidate_pool=providers,
            preferences=MatchPreferences(),
        )
        best = candidates[0] if candidates else None
    """

    calculator: ComplianceCalculator = field(default_factory=ComplianceCalculator)
    weights: MatchingWeights = field(default_factory=lambda: DEFAULT_WEIGHTS_PACK.matching)
    weights_version: Optional[str] = DEFAULT_WEIGHTS_PACK.version_tag

    # Reference date for availability and expiry checks
    reference_date: Optional[date] = None

    def find_matches(
        self,
        child_profile: ChildProfile,
        placement_type: PlacementType,
        candidate_pool: Iterable[ProviderProfile],
        preferences: Optional[MatchPreferences] = None,
    ) -> list[PlacementCandidate]:
        """
        Ranked eligible providers, best first.

        Eligibility and availability are judged on preferences.required_start,
        else on reference_date, else on date.today(). Pass one of the first
        two when the ranking must be reproducible.

        Raises:
            ValidationError: child's legal status not valid in its jurisdiction
        """
        return self.evaluate(
            child_profile, placement_type, candidate_pool, preferences
        ).candidates

    def evaluate(
        self,
        child_profile: ChildProfile,
        placement_type: PlacementType,
        candidate_pool: Iterable[ProviderProfile],
        preferences: Optional[MatchPreferences] = None,
    ) -> MatchResult:
        """
        Full matching outcome: ranked candidates and excluded providers.

        The start date is resolved as in find_matches.

        Raises:
            ValidationError: child's legal status not valid in its jurisdiction
        """
        self.calculator.validate(child_profile.jurisdiction, child_profile.legal_status)

        preferences = preferences or MatchPreferences()
        urgency = self.effective_urgency(placement_type, preferences)
        weights = self.effective_weights(urgency, preferences)
        school_w, sibling_w = self._continuity_split(preferences)
        start_date = preferences.required_start or self.reference_date or date.today()

        candidates: list[PlacementCandidate] = []
        excluded: list[ExcludedProvider] = []

        for provider in candidate_pool:
            reasons = eligibility_failures(
                child_profile, provider, placement_type, preferences, start_date
            )
            if reasons:
                excluded.append(ExcludedProvider(provider.provider_id, tuple(reasons)))
                continue

            distance = self._distance(child_profile.home_location or child_profile.school_location, provider)
            sub_scores = SubScores(
                proximity=self.proximity_score(distance),
                continuity=self.continuity_score(
                    child_profile, provider, preferences, school_w, sibling_w
                ),
                culture=self.culture_score(child_profile, provider),
                availability=self.availability_score(
                    provider, start_date, self._places_needed(child_profile, preferences)
                ),
            )
            candidates.append(PlacementCandidate(
                provider_id=provider.provider_id,
                provider_name=provider.name,
                score=self.composite_score(sub_scores, weights),
                sub_scores=sub_scores,
                weights=weights.as_dict(),
                distance_km=distance,
                breakdown_risk_score=provider.breakdown_risk_score,
                breakdown_risk_band=provider.breakdown_risk_band,
                requires_cross_border_authorization=(
                    provider.jurisdiction != child_profile.jurisdiction
                ),
            ))

        ranked = sort_candidates(candidates)
        if preferences.max_results is not None:
            ranked = ranked[:max(0, preferences.max_results)]

        excluded.sort(key=lambda e: e.provider_id)

        logger.info(
            "Matched child %s: %d candidates, %d excluded (%s, %s)",
            child_profile.child_id,
            len(ranked),
            len(excluded),
            placement_type.value,
            urgency.value,
            extra={"child_id": child_profile.child_id},
        )

        return MatchResult(
            child_id=child_profile.child_id,
            placement_type=placement_type,
            urgency=urgency,
            candidates=ranked,
            excluded=excluded,
            weights_version=self.weights_version,
        )

    # -------------------------------------------------------------------------
    # Weights
    # -------------------------------------------------------------------------

    @staticmethod
    def effective_urgency(
        placement_type: PlacementType,
        preferences: MatchPreferences,
    ) -> MatchUrgency:
        """Requested urgency, raised to IMMEDIATE for emergency and respite."""
        if placement_type in IMMEDIATE_PLACEMENT_TYPES:
            return MatchUrgency.IMMEDIATE
        return preferences.urgency

    def effective_weights(
        self,
        urgency: MatchUrgency,
        preferences: MatchPreferences,
    ) -> ScoringWeights:
        """
        Normalized sub-score weights for a request.

        IMMEDIATE requests use the availability-first profile; only the
        cultural match override applies to it. Otherwise each preference
        override replaces the pack's standard weight.

        Raises:
            ValidationError: negative overrides, or all weights zero
        """
        culture = _optional_decimal(preferences.cultural_match_weight)

        if urgency == MatchUrgency.IMMEDIATE:
            base = self.weights.immediate
            raw = {
                "proximity": base.proximity,
                "continuity": base.continuity,
                "culture": base.culture if culture is None else culture,
                "availability": base.availability,
            }
        else:
            base = self.weights.standard
            school_w, sibling_w = self._continuity_split(preferences)
            continuity_overridden = (
                preferences.school_continuity_weight is not None
                or preferences.sibling_co_placement_weight is not None
            )
            location = _optional_decimal(preferences.location_weight)
            raw = {
                "proximity": base.proximity if location is None else location,
                "continuity": school_w + sibling_w if continuity_overridden else base.continuity,
                "culture": base.culture if culture is None else culture,
                "availability": base.availability,
            }

        try:
            return ScoringWeights(**raw).normalized()
        except ValueError as e:
            raise ValidationError(
                message=f"Invalid matching weights: {e}",
                details={k: str(v) for k, v in raw.items()},
            ) from e

    def _continuity_split(self, preferences: MatchPreferences) -> tuple[Decimal, Decimal]:
        """School and sibling weights (pack split scaled to the continuity weight)."""
        standard = self.weights.standard.continuity
        split = self.weights.continuity
        school = _optional_decimal(preferences.school_continuity_weight)
        siblings = _optional_decimal(preferences.sibling_co_placement_weight)
        return (
            standard * split.school if school is None else school,
            standard * split.siblings if siblings is None else siblings,
        )

    # -------------------------------------------------------------------------
    # Sub-scores
    # -------------------------------------------------------------------------

    @staticmethod
    def _distance(origin: Optional[Location], provider: ProviderProfile) -> Optional[float]:
        if origin is None or provider.location is None:
            return None
        return haversine_km(origin, provider.location)

    @staticmethod
    def _places_needed(child: ChildProfile, preferences: MatchPreferences) -> int:
        return child.places_needed if preferences.place_siblings_together else 1

    def proximity_score(self, distance_km: Optional[float]) -> Decimal:
        """
        100 at zero distance, falling linearly to 0 at max_distance_km.

        Unknown distance scores unknown_location_score.
        """
        if distance_km is None:
            return self.weights.unknown_location_score
        ratio = _to_decimal(distance_km) / _to_decimal(self.weights.max_distance_km)
        return _clamp_score(_HUNDRED * (1 - ratio))

    def continuity_score(
        self,
        child: ChildProfile,
        provider: ProviderProfile,
        preferences: MatchPreferences,
        school_weight: Decimal,
        sibling_weight: Decimal,
    ) -> Decimal:
        """School continuity and sibling co-placement mixed by their weights."""
        total = school_weight + sibling_weight
        if total <= 0:
            return _ZERO
        school = self._school_score(child, provider)
        siblings = self._sibling_score(child, provider)
        return _clamp_score((school * school_weight + siblings * sibling_weight) / total)

    def _school_score(self, child: ChildProfile, provider: ProviderProfile) -> Decimal:
        if not child.school_id:
            return _HUNDRED
        if child.school_id in provider.linked_school_ids:
            return _HUNDRED
        distance = self._distance(child.school_location, provider)
        if distance is None:
            return self.weights.unknown_location_score
        ratio = _to_decimal(distance) / _to_decimal(self.weights.school_max_distance_km)
        return _clamp_score(_HUNDRED * (1 - ratio))

    @staticmethod
    def _sibling_score(child: ChildProfile, provider: ProviderProfile) -> Decimal:
        if not child.sibling_ids:
            return _HUNDRED
        needed = child.places_needed
        if provider.vacancies >= needed and provider.max_sibling_group >= needed:
            return _HUNDRED
        return _ZERO

    @staticmethod
    def culture_score(child: ChildProfile, provider: ProviderProfile) -> Decimal:
        """
        Mean of the cultural components the child has requirements for.

        Components: language Jaccard similarity, faith match, heritage
        match. A child with no cultural requirements scores 100.
        """
        components: list[Decimal] = []

        child_languages = _casefold_set(child.languages)
        if child_languages:
            similarity = jaccard_similarity(child_languages, _casefold_set(provider.languages))
            components.append(_HUNDRED * _to_decimal(similarity))

        if child.faith:
            match = child.faith.strip().casefold() in _casefold_set(provider.faiths)
            components.append(_HUNDRED if match else _ZERO)

        if child.heritage:
            match = child.heritage.strip().casefold() in _casefold_set(provider.heritages)
            components.append(_HUNDRED if match else _ZERO)

        if not components:
            return _HUNDRED
        return _clamp_score(sum(components, _ZERO) / len(components))

    def availability_score(
        self,
        provider: ProviderProfile,
        start_date: date,
        places_needed: int = 1,
    ) -> Decimal:
        """
        Start-date fit scaled by spare capacity.

        base = 100 when available by the start date, minus
        delay_penalty_per_day per day of delay otherwise; multiplied by
        min(1, capacity_base + capacity_step * spare vacancies).
        """
        if provider.available_from is None or provider.available_from <= start_date:
            base = _HUNDRED
        else:
            delay_days = (provider.available_from - start_date).days
            base = max(_ZERO, _HUNDRED - self.weights.delay_penalty_per_day * delay_days)

        spare = provider.vacancies - places_needed
        capacity = min(
            Decimal("1"),
            self.weights.capacity_base + self.weights.capacity_step * spare,
        )
        return _clamp_score(base * max(_ZERO, capacity))

    @staticmethod
    def composite_score(sub_scores: SubScores, weights: ScoringWeights) -> Decimal:
        """Weighted sum of sub-scores, quantized to 2 decimal places."""
        score = (
            weights.proximity * sub_scores.proximity
            + weights.continuity * sub_scores.continuity
            + weights.culture * sub_scores.culture
            + weights.availability * sub_scores.availability
        )
        return _clamp_score(score).quantize(_SCORE_QUANTUM, rounding=ROUND_HALF_UP)
