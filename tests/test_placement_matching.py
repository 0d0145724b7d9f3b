"""
CarePilot Placement Matching Tests

Tests for the eligibility gate, sub-scores, weighting and deterministic
ranking.
"""
from __future__ import annotations

import random
from datetime import date, timedelta
from decimal import Decimal

import pytest

from carepilot.engine import (
    PlacementMatchingService,
    candidate_sort_key,
    eligibility_failures,
    haversine_km,
    jaccard_similarity,
)
from carepilot.exceptions import ValidationError
from carepilot.models import (
    ExclusionReason,
    Jurisdiction,
    LegalStatus,
    MatchPreferences,
    MatchUrgency,
    PlacementCandidate,
    PlacementType,
    SubScores,
)

from tests.conftest import (
    GLASGOW,
    LEEDS,
    MANCHESTER,
    REFERENCE_DATE,
    STOCKPORT,
    make_profile,
    make_provider,
)


@pytest.fixture
def service():
    return PlacementMatchingService(reference_date=REFERENCE_DATE)


def _sub_scores(value: str = "50") -> SubScores:
    v = Decimal(value)
    return SubScores(proximity=v, continuity=v, culture=v, availability=v)


# =============================================================================
# Distance and Similarity
# =============================================================================

class TestDistance:
    """Haversine distance."""

    def test_zero_distance(self) -> None:
        assert haversine_km(MANCHESTER, MANCHESTER) == 0.0

    def test_manchester_to_leeds(self) -> None:
        assert 55 < haversine_km(MANCHESTER, LEEDS) < 61

    def test_symmetric(self) -> None:
        assert haversine_km(MANCHESTER, GLASGOW) == pytest.approx(haversine_km(GLASGOW, MANCHESTER))


class TestJaccard:

    def test_partial_overlap(self) -> None:
        assert jaccard_similarity({"a", "b"}, {"b", "c"}) == pytest.approx(1 / 3)

    def test_both_empty(self) -> None:
        assert jaccard_similarity(set(), set()) == 0.0


# =============================================================================
# Eligibility Gate
# =============================================================================

class TestEligibility:
    """Hard constraints."""

    def _failures(self, provider, profile=None, preferences=None, placement_type=PlacementType.FOSTER):
        return eligibility_failures(
            profile or make_profile(),
            provider,
            placement_type,
            preferences or MatchPreferences(),
            REFERENCE_DATE,
        )

    def test_eligible_provider(self) -> None:
        assert self._failures(make_provider("p1")) == []

    def test_no_vacancy(self) -> None:
        assert ExclusionReason.NO_VACANCY in self._failures(make_provider("p1", vacancies=0))

    def test_placement_type_not_offered(self) -> None:
        provider = make_provider("p1", placement_types={PlacementType.RESIDENTIAL})
        assert self._failures(provider) == [ExclusionReason.PLACEMENT_TYPE_NOT_OFFERED]

    def test_registration_expired(self) -> None:
        provider = make_provider("p1", registration_expires=date(2025, 2, 28))
        assert self._failures(provider) == [ExclusionReason.REGISTRATION_EXPIRED]

    def test_registration_valid_on_start_date(self) -> None:
        provider = make_provider("p1", registration_expires=REFERENCE_DATE)
        assert self._failures(provider) == []

    def test_dbs_expired(self) -> None:
        provider = make_provider("p1", dbs_checks_expire=date(2024, 12, 31))
        assert self._failures(provider) == [ExclusionReason.DBS_EXPIRED]

    def test_suspended(self) -> None:
        provider = make_provider("p1", suspended=True)
        assert self._failures(provider) == [ExclusionReason.PROVIDER_SUSPENDED]

    def test_out_of_jurisdiction(self) -> None:
        provider = make_provider("p1", jurisdiction=Jurisdiction.SCOTLAND)
        assert self._failures(provider) == [ExclusionReason.OUT_OF_JURISDICTION]
        assert self._failures(provider, preferences=MatchPreferences(allow_cross_border=True)) == []

    def test_sibling_capacity(self) -> None:
        profile = make_profile(sibling_ids=["sib-1"])
        together = MatchPreferences(place_siblings_together=True)

        one_bed = make_provider("p1", vacancies=1, max_sibling_group=2)
        small_group = make_provider("p2", vacancies=2, max_sibling_group=1)
        fits = make_provider("p3", vacancies=2, max_sibling_group=2)

        assert self._failures(one_bed, profile, together) == [
            ExclusionReason.INSUFFICIENT_SIBLING_CAPACITY
        ]
        assert self._failures(small_group, profile, together) == [
            ExclusionReason.INSUFFICIENT_SIBLING_CAPACITY
        ]
        assert self._failures(fits, profile, together) == []
        assert self._failures(one_bed, profile) == []

    def test_multiple_reasons(self) -> None:
        provider = make_provider("p1", vacancies=0, suspended=True)
        assert self._failures(provider) == [
            ExclusionReason.NO_VACANCY,
            ExclusionReason.PROVIDER_SUSPENDED,
        ]


# =============================================================================
# Matching
# =============================================================================

class TestFindMatches:
    """End-to-end ranking."""

    def test_empty_pool(self, service) -> None:
        assert service.find_matches(make_profile(), PlacementType.FOSTER, []) == []

    def test_all_excluded(self, service) -> None:
        pool = [make_provider("p1", vacancies=0), make_provider("p2", suspended=True)]
        result = service.evaluate(make_profile(), PlacementType.FOSTER, pool)

        assert result.candidates == []
        assert result.best is None
        assert [e.provider_id for e in result.excluded] == ["p1", "p2"]

    def test_invalid_child_status_rejected(self, service) -> None:
        profile = make_profile(jurisdiction=Jurisdiction.SCOTLAND, legal_status=LegalStatus.SECTION_31)
        with pytest.raises(ValidationError, match="SECTION_31 not valid for SCOTLAND"):
            service.find_matches(profile, PlacementType.FOSTER, [make_provider("p1")])

    def test_required_start_takes_precedence(self) -> None:
        service = PlacementMatchingService(reference_date=date(2025, 7, 1))
        pool = [make_provider("p1", registration_expires=date(2025, 6, 1))]

        assert service.find_matches(make_profile(), PlacementType.FOSTER, pool) == []

        preferences = MatchPreferences(required_start=date(2025, 5, 1))
        candidates = service.find_matches(make_profile(), PlacementType.FOSTER, pool, preferences)
        assert [c.provider_id for c in candidates] == ["p1"]

    def test_exact_score(self, service) -> None:
        # proximity 100, continuity 100, culture 100, availability 80 (one spare bed)
        candidates = service.find_matches(make_profile(), PlacementType.FOSTER, [make_provider("p1")])

        assert len(candidates) == 1
        candidate = candidates[0]
        assert candidate.score == Decimal("96.00")
        assert candidate.rank == 1
        assert candidate.sub_scores.availability == Decimal("80")
        assert candidate.distance_km == 0.0

    def test_closer_provider_ranks_higher(self, service) -> None:
        pool = [
            make_provider("far", location=LEEDS),
            make_provider("mid", location=STOCKPORT),
            make_provider("near", location=MANCHESTER),
        ]
        candidates = service.find_matches(make_profile(), PlacementType.FOSTER, pool)

        assert [c.provider_id for c in candidates] == ["near", "mid", "far"]
        assert candidates[0].score > candidates[1].score > candidates[2].score
        assert [c.rank for c in candidates] == [1, 2, 3]

    def test_outside_max_distance_scores_zero_proximity(self, service) -> None:
        candidates = service.find_matches(
            make_profile(),
            PlacementType.FOSTER,
            [make_provider("p1", location=GLASGOW)],
        )
        assert candidates[0].sub_scores.proximity == Decimal("0")

    def test_unknown_location_scores_neutral(self, service) -> None:
        candidates = service.find_matches(
            make_profile(home_location=None),
            PlacementType.FOSTER,
            [make_provider("p1")],
        )
        assert candidates[0].distance_km is None
        assert candidates[0].sub_scores.proximity == Decimal("50")

    def test_deterministic_regardless_of_pool_order(self, service) -> None:
        pool = [
            make_provider("p1", location=LEEDS),
            make_provider("p2", location=STOCKPORT, vacancies=4),
            make_provider("p3", location=MANCHESTER, vacancies=1),
            make_provider("p4", location=STOCKPORT, vacancies=4),
        ]
        expected = [
            (c.provider_id, c.score)
            for c in service.find_matches(make_profile(), PlacementType.FOSTER, pool)
        ]

        rng = random.Random(7)
        for _ in range(5):
            shuffled = pool[:]
            rng.shuffle(shuffled)
            result = service.find_matches(make_profile(), PlacementType.FOSTER, shuffled)
            assert [(c.provider_id, c.score) for c in result] == expected

    def test_cross_border_flagged(self, service) -> None:
        provider = make_provider("p1", jurisdiction=Jurisdiction.WALES)
        candidates = service.find_matches(
            make_profile(),
            PlacementType.FOSTER,
            [provider],
            MatchPreferences(allow_cross_border=True),
        )
        assert candidates[0].requires_cross_border_authorization is True

    def test_max_results(self, service) -> None:
        pool = [make_provider(f"p{i}") for i in range(5)]
        candidates = service.find_matches(
            make_profile(), PlacementType.FOSTER, pool, MatchPreferences(max_results=2)
        )
        assert [c.provider_id for c in candidates] == ["p0", "p1"]

    def test_result_records_weights_version(self, service) -> None:
        result = service.evaluate(make_profile(), PlacementType.FOSTER, [make_provider("p1")])
        assert result.weights_version == "default@2025.1"
        assert result.to_dict()["candidates"][0]["score"] == "96.00"


# =============================================================================
# Urgency and Weights
# =============================================================================

class TestUrgency:
    """IMMEDIATE switches to availability-first weights."""

    def _pool(self):
        return [
            make_provider("near-one-bed", location=MANCHESTER, vacancies=1),
            make_provider("far-many-beds", location=LEEDS, vacancies=3),
        ]

    def test_planned_prefers_proximity(self, service) -> None:
        candidates = service.find_matches(make_profile(), PlacementType.FOSTER, self._pool())
        assert candidates[0].provider_id == "near-one-bed"

    def test_immediate_prefers_availability(self, service) -> None:
        candidates = service.find_matches(
            make_profile(),
            PlacementType.FOSTER,
            self._pool(),
            MatchPreferences(urgency=MatchUrgency.IMMEDIATE),
        )
        assert candidates[0].provider_id == "far-many-beds"
        assert candidates[0].score == Decimal("100.00")
        assert candidates[1].score == Decimal("68.00")

    def test_emergency_placement_forces_immediate(self, service) -> None:
        result = service.evaluate(make_profile(), PlacementType.EMERGENCY, self._pool())
        assert result.urgency == MatchUrgency.IMMEDIATE
        assert result.candidates[0].provider_id == "far-many-beds"
        assert result.candidates[0].weights["proximity"] == Decimal("0")

    def test_immediate_ignores_location_override(self, service) -> None:
        weights = service.effective_weights(
            MatchUrgency.IMMEDIATE, MatchPreferences(location_weight=Decimal("1"))
        )
        assert weights.proximity == 0
        assert weights.availability == Decimal("0.8")


class TestWeights:
    """Preference overrides."""

    def test_default_weights(self, service) -> None:
        weights = service.effective_weights(MatchUrgency.PLANNED, MatchPreferences())
        assert weights.as_dict() == {
            "proximity": Decimal("0.3"),
            "continuity": Decimal("0.3"),
            "culture": Decimal("0.2"),
            "availability": Decimal("0.2"),
        }

    def test_overrides_are_normalized(self, service) -> None:
        weights = service.effective_weights(
            MatchUrgency.PLANNED,
            MatchPreferences(location_weight=Decimal("0.8")),
        )
        assert weights.total == pytest.approx(Decimal("1"))
        assert weights.proximity == Decimal("0.8") / Decimal("1.5")

    def test_continuity_overrides_replace_continuity_weight(self, service) -> None:
        weights = service.effective_weights(
            MatchUrgency.PLANNED,
            MatchPreferences(
                school_continuity_weight=Decimal("0.2"),
                sibling_co_placement_weight=Decimal("0.3"),
            ),
        )
        # raw: 0.3 / 0.5 / 0.2 / 0.2
        assert weights.continuity == Decimal("0.5") / Decimal("1.2")

    def test_float_overrides_accepted(self, service) -> None:
        weights = service.effective_weights(
            MatchUrgency.URGENT, MatchPreferences(cultural_match_weight=0.2)
        )
        assert weights.culture == Decimal("0.2")

    def test_negative_override_rejected(self, service) -> None:
        with pytest.raises(ValidationError, match="Invalid matching weights"):
            service.effective_weights(
                MatchUrgency.PLANNED, MatchPreferences(location_weight=Decimal("-0.1"))
            )


# =============================================================================
# Sub-scores
# =============================================================================

class TestSubScores:
    """Individual sub-score functions."""

    def test_culture_language_and_faith(self, service) -> None:
        profile = make_profile(languages={"Polish", "English"}, faith="Catholic")
        provider = make_provider("p1", languages={"polish"}, faiths={"catholic"})
        # language Jaccard 1/2 -> 50, faith match -> 100
        assert service.culture_score(profile, provider) == Decimal("75")

    def test_culture_no_requirements(self, service) -> None:
        assert service.culture_score(make_profile(), make_provider("p1")) == Decimal("100")

    def test_culture_heritage_mismatch(self, service) -> None:
        profile = make_profile(heritage="Irish Traveller")
        provider = make_provider("p1", heritages={"Roma"})
        assert service.culture_score(profile, provider) == Decimal("0")

    def test_availability_with_delay(self, service) -> None:
        provider = make_provider("p1", available_from=REFERENCE_DATE + timedelta(days=3))
        # 100 - 3 * 10 = 70, scaled by 0.6 + 0.2 * 1 spare
        assert service.availability_score(provider, REFERENCE_DATE) == Decimal("56.0")

    def test_availability_capacity_capped(self, service) -> None:
        provider = make_provider("p1", vacancies=5)
        assert service.availability_score(provider, REFERENCE_DATE) == Decimal("100")

    def test_availability_long_delay_zero(self, service) -> None:
        provider = make_provider("p1", available_from=REFERENCE_DATE + timedelta(days=30))
        assert service.availability_score(provider, REFERENCE_DATE) == Decimal("0")

    def test_school_continuity(self, service) -> None:
        profile = make_profile(school_id="sch-1")
        linked = make_provider("p1", linked_school_ids={"sch-1"})
        unlinked = make_provider("p2")
        school_w, sibling_w = Decimal("0.15"), Decimal("0.15")

        assert service.continuity_score(
            profile, linked, MatchPreferences(), school_w, sibling_w
        ) == Decimal("100")
        # unknown school location: school 50, no siblings 100
        assert service.continuity_score(
            profile, unlinked, MatchPreferences(), school_w, sibling_w
        ) == Decimal("75")

    def test_school_distance(self, service) -> None:
        profile = make_profile(school_id="sch-1", school_location=MANCHESTER)
        provider = make_provider("p1", location=MANCHESTER)
        assert service.continuity_score(
            profile, provider, MatchPreferences(), Decimal("1"), Decimal("0")
        ) == Decimal("100")

    def test_sibling_continuity(self, service) -> None:
        profile = make_profile(sibling_ids=["sib-1", "sib-2"])
        fits = make_provider("p1", vacancies=3, max_sibling_group=3)
        too_small = make_provider("p2", vacancies=3, max_sibling_group=2)

        assert service.continuity_score(
            profile, fits, MatchPreferences(), Decimal("0"), Decimal("1")
        ) == Decimal("100")
        assert service.continuity_score(
            profile, too_small, MatchPreferences(), Decimal("0"), Decimal("1")
        ) == Decimal("0")


# =============================================================================
# Tie-breaking
# =============================================================================

class TestTieBreaking:
    """Ordering of equal scores."""

    def test_lower_breakdown_risk_first(self, service) -> None:
        pool = [
            make_provider("a", breakdown_risk_score=40),
            make_provider("b", breakdown_risk_score=10),
            make_provider("c"),
        ]
        candidates = service.find_matches(make_profile(), PlacementType.FOSTER, pool)

        assert len({c.score for c in candidates}) == 1
        assert [c.provider_id for c in candidates] == ["b", "a", "c"]

    def test_provider_id_last(self, service) -> None:
        pool = [make_provider("z"), make_provider("m"), make_provider("a")]
        candidates = service.find_matches(make_profile(), PlacementType.FOSTER, pool)
        assert [c.provider_id for c in candidates] == ["a", "m", "z"]

    def test_distance_breaks_equal_score_and_risk(self) -> None:
        candidates = [
            PlacementCandidate("x", Decimal("80"), _sub_scores(), distance_km=None),
            PlacementCandidate("y", Decimal("80"), _sub_scores(), distance_km=12.5),
            PlacementCandidate("z", Decimal("80"), _sub_scores(), distance_km=3.0),
        ]
        ordered = sorted(candidates, key=candidate_sort_key)
        assert [c.provider_id for c in ordered] == ["z", "y", "x"]
