"""
CarePilot Jurisdiction Rule Table Tests

Tests for the rule table and its date arithmetic.
"""
from __future__ import annotations

from datetime import date

import pytest

from carepilot.jurisdictions import (
    JURISDICTION_RULES,
    STATUS_JURISDICTIONS,
    StatutoryOffset,
    add_months,
    get_rules,
    jurisdictions_for_status,
)
from carepilot.models import Jurisdiction, LegalStatus, OffsetUnit


# =============================================================================
# Month Arithmetic
# =============================================================================

class TestAddMonths:
    """Calendar month offsets."""

    def test_simple_offset(self) -> None:
        assert add_months(date(2025, 1, 15), 3) == date(2025, 4, 15)

    def test_clamps_to_month_end(self) -> None:
        assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)

    def test_leap_year(self) -> None:
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)

    def test_crosses_year(self) -> None:
        assert add_months(date(2025, 11, 30), 3) == date(2026, 2, 28)

    def test_negative_months(self) -> None:
        assert add_months(date(2025, 3, 31), -1) == date(2025, 2, 28)
        assert add_months(date(2025, 2, 15), -6) == date(2024, 8, 15)


class TestStatutoryOffset:
    """Offset application."""

    def test_days(self) -> None:
        offset = StatutoryOffset.days(20)
        assert offset.unit == OffsetUnit.DAYS
        assert offset.apply(date(2025, 1, 1)) == date(2025, 1, 21)
        assert offset.display == "20 days"

    def test_months(self) -> None:
        offset = StatutoryOffset.months(6)
        assert offset.apply(date(2025, 1, 1)) == date(2025, 7, 1)
        assert offset.display == "6 months"


# =============================================================================
# Rule Table
# =============================================================================

class TestRuleTable:
    """Shape and content of the rule table."""

    def test_all_jurisdictions_present(self) -> None:
        assert set(JURISDICTION_RULES) == set(Jurisdiction)

    def test_table_is_read_only(self) -> None:
        with pytest.raises(TypeError):
            JURISDICTION_RULES[Jurisdiction.ENGLAND] = None  # type: ignore[index]

    @pytest.mark.parametrize("jurisdiction", list(Jurisdiction))
    def test_every_jurisdiction_has_statuses_and_reviews(self, jurisdiction: Jurisdiction) -> None:
        rules = get_rules(jurisdiction)
        assert rules.jurisdiction == jurisdiction
        assert rules.allowed_statuses
        assert rules.review_offsets
        assert rules.care_plan_label

    def test_england_timescales(self) -> None:
        rules = get_rules(Jurisdiction.ENGLAND)
        assert rules.review_offsets == (
            StatutoryOffset.days(20),
            StatutoryOffset.months(3),
            StatutoryOffset.months(6),
        )
        assert rules.health_assessment_offset == StatutoryOffset.days(20)
        assert rules.regulatory_body == "Ofsted"

    def test_scotland_uses_childs_plan(self) -> None:
        rules = get_rules(Jurisdiction.SCOTLAND)
        assert rules.care_plan_label == "Child's Plan"
        assert rules.health_assessment_offset == StatutoryOffset.days(28)

    def test_ireland_review_schedule(self) -> None:
        rules = get_rules(Jurisdiction.IRELAND)
        assert rules.review_offsets == (StatutoryOffset.months(2), StatutoryOffset.months(6))
        assert rules.education_plan_statutory is False

    def test_review_offset_repeats_last(self) -> None:
        rules = get_rules(Jurisdiction.ENGLAND)
        assert rules.review_offset(3) == rules.review_offset(10) == StatutoryOffset.months(6)

    def test_to_dict(self) -> None:
        data = get_rules(Jurisdiction.WALES).to_dict()
        assert data["jurisdiction"] == "WALES"
        assert data["review_offsets"] == ["20 days", "3 months", "6 months"]
        assert "SECTION_20" in data["allowed_statuses"]


class TestStatusMembership:
    """Which statuses are valid where."""

    def test_children_act_statuses_only_in_england_and_wales(self) -> None:
        assert jurisdictions_for_status(LegalStatus.SECTION_31) == frozenset({
            Jurisdiction.ENGLAND,
            Jurisdiction.WALES,
        })

    def test_cso_only_in_scotland(self) -> None:
        assert jurisdictions_for_status(LegalStatus.CSO) == frozenset({Jurisdiction.SCOTLAND})

    def test_remand_everywhere(self) -> None:
        assert STATUS_JURISDICTIONS[LegalStatus.REMAND] == frozenset(Jurisdiction)

    def test_immigration_detention_uk_only(self) -> None:
        assert jurisdictions_for_status(LegalStatus.IMMIGRATION_DETENTION) == frozenset({
            Jurisdiction.ENGLAND,
            Jurisdiction.WALES,
            Jurisdiction.SCOTLAND,
            Jurisdiction.NORTHERN_IRELAND,
        })

    def test_every_status_valid_somewhere(self) -> None:
        for status in LegalStatus:
            assert jurisdictions_for_status(status), status


class TestStatusTransitions:
    """Legal-status transition maps."""

    def test_england_section_20_to_31_allowed(self) -> None:
        rules = get_rules(Jurisdiction.ENGLAND)
        assert rules.allows_transition(LegalStatus.SECTION_20, LegalStatus.SECTION_31)

    def test_england_section_31_to_38_not_allowed(self) -> None:
        rules = get_rules(Jurisdiction.ENGLAND)
        assert not rules.allows_transition(LegalStatus.SECTION_31, LegalStatus.SECTION_38)

    def test_unrestricted_without_map(self) -> None:
        rules = get_rules(Jurisdiction.SCOTLAND)
        assert rules.status_transitions is None
        assert rules.allows_transition(
            LegalStatus.CHILD_PROTECTION_ORDER, LegalStatus.PERMANENCE_ORDER
        )
