"""
British Isles Jurisdiction Rule Table

The eight jurisdictions governing children's social care:
- England, Wales, Scotland, Northern Ireland (UK)
- Ireland (Republic of Ireland)
- Jersey, Guernsey, Isle of Man (Crown Dependencies)

Statutory reviews follow the same shape everywhere (a short first review,
a second after three months, then six-monthly) except Ireland, where the
first review falls two months after admission and reviews are six-monthly
thereafter.

The table is built once at import and is read-only.

References:
- Children Act 1989; Care Planning, Placement and Case Review (England) Regulations 2010
- Social Services and Well-being (Wales) Act 2014
- Looked After Children (Scotland) Regulations 2009
- Children (Northern Ireland) Order 1995
- Child Care Act 1991 (Ireland)
- Children (Jersey) Law 2002; Children (Guernsey and Alderney) Law 2008
- Children and Young Persons Act 2001 (Isle of Man)
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from ..models.enums import Jurisdiction, LegalStatus
from .base import JurisdictionRules, StatutoryOffset, freeze_transitions

days = StatutoryOffset.days
months = StatutoryOffset.months


# Statuses recognised in every UK jurisdiction
_UK_JUSTICE = {
    LegalStatus.REMAND,
    LegalStatus.CRIMINAL_JUSTICE,
    LegalStatus.IMMIGRATION_DETENTION,
}

# Statuses recognised outside the UK
_NON_UK_JUSTICE = {
    LegalStatus.REMAND,
    LegalStatus.CRIMINAL_JUSTICE,
}

_CHILDREN_ACT_1989 = {
    LegalStatus.SECTION_20,
    LegalStatus.SECTION_31,
    LegalStatus.SECTION_38,
    LegalStatus.POLICE_PROTECTION,
    LegalStatus.EMERGENCY_PROTECTION_ORDER,
}

# Permitted legal-status changes under the Children Act 1989
_CHILDREN_ACT_1989_TRANSITIONS = freeze_transitions({
    LegalStatus.SECTION_20: {
        LegalStatus.SECTION_31,
        LegalStatus.SECTION_38,
        LegalStatus.EMERGENCY_PROTECTION_ORDER,
    },
    LegalStatus.SECTION_31: {LegalStatus.SECTION_20},
    LegalStatus.SECTION_38: {LegalStatus.SECTION_31, LegalStatus.SECTION_20},
    LegalStatus.EMERGENCY_PROTECTION_ORDER: {
        LegalStatus.SECTION_20,
        LegalStatus.SECTION_38,
        LegalStatus.SECTION_31,
    },
    LegalStatus.POLICE_PROTECTION: {
        LegalStatus.SECTION_20,
        LegalStatus.EMERGENCY_PROTECTION_ORDER,
    },
    LegalStatus.REMAND: {LegalStatus.CRIMINAL_JUSTICE, LegalStatus.SECTION_20},
    LegalStatus.CRIMINAL_JUSTICE: {LegalStatus.SECTION_20},
    LegalStatus.IMMIGRATION_DETENTION: {LegalStatus.SECTION_20},
})

_STANDARD_REVIEWS_20 = (days(20), months(3), months(6))
_STANDARD_REVIEWS_28 = (days(28), months(3), months(6))


_RULES = (
    JurisdictionRules(
        jurisdiction=Jurisdiction.ENGLAND,
        display_name="England",
        allowed_statuses=frozenset(_CHILDREN_ACT_1989 | _UK_JUSTICE),
        review_offsets=_STANDARD_REVIEWS_20,
        health_assessment_offset=days(20),
        education_plan_offset=days(20),
        care_plan_label="Care Plan",
        education_plan_label="Personal Education Plan",
        regulatory_body="Ofsted",
        primary_act="Children Act 1989",
        status_transitions=_CHILDREN_ACT_1989_TRANSITIONS,
    ),
    JurisdictionRules(
        jurisdiction=Jurisdiction.WALES,
        display_name="Wales",
        allowed_statuses=frozenset(_CHILDREN_ACT_1989 | _UK_JUSTICE),
        review_offsets=_STANDARD_REVIEWS_20,
        health_assessment_offset=days(20),
        education_plan_offset=days(20),
        care_plan_label="Care and Support Plan",
        education_plan_label="Personal Education Plan",
        regulatory_body="Care Inspectorate Wales (CIW)",
        primary_act="Social Services and Well-being (Wales) Act 2014",
        status_transitions=_CHILDREN_ACT_1989_TRANSITIONS,
    ),
    JurisdictionRules(
        jurisdiction=Jurisdiction.SCOTLAND,
        display_name="Scotland",
        allowed_statuses=frozenset({
            LegalStatus.COMPULSORY_SUPERVISION_ORDER,
            LegalStatus.PERMANENCE_ORDER,
            LegalStatus.CHILD_PROTECTION_ORDER,
        } | _UK_JUSTICE),
        review_offsets=_STANDARD_REVIEWS_28,
        health_assessment_offset=days(28),
        education_plan_offset=days(28),
        care_plan_label="Child's Plan",
        education_plan_label="Co-ordinated Support Plan",
        regulatory_body="Care Inspectorate",
        primary_act="Children (Scotland) Act 1995",
        max_support_age=26,
    ),
    JurisdictionRules(
        jurisdiction=Jurisdiction.NORTHERN_IRELAND,
        display_name="Northern Ireland",
        allowed_statuses=frozenset({
            LegalStatus.CARE_ORDER_NI,
            LegalStatus.RESIDENCE_ORDER_NI,
            LegalStatus.EMERGENCY_PROTECTION_ORDER_NI,
        } | _UK_JUSTICE),
        review_offsets=(days(14), months(3), months(6)),
        health_assessment_offset=days(28),
        education_plan_offset=days(28),
        care_plan_label="Care Plan",
        education_plan_label="Personal Education Plan",
        regulatory_body="Regulation and Quality Improvement Authority (RQIA)",
        primary_act="Children (Northern Ireland) Order 1995",
    ),
    JurisdictionRules(
        jurisdiction=Jurisdiction.IRELAND,
        display_name="Ireland",
        allowed_statuses=frozenset({
            LegalStatus.CARE_ORDER_IE,
            LegalStatus.INTERIM_CARE_ORDER_IE,
            LegalStatus.EMERGENCY_CARE_ORDER_IE,
            LegalStatus.VOLUNTARY_CARE_IE,
        } | _NON_UK_JUSTICE),
        review_offsets=(months(2), months(6)),
        health_assessment_offset=days(28),
        education_plan_offset=months(3),
        care_plan_label="Care Plan",
        education_plan_label="Education Plan",
        education_plan_statutory=False,
        regulatory_body="HIQA (Health Information and Quality Authority)",
        primary_act="Child Care Act 1991",
        leaving_care_age=18,
        max_support_age=23,
    ),
    JurisdictionRules(
        jurisdiction=Jurisdiction.JERSEY,
        display_name="Jersey",
        allowed_statuses=frozenset({
            LegalStatus.CARE_ORDER_JERSEY,
            LegalStatus.SUPERVISION_ORDER_JERSEY,
        } | _NON_UK_JUSTICE),
        review_offsets=_STANDARD_REVIEWS_28,
        health_assessment_offset=days(28),
        education_plan_offset=days(28),
        care_plan_label="Care Plan",
        regulatory_body="Jersey Care Commission",
        primary_act="Children (Jersey) Law 2002",
    ),
    JurisdictionRules(
        jurisdiction=Jurisdiction.GUERNSEY,
        display_name="Guernsey",
        allowed_statuses=frozenset({
            LegalStatus.CARE_ORDER_GUERNSEY,
            LegalStatus.SUPERVISION_ORDER_GUERNSEY,
        } | _NON_UK_JUSTICE),
        review_offsets=_STANDARD_REVIEWS_28,
        health_assessment_offset=days(28),
        education_plan_offset=days(28),
        care_plan_label="Care Plan",
        regulatory_body="Committee for Health & Social Care",
        primary_act="Children (Guernsey and Alderney) Law 2008",
    ),
    JurisdictionRules(
        jurisdiction=Jurisdiction.ISLE_OF_MAN,
        display_name="Isle of Man",
        allowed_statuses=frozenset({
            LegalStatus.CARE_ORDER_IOM,
            LegalStatus.SUPERVISION_ORDER_IOM,
        } | _NON_UK_JUSTICE),
        review_offsets=_STANDARD_REVIEWS_28,
        health_assessment_offset=days(28),
        education_plan_offset=days(28),
        care_plan_label="Care Plan",
        regulatory_body="Registration and Inspection Unit",
        primary_act="Children and Young Persons Act 2001",
    ),
)


JURISDICTION_RULES: Mapping[Jurisdiction, JurisdictionRules] = MappingProxyType(
    {rules.jurisdiction: rules for rules in _RULES}
)


def _status_index() -> Mapping[LegalStatus, frozenset[Jurisdiction]]:
    index: dict[LegalStatus, set[Jurisdiction]] = {status: set() for status in LegalStatus}
    for rules in _RULES:
        for status in rules.allowed_statuses:
            index[status].add(rules.jurisdiction)
    return MappingProxyType({k: frozenset(v) for k, v in index.items()})


# LegalStatus -> jurisdictions where it is valid
STATUS_JURISDICTIONS: Mapping[LegalStatus, frozenset[Jurisdiction]] = _status_index()


def get_rules(jurisdiction: Jurisdiction) -> JurisdictionRules:
    """Get the rule entry for a jurisdiction."""
    return JURISDICTION_RULES[jurisdiction]


def jurisdictions_for_status(legal_status: LegalStatus) -> frozenset[Jurisdiction]:
    """Jurisdictions in which a legal status is valid."""
    return STATUS_JURISDICTIONS[legal_status]
