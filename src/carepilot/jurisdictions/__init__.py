"""
CarePilot Jurisdictions

Static per-jurisdiction rule table for the eight British Isles
jurisdictions.

Provides:
- StatutoryOffset for day/month timescales
- JurisdictionRules, the tagged rule entry
- JURISDICTION_RULES, the read-only table
- Lookup helpers

Usage:
    from carepilot.jurisdictions import get_rules
    from carepilot.models import Jurisdiction

    rules = get_rules(Jurisdiction.SCOTLAND)
    rules.care_plan_label            # "Child's Plan"
    rules.review_offset(1).display   # "28 days"
"""
from __future__ import annotations

from .base import (
    JurisdictionRules,
    StatutoryOffset,
    add_months,
    freeze_transitions,
)
from .table import (
    JURISDICTION_RULES,
    STATUS_JURISDICTIONS,
    get_rules,
    jurisdictions_for_status,
)

__all__ = [
    "JurisdictionRules",
    "StatutoryOffset",
    "add_months",
    "freeze_transitions",
    "JURISDICTION_RULES",
    "STATUS_JURISDICTIONS",
    "get_rules",
    "jurisdictions_for_status",
]
