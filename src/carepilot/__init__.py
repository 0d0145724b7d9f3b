"""
CarePilot: statutory compliance and placement decisions for children's services.

A deterministic engine for the eight British Isles jurisdictions:
- Legal-status validation and statutory deadline calculation
- Placement matching with explainable weighted scores
- Missing-from-placement episode state machine
- Placement-breakdown risk assessment

Usage:
    from carepilot.engine import ComplianceCalculator
    from carepilot.models import Jurisdiction, LegalStatus

    calculator = ComplianceCalculator()
    calculator.validate(Jurisdiction.SCOTLAND, LegalStatus.CSO)
"""
from __future__ import annotations

__version__ = "0.1.0"
