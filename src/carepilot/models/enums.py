"""
CarePilot Enumerations

All enumeration types used throughout the CarePilot engine.
Organized by domain area for clarity.

All enums inherit from (str, Enum) for JSON serialization compatibility.
Values are the upper-case names transmitted by the web layer.
"""
from __future__ import annotations

from enum import Enum


# =============================================================================
# Jurisdictions and Legal Status
# =============================================================================

class Jurisdiction(str, Enum):
    """British Isles territories governing children's social care."""
    ENGLAND = "ENGLAND"                    # Ofsted
    WALES = "WALES"                        # Care Inspectorate Wales
    SCOTLAND = "SCOTLAND"                  # Care Inspectorate
    NORTHERN_IRELAND = "NORTHERN_IRELAND"  # RQIA
    IRELAND = "IRELAND"                    # HIQA
    JERSEY = "JERSEY"
    GUERNSEY = "GUERNSEY"
    ISLE_OF_MAN = "ISLE_OF_MAN"


class LegalStatus(str, Enum):
    """
    Statutory basis under which a child is looked after.

    Which jurisdictions accept a status is held by the jurisdiction
    rule table, not here.
    """
    # England / Wales (Children Act 1989)
    SECTION_20 = "SECTION_20"
    SECTION_31 = "SECTION_31"
    SECTION_38 = "SECTION_38"
    POLICE_PROTECTION = "POLICE_PROTECTION"
    EMERGENCY_PROTECTION_ORDER = "EMERGENCY_PROTECTION_ORDER"

    # Scotland
    COMPULSORY_SUPERVISION_ORDER = "COMPULSORY_SUPERVISION_ORDER"
    CSO = "COMPULSORY_SUPERVISION_ORDER"  # alias
    PERMANENCE_ORDER = "PERMANENCE_ORDER"
    CHILD_PROTECTION_ORDER = "CHILD_PROTECTION_ORDER"

    # Northern Ireland
    CARE_ORDER_NI = "CARE_ORDER_NI"
    RESIDENCE_ORDER_NI = "RESIDENCE_ORDER_NI"
    EMERGENCY_PROTECTION_ORDER_NI = "EMERGENCY_PROTECTION_ORDER_NI"

    # Ireland
    CARE_ORDER_IE = "CARE_ORDER_IE"
    INTERIM_CARE_ORDER_IE = "INTERIM_CARE_ORDER_IE"
    EMERGENCY_CARE_ORDER_IE = "EMERGENCY_CARE_ORDER_IE"
    VOLUNTARY_CARE_IE = "VOLUNTARY_CARE_IE"

    # Crown Dependencies
    CARE_ORDER_JERSEY = "CARE_ORDER_JERSEY"
    SUPERVISION_ORDER_JERSEY = "SUPERVISION_ORDER_JERSEY"
    CARE_ORDER_GUERNSEY = "CARE_ORDER_GUERNSEY"
    SUPERVISION_ORDER_GUERNSEY = "SUPERVISION_ORDER_GUERNSEY"
    CARE_ORDER_IOM = "CARE_ORDER_IOM"
    SUPERVISION_ORDER_IOM = "SUPERVISION_ORDER_IOM"

    # Youth justice / other
    REMAND = "REMAND"
    CRIMINAL_JUSTICE = "CRIMINAL_JUSTICE"
    IMMIGRATION_DETENTION = "IMMIGRATION_DETENTION"


class OffsetUnit(str, Enum):
    """Unit of a statutory timescale offset."""
    DAYS = "days"
    MONTHS = "months"


class DeadlineType(str, Enum):
    """Statutory deadlines computed for a child."""
    STATUTORY_REVIEW = "statutory_review"
    HEALTH_ASSESSMENT = "health_assessment"
    EDUCATION_PLAN = "education_plan"


class DeadlineStatus(str, Enum):
    """Status of a deadline relative to a reference date."""
    PENDING = "pending"            # Deadline in future
    DUE_SOON = "due_soon"          # Within warning threshold
    DUE_TODAY = "due_today"        # Deadline is today
    OVERDUE = "overdue"            # Past deadline


# =============================================================================
# Placements
# =============================================================================

class PlacementType(str, Enum):
    """Kind of care setting requested or provided."""
    FOSTER = "FOSTER"
    RESIDENTIAL = "RESIDENTIAL"
    KINSHIP = "KINSHIP"
    EMERGENCY = "EMERGENCY"
    RESPITE = "RESPITE"
    SHORT_BREAK = "SHORT_BREAK"
    SECURE = "SECURE"
    SEMI_INDEPENDENT = "SEMI_INDEPENDENT"
    MOTHER_AND_BABY = "MOTHER_AND_BABY"
    THERAPEUTIC = "THERAPEUTIC"


class PlacementStatus(str, Enum):
    """Lifecycle state of a placement."""
    PROPOSED = "proposed"
    ACTIVE = "active"
    ENDED = "ended"


class PlacementEndReason(str, Enum):
    """Why a placement ended."""
    PLANNED_MOVE = "planned_move"
    RETURNED_HOME = "returned_home"
    BREAKDOWN = "breakdown"
    TRANSFERRED = "transferred"
    ADOPTED = "adopted"
    LEFT_CARE = "left_care"
    WITHDRAWN = "withdrawn"        # Proposed placement never started
    OTHER = "other"


class MatchUrgency(str, Enum):
    """
    Urgency of a placement request.

    IMMEDIATE switches the scoring weights to availability-first.
    """
    PLANNED = "planned"
    URGENT = "urgent"
    IMMEDIATE = "immediate"


class ExclusionReason(str, Enum):
    """Hard eligibility gate failures for a candidate provider."""
    NO_VACANCY = "no_vacancy"
    INSUFFICIENT_SIBLING_CAPACITY = "insufficient_sibling_capacity"
    PLACEMENT_TYPE_NOT_OFFERED = "placement_type_not_offered"
    REGISTRATION_EXPIRED = "registration_expired"
    DBS_EXPIRED = "dbs_expired"
    PROVIDER_SUSPENDED = "provider_suspended"
    OUT_OF_JURISDICTION = "out_of_jurisdiction"


# =============================================================================
# Missing Episodes
# =============================================================================

class EpisodeState(str, Enum):
    """
    Missing-from-placement lifecycle.

    NONE is implicit: a placement with no open episode. It exists as a member
    so the transition table can express the initial report.
    """
    NONE = "none"
    REPORTED = "reported"
    ACTIVE = "active"
    RETURNED = "returned"
    CLOSED = "closed"


class EpisodeEvent(str, Enum):
    """Requests that drive the missing-episode state machine."""
    REPORT = "report"
    ACTIVATE = "activate"
    RETURN = "return"
    CLOSE = "close"


class MissingRiskLevel(str, Enum):
    """Risk grading of a missing episode."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class MissingTrigger(str, Enum):
    """Trigger factors present when a child is reported missing."""
    SEXUAL_EXPLOITATION_CONCERN = "sexual_exploitation_concern"
    CRIMINAL_EXPLOITATION_CONCERN = "criminal_exploitation_concern"
    SELF_HARM_RISK = "self_harm_risk"
    MEDICAL_NEEDS = "medical_needs"
    UNDER_TWELVE = "under_twelve"
    SUBSTANCE_MISUSE = "substance_misuse"
    REPEAT_EPISODES = "repeat_episodes"
    OUT_OF_AREA = "out_of_area"
    OVERNIGHT = "overnight"
    ADVERSE_WEATHER = "adverse_weather"
    NO_CONTACT = "no_contact"


class AlertRecipient(str, Enum):
    """Collaborators alerted when a child goes missing."""
    SOCIAL_WORKER = "social_worker"
    POLICE_LIAISON = "police_liaison"
    DUTY_TEAM = "duty_team"


# =============================================================================
# Breakdown Risk
# =============================================================================

class RiskBand(str, Enum):
    """Placement-breakdown risk band (fixed thresholds)."""
    MINIMAL = "minimal"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def severity(self) -> int:
        """Ordinal for comparisons (MINIMAL=0 .. CRITICAL=4)."""
        return _BAND_ORDER.index(self)


_BAND_ORDER = [
    RiskBand.MINIMAL,
    RiskBand.LOW,
    RiskBand.MEDIUM,
    RiskBand.HIGH,
    RiskBand.CRITICAL,
]


class IncidentSeverity(str, Enum):
    """Severity of a safeguarding or behavioural incident."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AssessmentTrigger(str, Enum):
    """Why a risk assessment was produced."""
    CONCERN_REPORTED = "concern_reported"
    SCHEDULED = "scheduled"
    PLACEMENT_CHANGE = "placement_change"
