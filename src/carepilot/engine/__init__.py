"""
CarePilot Engine

Core services for statutory compliance and placement decisions.

Services:
- ComplianceCalculator: Validate legal statuses and compute statutory deadlines
- ChildRecordService: Intake, legal-status change, cross-border transfer, reviews
- DeadlineTracker: Status of computed deadlines
- PlacementMatchingService: Score and rank candidate providers
- PlacementLifecycleService: Activate, end and report on placements
- MissingEpisodeService: Missing-from-placement state machine
- BreakdownRiskAnalyzer: Weighted placement-breakdown risk

Usage:
    from carepilot.engine import (
        ComplianceCalculator,
        ChildRecordService,
        PlacementMatchingService,
        MissingEpisodeService,
        BreakdownRiskAnalyzer,
    )
"""
from __future__ import annotations

from .compliance_calculator import (
    ComplianceCalculator,
    care_plan_terminology,
    coerce_date,
    coerce_jurisdiction,
    coerce_legal_status,
    coerce_timestamp,
    education_plan_due_date,
    health_assessment_due_date,
    is_legal_status_valid,
    next_statutory_review_date,
    validate_legal_status,
)
from .child_records import (
    MAX_INTAKE_AGE,
    ChildRecordService,
    change_legal_status,
    intake,
    record_review,
    transfer_jurisdiction,
)
from .deadline_tracker import DeadlineTracker, TrackedDeadline
from .placement_matching import (
    IMMEDIATE_PLACEMENT_TYPES,
    PlacementMatchingService,
    candidate_sort_key,
    eligibility_failures,
    haversine_km,
    jaccard_similarity,
    sort_candidates,
)
from .placement_lifecycle import (
    PLACEMENT_TRANSITIONS,
    OverdueReview,
    PlacementLifecycleService,
    PlacementReviewDue,
    PlacementStatistics,
    check_placement_transition,
    overdue_placement_reviews,
    placement_review_schedule,
    placement_statistics,
)
from .missing_episodes import (
    EPISODE_TRANSITIONS,
    RETURN_INTERVIEW_WINDOW,
    TRIGGER_POINTS,
    MissingEpisodeService,
    assess_missing_risk,
    next_state,
)
from .breakdown_risk import (
    REVIEW_INTERVAL_DAYS,
    BreakdownRiskAnalyzer,
    RiskAssessmentHistory,
    high_risk_placements,
    review_interval,
    risk_band,
)

__all__ = [
    # Compliance
    "ComplianceCalculator",
    "care_plan_terminology",
    "coerce_date",
    "coerce_jurisdiction",
    "coerce_legal_status",
    "coerce_timestamp",
    "education_plan_due_date",
    "health_assessment_due_date",
    "is_legal_status_valid",
    "next_statutory_review_date",
    "validate_legal_status",
    # Child records
    "MAX_INTAKE_AGE",
    "ChildRecordService",
    "change_legal_status",
    "intake",
    "record_review",
    "transfer_jurisdiction",
    # Deadlines
    "DeadlineTracker",
    "TrackedDeadline",
    # Matching
    "IMMEDIATE_PLACEMENT_TYPES",
    "PlacementMatchingService",
    "candidate_sort_key",
    "eligibility_failures",
    "haversine_km",
    "jaccard_similarity",
    "sort_candidates",
    # Placement lifecycle
    "PLACEMENT_TRANSITIONS",
    "OverdueReview",
    "PlacementLifecycleService",
    "PlacementReviewDue",
    "PlacementStatistics",
    "check_placement_transition",
    "overdue_placement_reviews",
    "placement_review_schedule",
    "placement_statistics",
    # Missing episodes
    "EPISODE_TRANSITIONS",
    "RETURN_INTERVIEW_WINDOW",
    "TRIGGER_POINTS",
    "MissingEpisodeService",
    "assess_missing_risk",
    "next_state",
    # Breakdown risk
    "REVIEW_INTERVAL_DAYS",
    "BreakdownRiskAnalyzer",
    "RiskAssessmentHistory",
    "high_risk_placements",
    "review_interval",
    "risk_band",
]
