"""
CarePilot Models

Domain models for the compliance and placement-decision engine.

Usage:
    from carepilot.models import (
        Child, Jurisdiction, LegalStatus,
        Placement, PlacementType, ProviderProfile,
        MissingEpisode, RiskAssessment,
    )
"""
from __future__ import annotations

from .enums import (
    AlertRecipient,
    AssessmentTrigger,
    DeadlineStatus,
    DeadlineType,
    EpisodeEvent,
    EpisodeState,
    ExclusionReason,
    IncidentSeverity,
    Jurisdiction,
    LegalStatus,
    MatchUrgency,
    MissingRiskLevel,
    MissingTrigger,
    OffsetUnit,
    PlacementEndReason,
    PlacementStatus,
    PlacementType,
    RiskBand,
)
from .child import Child, DeadlineSet, StatutoryDeadline
from .placement import (
    ChildProfile,
    ExcludedProvider,
    Location,
    MatchPreferences,
    MatchResult,
    Placement,
    PlacementCandidate,
    ProviderProfile,
    SubScores,
)
from .missing import OPEN_STATES, MissingDetails, MissingEpisode, ReturnDetails
from .risk import (
    CarerStressSignals,
    IncidentRecord,
    PlacementTransition,
    RiskAssessment,
    RiskFactor,
)
from .weights import (
    DEFAULT_WEIGHTS_PACK,
    IMMEDIATE_SCORING_WEIGHTS,
    ContinuityWeights,
    MatchingWeights,
    RiskWeights,
    ScoringWeights,
    WeightsPack,
)

__all__ = [
    # Enums
    "AlertRecipient",
    "AssessmentTrigger",
    "DeadlineStatus",
    "DeadlineType",
    "EpisodeEvent",
    "EpisodeState",
    "ExclusionReason",
    "IncidentSeverity",
    "Jurisdiction",
    "LegalStatus",
    "MatchUrgency",
    "MissingRiskLevel",
    "MissingTrigger",
    "OffsetUnit",
    "PlacementEndReason",
    "PlacementStatus",
    "PlacementType",
    "RiskBand",
    # Child
    "Child",
    "DeadlineSet",
    "StatutoryDeadline",
    # Placement / matching
    "ChildProfile",
    "ExcludedProvider",
    "Location",
    "MatchPreferences",
    "MatchResult",
    "Placement",
    "PlacementCandidate",
    "ProviderProfile",
    "SubScores",
    # Missing
    "OPEN_STATES",
    "MissingDetails",
    "MissingEpisode",
    "ReturnDetails",
    # Risk
    "CarerStressSignals",
    "IncidentRecord",
    "PlacementTransition",
    "RiskAssessment",
    "RiskFactor",
    # Weights
    "DEFAULT_WEIGHTS_PACK",
    "IMMEDIATE_SCORING_WEIGHTS",
    "ContinuityWeights",
    "MatchingWeights",
    "RiskWeights",
    "ScoringWeights",
    "WeightsPack",
]
