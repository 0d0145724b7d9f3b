"""
CarePilot Weights Pack Schemas

Pydantic models for validating weights pack YAML/JSON files.

A weights pack is the versioned parameter set behind placement matching
and breakdown-risk scoring. These schemas map to the domain weight
models in carepilot.models.weights.

Schema versioning:
- schema_version field tracks breaking changes
- Loaders should check version compatibility
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


# =============================================================================
# Schema Version
# =============================================================================

SCHEMA_VERSION = "1.0.0"

_TOLERANCE = Decimal("0.001")


# =============================================================================
# Matching
# =============================================================================

class ScoringWeightsSchema(BaseModel):
    """Weights of the four matching sub-scores."""
    proximity: Decimal = Field(..., ge=0)
    continuity: Decimal = Field(..., ge=0)
    culture: Decimal = Field(..., ge=0)
    availability: Decimal = Field(..., ge=0)

    @model_validator(mode="after")
    def validate_sum(self) -> "ScoringWeightsSchema":
        total = self.proximity + self.continuity + self.culture + self.availability
        if abs(total - Decimal("1.0")) > _TOLERANCE:
            raise ValueError(f"scoring weights must sum to 1.0, got {total}")
        return self

    model_config = {"extra": "forbid"}


class ContinuityWeightsSchema(BaseModel):
    """School / sibling split of the continuity sub-score."""
    school: Decimal = Field(Decimal("0.50"), ge=0)
    siblings: Decimal = Field(Decimal("0.50"), ge=0)

    @model_validator(mode="after")
    def validate_sum(self) -> "ContinuityWeightsSchema":
        total = self.school + self.siblings
        if abs(total - Decimal("1.0")) > _TOLERANCE:
            raise ValueError(f"continuity weights must sum to 1.0, got {total}")
        return self

    model_config = {"extra": "forbid"}


class MatchingSchema(BaseModel):
    """Placement matching parameters."""
    standard: ScoringWeightsSchema
    immediate: ScoringWeightsSchema
    continuity: ContinuityWeightsSchema = Field(default_factory=ContinuityWeightsSchema)
    max_distance_km: float = Field(80.0, gt=0, description="Distance at which proximity reaches zero")
    school_max_distance_km: float = Field(25.0, gt=0)
    unknown_location_score: Decimal = Field(Decimal("50"), ge=0, le=100)
    delay_penalty_per_day: Decimal = Field(Decimal("10"), ge=0)
    capacity_base: Decimal = Field(Decimal("0.6"), ge=0, le=1)
    capacity_step: Decimal = Field(Decimal("0.2"), ge=0)

    @field_validator("immediate")
    @classmethod
    def validate_immediate(cls, v: ScoringWeightsSchema) -> ScoringWeightsSchema:
        """IMMEDIATE requests are availability-first."""
        if v.proximity != 0 or v.continuity != 0:
            raise ValueError("immediate profile must give proximity and continuity zero weight")
        return v

    model_config = {"extra": "forbid"}


# =============================================================================
# Breakdown Risk
# =============================================================================

class RiskWeightsSchema(BaseModel):
    """Breakdown-risk factor weights."""
    placement_moves: Decimal = Field(..., ge=0)
    move_recency: Decimal = Field(..., ge=0)
    incidents: Decimal = Field(..., ge=0)
    missing_episodes: Decimal = Field(..., ge=0)
    carer_stress: Decimal = Field(..., ge=0)

    @model_validator(mode="after")
    def validate_sum(self) -> "RiskWeightsSchema":
        total = (
            self.placement_moves
            + self.move_recency
            + self.incidents
            + self.missing_episodes
            + self.carer_stress
        )
        if abs(total - Decimal("1.0")) > _TOLERANCE:
            raise ValueError(f"risk weights must sum to 1.0, got {total}")
        return self

    model_config = {"extra": "forbid"}


# =============================================================================
# Weights Pack Schema (Top-Level)
# =============================================================================

class WeightsPackSchema(BaseModel):
    """Top-level schema for a weights pack YAML/JSON file."""
    schema_version: str = Field(SCHEMA_VERSION, description="Schema version for compatibility")
    id: str = Field(..., min_length=1, description="Pack identifier (e.g., 'default')")
    version: str = Field(..., min_length=1, description="Version string (e.g., '2025.1')")
    name: str = ""
    description: Optional[str] = None

    matching: MatchingSchema
    risk: RiskWeightsSchema

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if "@" in v:
            raise ValueError("pack id must not contain '@'")
        return v

    model_config = {
        "extra": "forbid",  # Reject unknown fields
    }


# =============================================================================
# Validation Helpers
# =============================================================================

def validate_weights_pack(data: dict[str, Any]) -> WeightsPackSchema:
    """
    Validate a weights pack dictionary against the schema.

    Raises:
        pydantic.ValidationError: If validation fails
    """
    return WeightsPackSchema.model_validate(data)


def check_schema_version(data: dict[str, Any]) -> bool:
    """
    Check if a weights pack's schema version is compatible.

    Only the major version must match.
    """
    pack_version = str(data.get("schema_version", SCHEMA_VERSION))
    pack_major = pack_version.split(".")[0]
    current_major = SCHEMA_VERSION.split(".")[0]
    return pack_major == current_major
