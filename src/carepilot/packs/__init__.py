"""
CarePilot Weights Packs

Schema validation and loading for weights packs.

Weights packs are YAML or JSON files holding the versioned parameters
of placement matching and breakdown-risk scoring. A default pack ships
with the package.

Usage:
    from carepilot.packs import load_weights_pack, load_default_weights_pack

    pack = load_default_weights_pack()
    pack = load_weights_pack("path/to/weights.yaml")
"""
from __future__ import annotations

from .loader import (
    DEFAULT_PACK_PATH,
    WeightsPackLoader,
    load_default_weights_pack,
    load_weights_pack,
    load_weights_pack_from_string,
)
from .schema import (
    SCHEMA_VERSION,
    ContinuityWeightsSchema,
    MatchingSchema,
    RiskWeightsSchema,
    ScoringWeightsSchema,
    WeightsPackSchema,
    check_schema_version,
    validate_weights_pack,
)

__all__ = [
    # Loader
    "DEFAULT_PACK_PATH",
    "WeightsPackLoader",
    "load_default_weights_pack",
    "load_weights_pack",
    "load_weights_pack_from_string",
    # Schema
    "SCHEMA_VERSION",
    "ContinuityWeightsSchema",
    "MatchingSchema",
    "RiskWeightsSchema",
    "ScoringWeightsSchema",
    "WeightsPackSchema",
    "check_schema_version",
    "validate_weights_pack",
]
