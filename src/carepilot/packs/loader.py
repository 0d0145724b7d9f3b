"""
CarePilot Weights Pack Loader

Loads and validates weights packs from YAML or JSON files.

Converts Pydantic schema models to CarePilot weight models.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError as SchemaValidationError

from ..exceptions import (
    WeightsPackLoadError,
    WeightsPackValidationError,
    WeightsPackVersionMismatch,
)
from ..models import (
    ContinuityWeights,
    MatchingWeights,
    RiskWeights,
    ScoringWeights,
    WeightsPack,
)
from .schema import (
    SCHEMA_VERSION,
    MatchingSchema,
    RiskWeightsSchema,
    ScoringWeightsSchema,
    WeightsPackSchema,
    check_schema_version,
    validate_weights_pack,
)

logger = logging.getLogger(__name__)

DEFAULT_PACK_PATH = Path(__file__).parent / "data" / "default_weights.yaml"


# =============================================================================
# Schema to Model Converters
# =============================================================================

def _convert_scoring(schema: ScoringWeightsSchema) -> ScoringWeights:
    """Convert ScoringWeightsSchema to ScoringWeights model."""
    return ScoringWeights(
        proximity=schema.proximity,
        continuity=schema.continuity,
        culture=schema.culture,
        availability=schema.availability,
    )


def _convert_matching(schema: MatchingSchema) -> MatchingWeights:
    """Convert MatchingSchema to MatchingWeights model."""
    return MatchingWeights(
        standard=_convert_scoring(schema.standard),
        immediate=_convert_scoring(schema.immediate),
        continuity=ContinuityWeights(
            school=schema.continuity.school,
            siblings=schema.continuity.siblings,
        ),
        max_distance_km=schema.max_distance_km,
        school_max_distance_km=schema.school_max_distance_km,
        unknown_location_score=schema.unknown_location_score,
        delay_penalty_per_day=schema.delay_penalty_per_day,
        capacity_base=schema.capacity_base,
        capacity_step=schema.capacity_step,
    )


def _convert_risk(schema: RiskWeightsSchema) -> RiskWeights:
    """Convert RiskWeightsSchema to RiskWeights model."""
    return RiskWeights(
        placement_moves=schema.placement_moves,
        move_recency=schema.move_recency,
        incidents=schema.incidents,
        missing_episodes=schema.missing_episodes,
        carer_stress=schema.carer_stress,
    )


def _convert_weights_pack(schema: WeightsPackSchema) -> WeightsPack:
    """Convert WeightsPackSchema to WeightsPack model."""
    return WeightsPack(
        id=schema.id,
        version=schema.version,
        name=schema.name,
        description=schema.description,
        matching=_convert_matching(schema.matching),
        risk=_convert_risk(schema.risk),
    )


# =============================================================================
# Weights Pack Loader
# =============================================================================

class WeightsPackLoader:
    """
    Loads weights packs from YAML or JSON files.

    Usage:
        loader = WeightsPackLoader()
        pack = loader.load("path/to/weights.yaml")
        pack.matching.standard.proximity  # Decimal("0.30")
    """

    def __init__(self, strict_version: bool = True):
        """
        Initialize the loader.

        Args:
            strict_version: If True, reject packs with incompatible schema versions
        """
        self.strict_version = strict_version
        self._packs: dict[str, WeightsPack] = {}

    def load(self, path: Union[str, Path]) -> WeightsPack:
        """
        Load a weights pack from a file.

        Raises:
            WeightsPackLoadError: If file cannot be read or parsed
            WeightsPackValidationError: If validation fails
            WeightsPackVersionMismatch: If schema version incompatible
        """
        path = Path(path)

        try:
            data = self._load_file(path)
        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            raise WeightsPackLoadError(
                message=f"Failed to load weights pack: {e}",
                details={"path": str(path), "error": str(e)},
            ) from e

        pack = self.load_data(data, source=str(path))
        logger.info("Loaded weights pack %s from %s", pack.version_tag, path)
        return pack

    def load_data(self, data: Any, source: str = "<data>") -> WeightsPack:
        """
        Validate and convert an already-parsed weights pack.

        Raises:
            WeightsPackValidationError: If validation fails
            WeightsPackVersionMismatch: If schema version incompatible
        """
        if not isinstance(data, dict):
            raise WeightsPackValidationError(
                message="Weights pack must be a mapping",
                details={"path": source, "type": type(data).__name__},
            )

        if self.strict_version and not check_schema_version(data):
            pack_version = data.get("schema_version", "unknown")
            raise WeightsPackVersionMismatch(
                message=f"Schema version mismatch: pack has {pack_version}, expected {SCHEMA_VERSION}",
                details={
                    "pack_version": pack_version,
                    "expected_version": SCHEMA_VERSION,
                    "path": source,
                },
            )

        try:
            schema = validate_weights_pack(data)
        except SchemaValidationError as e:
            raise WeightsPackValidationError(
                message=f"Weights pack validation failed: {e.error_count()} errors",
                details={
                    "errors": e.errors(include_url=False, include_context=False),
                    "path": source,
                },
            ) from e

        pack = _convert_weights_pack(schema)
        self._packs[pack.version_tag] = pack
        return pack

    def _load_file(self, path: Path) -> Any:
        """Load data from YAML or JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                return json.load(f)
            return yaml.safe_load(f)

    def get_pack(self, version_tag: str) -> Optional[WeightsPack]:
        """Get a loaded pack by "<id>@<version>"."""
        return self._packs.get(version_tag)

    def list_packs(self) -> list[str]:
        """Version tags of all loaded packs."""
        return list(self._packs.keys())


# =============================================================================
# Convenience Functions
# =============================================================================

def load_weights_pack(path: Union[str, Path]) -> WeightsPack:
    """Load a weights pack from a file."""
    return WeightsPackLoader().load(path)


def load_weights_pack_from_string(content: str, format: str = "yaml") -> WeightsPack:
    """
    Load a weights pack from a string.

    Args:
        content: YAML or JSON string
        format: "yaml" or "json"
    """
    try:
        if format.lower() == "json":
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise WeightsPackLoadError(
            message=f"Failed to parse weights pack: {e}",
            details={"format": format, "error": str(e)},
        ) from e
    return WeightsPackLoader().load_data(data, source=f"<{format} string>")


def load_default_weights_pack() -> WeightsPack:
    """Load the bundled default weights pack."""
    return load_weights_pack(DEFAULT_PACK_PATH)
