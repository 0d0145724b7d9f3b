"""
CarePilot Weights Pack Tests

Validates:
- The bundled default pack loads and matches the code defaults
- Weight sums are enforced
- Unknown fields, bad ids and non-mapping documents fail
- Schema version compatibility
- YAML and JSON sources
"""
from __future__ import annotations

import json
from decimal import Decimal

import pytest
import yaml

from carepilot.exceptions import (
    WeightsPackLoadError,
    WeightsPackValidationError,
    WeightsPackVersionMismatch,
)
from carepilot.models import DEFAULT_WEIGHTS_PACK
from carepilot.packs import (
    DEFAULT_PACK_PATH,
    WeightsPackLoader,
    check_schema_version,
    load_default_weights_pack,
    load_weights_pack,
    load_weights_pack_from_string,
)


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def pack_data():
    """The bundled default pack as a dict."""
    with open(DEFAULT_PACK_PATH, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


# ============================================================================
# DEFAULT PACK
# ============================================================================

class TestDefaultPack:
    """The bundled pack."""

    def test_loads(self) -> None:
        pack = load_default_weights_pack()
        assert pack.version_tag == "default@2025.1"
        assert pack.matching.standard.proximity == Decimal("0.30")
        assert pack.matching.immediate.availability == Decimal("0.80")

    def test_matches_code_defaults(self) -> None:
        pack = load_default_weights_pack()
        assert pack.matching == DEFAULT_WEIGHTS_PACK.matching
        assert pack.risk == DEFAULT_WEIGHTS_PACK.risk

    def test_to_dict(self) -> None:
        data = load_default_weights_pack().to_dict()
        assert data["risk"]["carer_stress"] == "0.25"
        assert data["matching"]["max_distance_km"] == 80.0


# ============================================================================
# VALIDATION
# ============================================================================

class TestValidation:
    """Schema validation failures."""

    def test_scoring_weights_must_sum_to_one(self, pack_data) -> None:
        pack_data["matching"]["standard"]["proximity"] = "0.50"
        with pytest.raises(WeightsPackValidationError) as exc_info:
            WeightsPackLoader().load_data(pack_data)
        assert "errors" in exc_info.value.details

    def test_risk_weights_must_sum_to_one(self, pack_data) -> None:
        pack_data["risk"]["incidents"] = "0.40"
        with pytest.raises(WeightsPackValidationError):
            WeightsPackLoader().load_data(pack_data)

    def test_negative_weight(self, pack_data) -> None:
        pack_data["matching"]["standard"]["culture"] = "-0.20"
        pack_data["matching"]["standard"]["availability"] = "0.60"
        with pytest.raises(WeightsPackValidationError):
            WeightsPackLoader().load_data(pack_data)

    def test_immediate_profile_must_ignore_proximity(self, pack_data) -> None:
        pack_data["matching"]["immediate"] = {
            "proximity": "0.10",
            "continuity": "0",
            "culture": "0.10",
            "availability": "0.80",
        }
        with pytest.raises(WeightsPackValidationError):
            WeightsPackLoader().load_data(pack_data)

    def test_unknown_field_rejected(self, pack_data) -> None:
        pack_data["matching"]["bonus"] = "1"
        with pytest.raises(WeightsPackValidationError):
            WeightsPackLoader().load_data(pack_data)

    def test_missing_section_rejected(self, pack_data) -> None:
        del pack_data["risk"]
        with pytest.raises(WeightsPackValidationError):
            WeightsPackLoader().load_data(pack_data)

    def test_id_with_at_sign_rejected(self, pack_data) -> None:
        pack_data["id"] = "default@2"
        with pytest.raises(WeightsPackValidationError):
            WeightsPackLoader().load_data(pack_data)

    def test_non_mapping_rejected(self) -> None:
        with pytest.raises(WeightsPackValidationError, match="must be a mapping"):
            load_weights_pack_from_string("- a\n- b\n")

    def test_non_positive_distance_rejected(self, pack_data) -> None:
        pack_data["matching"]["max_distance_km"] = 0
        with pytest.raises(WeightsPackValidationError):
            WeightsPackLoader().load_data(pack_data)


# ============================================================================
# VERSIONING
# ============================================================================

class TestSchemaVersion:
    """Major-version compatibility."""

    def test_minor_version_compatible(self) -> None:
        assert check_schema_version({"schema_version": "1.4.0"})

    def test_major_version_incompatible(self) -> None:
        assert not check_schema_version({"schema_version": "2.0.0"})

    def test_mismatch_rejected(self, pack_data) -> None:
        pack_data["schema_version"] = "2.0.0"
        with pytest.raises(WeightsPackVersionMismatch) as exc_info:
            WeightsPackLoader().load_data(pack_data)
        assert exc_info.value.details["expected_version"] == "1.0.0"

    def test_mismatch_allowed_when_not_strict(self, pack_data) -> None:
        pack_data["schema_version"] = "2.0.0"
        pack = WeightsPackLoader(strict_version=False).load_data(pack_data)
        assert pack.id == "default"


# ============================================================================
# SOURCES
# ============================================================================

class TestSources:
    """Files and strings."""

    def test_json_file(self, tmp_path, pack_data) -> None:
        pack_data["id"] = "json-pack"
        path = tmp_path / "weights.json"
        path.write_text(json.dumps(pack_data), encoding="utf-8")

        pack = load_weights_pack(path)
        assert pack.version_tag == "json-pack@2025.1"

    def test_json_string(self, pack_data) -> None:
        pack = load_weights_pack_from_string(json.dumps(pack_data), format="json")
        assert pack.risk.carer_stress == Decimal("0.25")

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(WeightsPackLoadError):
            load_weights_pack(tmp_path / "absent.yaml")

    def test_malformed_yaml(self) -> None:
        with pytest.raises(WeightsPackLoadError):
            load_weights_pack_from_string("matching: [unclosed")

    def test_malformed_json_file(self, tmp_path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(WeightsPackLoadError):
            load_weights_pack(path)

    def test_loader_keeps_loaded_packs(self, pack_data) -> None:
        loader = WeightsPackLoader()
        loader.load(DEFAULT_PACK_PATH)
        pack_data["version"] = "2025.2"
        loader.load_data(pack_data)

        assert loader.list_packs() == ["default@2025.1", "default@2025.2"]
        assert loader.get_pack("default@2025.2").version == "2025.2"
        assert loader.get_pack("default@1999.1") is None
