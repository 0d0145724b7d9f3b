"""
CarePilot Configuration Tests
"""
from __future__ import annotations

import pytest
import yaml

from carepilot.config import Settings
from carepilot.exceptions import ValidationError
from carepilot.packs import DEFAULT_PACK_PATH


class TestFromEnv:
    """Reading CP_* variables."""

    def test_defaults(self) -> None:
        settings = Settings.from_env({})
        assert settings.log_level == "INFO"
        assert settings.weights_pack_path == DEFAULT_PACK_PATH
        assert settings.deadline_warning_days == 7
        assert settings.max_distance_km is None

    def test_values(self, tmp_path) -> None:
        settings = Settings.from_env({
            "CP_LOG_LEVEL": "debug",
            "CP_WEIGHTS_PACK": str(tmp_path / "pack.yaml"),
            "CP_DEADLINE_WARNING_DAYS": "14",
            "CP_MAX_DISTANCE_KM": "40",
        })
        assert settings.log_level == "DEBUG"
        assert settings.weights_pack_path == tmp_path / "pack.yaml"
        assert settings.deadline_warning_days == 14
        assert settings.max_distance_km == 40.0

    def test_blank_values_use_defaults(self) -> None:
        settings = Settings.from_env({"CP_LOG_LEVEL": "  ", "CP_DEADLINE_WARNING_DAYS": ""})
        assert settings.log_level == "INFO"
        assert settings.deadline_warning_days == 7

    @pytest.mark.parametrize(
        "name,value",
        [
            ("CP_DEADLINE_WARNING_DAYS", "soon"),
            ("CP_DEADLINE_WARNING_DAYS", "-1"),
            ("CP_MAX_DISTANCE_KM", "far"),
            ("CP_MAX_DISTANCE_KM", "0"),
        ],
    )
    def test_invalid_values(self, name, value) -> None:
        with pytest.raises(ValidationError) as exc_info:
            Settings.from_env({name: value})
        assert exc_info.value.details["variable"] == name

    def test_reads_process_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("CP_DEADLINE_WARNING_DAYS", "3")
        assert Settings.from_env().deadline_warning_days == 3


class TestWiring:
    """Services built from settings."""

    def test_distance_override(self) -> None:
        settings = Settings(max_distance_km=40.0)
        pack = settings.load_weights_pack()
        assert pack.matching.max_distance_km == 40.0
        assert settings.matching_service(pack).weights.max_distance_km == 40.0

    def test_custom_pack(self, tmp_path) -> None:
        with open(DEFAULT_PACK_PATH, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        data["id"] = "regional"
        path = tmp_path / "regional.yaml"
        path.write_text(yaml.safe_dump(data), encoding="utf-8")

        settings = Settings(weights_pack_path=path)
        assert settings.matching_service().weights_version == "regional@2025.1"
        assert settings.risk_analyzer().weights_version == "regional@2025.1"

    def test_deadline_tracker(self) -> None:
        assert Settings(deadline_warning_days=10).deadline_tracker().warning_threshold_days == 10
