"""
CarePilot CLI Tests
"""
from __future__ import annotations

import json
import logging

import pytest

from carepilot.cli import main
from carepilot.logging_setup import LOGGER_NAME
from carepilot.packs import DEFAULT_PACK_PATH


@pytest.fixture(autouse=True)
def reset_logging(monkeypatch):
    monkeypatch.delenv("CP_LOG_LEVEL", raising=False)
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


class TestDeadlinesCommand:

    def test_prints_deadlines(self, capsys) -> None:
        assert main(["deadlines", "SCOTLAND", "2025-01-01"]) == 0

        out = capsys.readouterr().out
        assert "Scotland (Child's Plan)" in out
        assert "statutory_review #1" in out
        assert "2025-01-29" in out

    def test_json_output(self, capsys) -> None:
        assert main(["deadlines", "ENGLAND", "2025-01-01", "--sequence", "2", "--json"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["review"]["due_date"] == "2025-04-01"
        assert data["education_plan"]["due_date"] == "2025-01-21"

    def test_without_education_plan(self, capsys) -> None:
        assert main(["deadlines", "ENGLAND", "2025-01-01", "--no-education-plan"]) == 0
        assert "education_plan" not in capsys.readouterr().out

    def test_bad_sequence(self, capsys) -> None:
        assert main(["deadlines", "ENGLAND", "2025-01-01", "--sequence", "0"]) == 1
        assert "CP_VALIDATION_ERROR" in capsys.readouterr().err

    def test_bad_date(self, capsys) -> None:
        assert main(["deadlines", "ENGLAND", "01/01/2025"]) == 1
        assert "Malformed date" in capsys.readouterr().err


class TestValidateStatusCommand:

    def test_valid(self, capsys) -> None:
        assert main(["validate-status", "SCOTLAND", "CSO"]) == 0
        assert "valid" in capsys.readouterr().out

    def test_invalid(self, capsys) -> None:
        assert main(["validate-status", "SCOTLAND", "CARE_ORDER_IE"]) == 1
        assert "CARE_ORDER_IE not valid for SCOTLAND" in capsys.readouterr().err


class TestPackAndRulesCommands:

    def test_validate_default_pack(self, capsys) -> None:
        assert main(["validate-pack", str(DEFAULT_PACK_PATH)]) == 0
        assert "VALID: default@2025.1" in capsys.readouterr().out

    def test_validate_missing_pack(self, tmp_path, capsys) -> None:
        assert main(["validate-pack", str(tmp_path / "absent.yaml")]) == 1
        assert "CP_WEIGHTS_PACK_LOAD_ERROR" in capsys.readouterr().err

    def test_rules(self, capsys) -> None:
        assert main(["rules", "WALES"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["care_plan_label"] == "Care and Support Plan"

    def test_no_command(self, capsys) -> None:
        assert main([]) == 1
