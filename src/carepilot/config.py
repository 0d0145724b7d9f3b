"""
CarePilot Configuration

Settings read from CP_* environment variables, and wiring of the engine
services from those settings.

Environment:
- CP_LOG_LEVEL: logging level (default INFO)
- CP_WEIGHTS_PACK: path to a weights pack (default: bundled pack)
- CP_DEADLINE_WARNING_DAYS: "due soon" window in days (default 7)
- CP_MAX_DISTANCE_KM: override the pack's matching max distance
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .engine import BreakdownRiskAnalyzer, DeadlineTracker, PlacementMatchingService
from .exceptions import ValidationError
from .models import WeightsPack
from .packs import DEFAULT_PACK_PATH, load_weights_pack

ENV_PREFIX = "CP_"


@dataclass(frozen=True)
class Settings:
    """Runtime settings."""
    log_level: str = "INFO"
    weights_pack_path: Path = DEFAULT_PACK_PATH
    deadline_warning_days: int = 7
    max_distance_km: Optional[float] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> Settings:
        """
        Build settings from the environment.

        Raises:
            ValidationError: a variable has a malformed value
        """
        env = os.environ if environ is None else environ

        def _get(name: str) -> Optional[str]:
            value = env.get(ENV_PREFIX + name)
            return value.strip() if value and value.strip() else None

        warning_days = _parse(_get("DEADLINE_WARNING_DAYS"), int, "DEADLINE_WARNING_DAYS")
        max_distance = _parse(_get("MAX_DISTANCE_KM"), float, "MAX_DISTANCE_KM")
        pack_path = _get("WEIGHTS_PACK")

        if warning_days is not None and warning_days < 0:
            raise ValidationError(
                message=f"{ENV_PREFIX}DEADLINE_WARNING_DAYS must be >= 0, got {warning_days}",
                details={"variable": ENV_PREFIX + "DEADLINE_WARNING_DAYS", "value": warning_days},
            )
        if max_distance is not None and max_distance <= 0:
            raise ValidationError(
                message=f"{ENV_PREFIX}MAX_DISTANCE_KM must be positive, got {max_distance}",
                details={"variable": ENV_PREFIX + "MAX_DISTANCE_KM", "value": max_distance},
            )

        return cls(
            log_level=(_get("LOG_LEVEL") or "INFO").upper(),
            weights_pack_path=Path(pack_path) if pack_path else DEFAULT_PACK_PATH,
            deadline_warning_days=7 if warning_days is None else warning_days,
            max_distance_km=max_distance,
        )

    def load_weights_pack(self) -> WeightsPack:
        """Load the configured weights pack, applying the distance override."""
        pack = load_weights_pack(self.weights_pack_path)
        if self.max_distance_km is None:
            return pack
        return WeightsPack(
            id=pack.id,
            version=pack.version,
            name=pack.name,
            description=pack.description,
            matching=pack.matching.with_max_distance(self.max_distance_km),
            risk=pack.risk,
        )

    def deadline_tracker(self) -> DeadlineTracker:
        return DeadlineTracker(warning_threshold_days=self.deadline_warning_days)

    def matching_service(self, pack: Optional[WeightsPack] = None) -> PlacementMatchingService:
        pack = pack or self.load_weights_pack()
        return PlacementMatchingService(weights=pack.matching, weights_version=pack.version_tag)

    def risk_analyzer(self, pack: Optional[WeightsPack] = None) -> BreakdownRiskAnalyzer:
        pack = pack or self.load_weights_pack()
        return BreakdownRiskAnalyzer(weights=pack.risk, weights_version=pack.version_tag)


def _parse(raw: Optional[str], convert, name: str):
    if raw is None:
        return None
    try:
        return convert(raw)
    except ValueError:
        raise ValidationError(
            message=f"Malformed value for {ENV_PREFIX}{name}: {raw!r}",
            details={"variable": ENV_PREFIX + name, "value": raw},
        ) from None
