"""
CarePilot Missing Episode Models

Models for "missing from placement" episodes.

Key components:
- MissingDetails: what the reporter knows when a child goes missing
- ReturnDetails: circumstances of the return
- MissingEpisode: the tracked episode record
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from .enums import EpisodeState, MissingRiskLevel, MissingTrigger


@dataclass
class MissingDetails:
    """Information supplied with a missing report."""
    child_id: str
    reported_at: datetime
    last_known_location: Optional[str] = None
    triggers: set[MissingTrigger] = field(default_factory=set)
    police_notified: bool = False
    police_reference: Optional[str] = None
    reported_by: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class ReturnDetails:
    """Information recorded when a child returns."""
    returned_at: datetime
    return_location: Optional[str] = None
    condition: Optional[str] = None
    returned_by: Optional[str] = None


@dataclass
class MissingEpisode:
    """
    A tracked period during which a child is absent without authorization.

    Invariant: at most one episode per placement is open (REPORTED or
    ACTIVE). State changes go through the transition table only.
    """
    id: str
    placement_id: str
    child_id: str
    state: EpisodeState
    reported_at: datetime
    risk_level: MissingRiskLevel

    last_known_location: Optional[str] = None
    risk_triggers: frozenset[MissingTrigger] = frozenset()
    police_notified: bool = False
    police_reference: Optional[str] = None

    # Return
    returned_at: Optional[datetime] = None
    return_location: Optional[str] = None
    return_condition: Optional[str] = None
    independent_return_interview_required: bool = False
    return_interview_due_at: Optional[datetime] = None

    closed_at: Optional[datetime] = None
    version: int = 0

    @property
    def is_open(self) -> bool:
        """Episode still counts towards the one-open-episode invariant."""
        return self.state in OPEN_STATES

    @property
    def duration_hours(self) -> Optional[float]:
        """Hours missing (None until returned)."""
        if self.returned_at is None:
            return None
        return (self.returned_at - self.reported_at).total_seconds() / 3600

    def to_dict(self) -> dict[str, Any]:
        def _iso(d: Optional[datetime]) -> Optional[str]:
            return d.isoformat() if d else None

        return {
            "id": self.id,
            "placement_id": self.placement_id,
            "child_id": self.child_id,
            "state": self.state.value,
            "reported_at": self.reported_at.isoformat(),
            "risk_level": self.risk_level.value,
            "risk_triggers": sorted(t.value for t in self.risk_triggers),
            "last_known_location": self.last_known_location,
            "police_notified": self.police_notified,
            "police_reference": self.police_reference,
            "returned_at": _iso(self.returned_at),
            "return_location": self.return_location,
            "return_condition": self.return_condition,
            "independent_return_interview_required": self.independent_return_interview_required,
            "return_interview_due_at": _iso(self.return_interview_due_at),
            "closed_at": _iso(self.closed_at),
            "version": self.version,
        }


OPEN_STATES = frozenset({EpisodeState.REPORTED, EpisodeState.ACTIVE})
