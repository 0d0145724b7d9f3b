"""
CarePilot Notifications

Advisory signals published by the engine and the reference notification
sinks.

Signals:
- CrossBorderTransferAdvisory: a child moved between jurisdictions
- MissingEpisodeAlert: a child was reported missing (one per recipient)
- ReturnInterviewRequired: an independent return interview is due
- RiskBandEscalation: a placement's breakdown-risk band worsened

Sinks:
- CollectingNotifier: keeps published signals in memory
- LoggingNotifier: writes each signal to the log at WARNING
- NullNotifier: discards signals
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, ClassVar, Optional, TypeVar

from .models import (
    AlertRecipient,
    Jurisdiction,
    LegalStatus,
    MissingRiskLevel,
    RiskBand,
)

logger = logging.getLogger(__name__)

CROSS_BORDER_ADVISORY_MESSAGE = "cross-border placement requires authorization"


# =============================================================================
# Signals
# =============================================================================

@dataclass(frozen=True)
class CrossBorderTransferAdvisory:
    """A child's governing jurisdiction changed."""
    signal_type: ClassVar[str] = "cross_border_transfer"

    child_id: str
    from_jurisdiction: Jurisdiction
    to_jurisdiction: Jurisdiction
    legal_status: LegalStatus
    transfer_date: date
    message: str = CROSS_BORDER_ADVISORY_MESSAGE

    def to_dict(self) -> dict[str, Any]:
        return {
            "signal_type": self.signal_type,
            "child_id": self.child_id,
            "from_jurisdiction": self.from_jurisdiction.value,
            "to_jurisdiction": self.to_jurisdiction.value,
            "legal_status": self.legal_status.value,
            "transfer_date": self.transfer_date.isoformat(),
            "message": self.message,
        }


@dataclass(frozen=True)
class MissingEpisodeAlert:
    """Alert to one recipient that a child is missing."""
    signal_type: ClassVar[str] = "missing_episode_alert"

    recipient: AlertRecipient
    episode_id: str
    placement_id: str
    child_id: str
    risk_level: MissingRiskLevel
    reported_at: datetime
    police_notified: bool = False
    last_known_location: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "signal_type": self.signal_type,
            "recipient": self.recipient.value,
            "episode_id": self.episode_id,
            "placement_id": self.placement_id,
            "child_id": self.child_id,
            "risk_level": self.risk_level.value,
            "reported_at": self.reported_at.isoformat(),
            "police_notified": self.police_notified,
            "last_known_location": self.last_known_location,
        }


@dataclass(frozen=True)
class ReturnInterviewRequired:
    """An independent return interview must be offered by due_at."""
    signal_type: ClassVar[str] = "return_interview_required"

    episode_id: str
    placement_id: str
    child_id: str
    returned_at: datetime
    due_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "signal_type": self.signal_type,
            "episode_id": self.episode_id,
            "placement_id": self.placement_id,
            "child_id": self.child_id,
            "returned_at": self.returned_at.isoformat(),
            "due_at": self.due_at.isoformat(),
        }


@dataclass(frozen=True)
class RiskBandEscalation:
    """A placement's breakdown-risk band moved to a more severe band."""
    signal_type: ClassVar[str] = "risk_band_escalation"

    assessment_id: str
    previous_band: RiskBand
    new_band: RiskBand
    score: int
    child_id: Optional[str] = None
    placement_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "signal_type": self.signal_type,
            "assessment_id": self.assessment_id,
            "child_id": self.child_id,
            "placement_id": self.placement_id,
            "previous_band": self.previous_band.value,
            "new_band": self.new_band.value,
            "score": self.score,
        }


# =============================================================================
# Sinks
# =============================================================================

S = TypeVar("S")


@dataclass
class CollectingNotifier:
    """
    Keeps every published signal in publication order.

    Useful in tests and for batch callers that forward signals themselves.
    """
    signals: list[Any] = field(default_factory=list)

    def publish(self, signal: object) -> None:
        self.signals.append(signal)

    def of_type(self, signal_cls: type[S]) -> list[S]:
        """Published signals of one type."""
        return [s for s in self.signals if isinstance(s, signal_cls)]

    def clear(self) -> None:
        self.signals.clear()


@dataclass
class LoggingNotifier:
    """Writes each signal to the carepilot log."""
    level: int = logging.WARNING

    def publish(self, signal: object) -> None:
        payload = signal.to_dict() if hasattr(signal, "to_dict") else {"signal": repr(signal)}
        logger.log(
            self.level,
            "Signal published: %s",
            payload.get("signal_type", type(signal).__name__),
            extra={"signal": payload},
        )


class NullNotifier:
    """Discards every signal."""

    def publish(self, signal: object) -> None:
        return None
