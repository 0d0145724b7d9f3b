"""
CarePilot Missing Episode State Machine

Tracks "missing from placement" episodes through an explicit transition
table:

    (NONE,     REPORT)   -> ACTIVE
    (REPORTED, ACTIVATE) -> ACTIVE
    (ACTIVE,   RETURN)   -> RETURNED
    (RETURNED, CLOSE)    -> CLOSED

Any other (state, event) pair is rejected with StateError. CLOSED is
terminal.

At most one episode per placement is open (REPORTED or ACTIVE). The
check-and-insert is delegated to the store's atomic add_if_none_open;
later writes are version-checked.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Mapping, Optional

from ..exceptions import NotFoundError, StateError, ValidationError
from ..models import (
    AlertRecipient,
    EpisodeEvent,
    EpisodeState,
    MissingDetails,
    MissingEpisode,
    MissingRiskLevel,
    MissingTrigger,
    ReturnDetails,
)
from ..notifications import MissingEpisodeAlert, NullNotifier, ReturnInterviewRequired
from ..ports import MissingEpisodeStore, NotificationSink
from ..stores import InMemoryMissingEpisodeStore
from .compliance_calculator import coerce_timestamp

logger = logging.getLogger(__name__)


# =============================================================================
# Transition Table
# =============================================================================

EPISODE_TRANSITIONS: Mapping[tuple[EpisodeState, EpisodeEvent], EpisodeState] = {
    (EpisodeState.NONE, EpisodeEvent.REPORT): EpisodeState.ACTIVE,
    (EpisodeState.REPORTED, EpisodeEvent.ACTIVATE): EpisodeState.ACTIVE,
    (EpisodeState.ACTIVE, EpisodeEvent.RETURN): EpisodeState.RETURNED,
    (EpisodeState.RETURNED, EpisodeEvent.CLOSE): EpisodeState.CLOSED,
}


def next_state(state: EpisodeState, event: EpisodeEvent) -> EpisodeState:
    """
    Target state for an event.

    Raises:
        StateError: the pair is not in the transition table
    """
    target = EPISODE_TRANSITIONS.get((state, event))
    if target is None:
        raise StateError(
            message=f"Cannot {event.value} a missing episode in state {state.value}",
            details={"current_state": state.value, "event": event.value},
        )
    return target


# =============================================================================
# Risk Grading
# =============================================================================

TRIGGER_POINTS: Mapping[MissingTrigger, int] = {
    MissingTrigger.SEXUAL_EXPLOITATION_CONCERN: 5,
    MissingTrigger.CRIMINAL_EXPLOITATION_CONCERN: 5,
    MissingTrigger.SELF_HARM_RISK: 5,
    MissingTrigger.MEDICAL_NEEDS: 5,
    MissingTrigger.UNDER_TWELVE: 5,
    MissingTrigger.SUBSTANCE_MISUSE: 2,
    MissingTrigger.REPEAT_EPISODES: 2,
    MissingTrigger.OUT_OF_AREA: 1,
    MissingTrigger.OVERNIGHT: 1,
    MissingTrigger.ADVERSE_WEATHER: 1,
    MissingTrigger.NO_CONTACT: 1,
}

HIGH_RISK_POINTS = 5
MEDIUM_RISK_POINTS = 2

# Episodes in the look-back window that make an episode a repeat
REPEAT_EPISODE_THRESHOLD = 2
REPEAT_WINDOW_DAYS = 90

RETURN_INTERVIEW_WINDOW = timedelta(hours=72)

ALERT_RECIPIENTS = (
    AlertRecipient.SOCIAL_WORKER,
    AlertRecipient.POLICE_LIAISON,
    AlertRecipient.DUTY_TEAM,
)


def assess_missing_risk(triggers: Iterable[MissingTrigger]) -> MissingRiskLevel:
    """Risk level from trigger points: >= 5 HIGH, >= 2 MEDIUM, else LOW."""
    points = sum(TRIGGER_POINTS[t] for t in set(triggers))
    if points >= HIGH_RISK_POINTS:
        return MissingRiskLevel.HIGH
    elif points >= MEDIUM_RISK_POINTS:
        return MissingRiskLevel.MEDIUM
    return MissingRiskLevel.LOW


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_episode_id() -> str:
    return f"mis-{uuid.uuid4().hex[:12]}"


# =============================================================================
# Missing Episode Service
# =============================================================================

@dataclass
class MissingEpisodeService:
    """
    Drives missing episodes through the transition table.

    Usage:
        service = MissingEpisodeService(
            store=InMemoryMissingEpisodeStore(),
            notifier=LoggingNotifier(),
        )
        episode = service.report_missing("pl-1", MissingDetails(
            child_id="c-1",
            reported_at=datetime(2025, 3, 1, 22, 0, tzinfo=timezone.utc),
        ))
        episode = service.mark_returned(episode.id, ReturnDetails(returned_at=...))
        episode = service.close(episode.id)
    """

    store: MissingEpisodeStore = field(default_factory=InMemoryMissingEpisodeStore)
    notifier: NotificationSink = field(default_factory=NullNotifier)
    clock: Callable[[], datetime] = _utc_now
    id_factory: Callable[[], str] = _new_episode_id

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def report_missing(self, placement_id: str, details: MissingDetails) -> MissingEpisode:
        """
        Open a new ACTIVE episode and alert collaborators.

        Raises:
            ConflictError: the placement already has an open episode
            ValidationError: reported_at is naive or malformed
        """
        state = next_state(EpisodeState.NONE, EpisodeEvent.REPORT)
        episode = self._new_episode(placement_id, details, state)
        stored = self.store.add_if_none_open(episode)

        logger.warning(
            "Child %s reported missing from placement %s (risk %s)",
            stored.child_id,
            placement_id,
            stored.risk_level.value,
            extra={
                "child_id": stored.child_id,
                "placement_id": placement_id,
                "episode_id": stored.id,
            },
        )
        self._publish_alerts(stored)
        return stored

    def register_reported(self, placement_id: str, details: MissingDetails) -> MissingEpisode:
        """
        Record an episode another system reported but has not yet activated.

        The episode is stored in REPORTED state; activate() moves it on.

        Raises:
            ConflictError: the placement already has an open episode
        """
        episode = self._new_episode(placement_id, details, EpisodeState.REPORTED)
        stored = self.store.add_if_none_open(episode)
        logger.info(
            "Missing report registered: %s",
            stored.id,
            extra={"placement_id": placement_id, "episode_id": stored.id},
        )
        return stored

    def activate(self, episode_id: str) -> MissingEpisode:
        """
        REPORTED -> ACTIVE.

        Raises:
            StateError: episode is not REPORTED
            ConflictError: concurrent update
        """
        episode = self.get(episode_id)
        target = self._transition(episode, EpisodeEvent.ACTIVATE)
        saved = self.store.save(replace(episode, state=target), episode.version)

        self._log_transition(episode, saved)
        self._publish_alerts(saved)
        return saved

    def mark_returned(self, episode_id: str, return_details: ReturnDetails) -> MissingEpisode:
        """
        ACTIVE -> RETURNED.

        Records the return and schedules the independent return interview
        72 hours after the return.

        Raises:
            StateError: episode is not ACTIVE
            ValidationError: return time naive, malformed or before the report time
            ConflictError: concurrent update
        """
        episode = self.get(episode_id)
        target = self._transition(episode, EpisodeEvent.RETURN)
        returned_at = coerce_timestamp(return_details.returned_at, "returned_at")

        if returned_at < episode.reported_at:
            raise ValidationError(
                message=(
                    f"Return time {returned_at.isoformat()} is before "
                    f"report time {episode.reported_at.isoformat()}"
                ),
                details={
                    "episode_id": episode_id,
                    "reported_at": episode.reported_at.isoformat(),
                    "returned_at": returned_at.isoformat(),
                },
                child_id=episode.child_id,
            )

        due_at = returned_at + RETURN_INTERVIEW_WINDOW
        updated = replace(
            episode,
            state=target,
            returned_at=returned_at,
            return_location=return_details.return_location,
            return_condition=return_details.condition,
            independent_return_interview_required=True,
            return_interview_due_at=due_at,
        )
        saved = self.store.save(updated, episode.version)

        self._log_transition(episode, saved)
        self.notifier.publish(ReturnInterviewRequired(
            episode_id=saved.id,
            placement_id=saved.placement_id,
            child_id=saved.child_id,
            returned_at=returned_at,
            due_at=due_at,
        ))
        return saved

    def close(self, episode_id: str, closed_at: Optional[datetime] = None) -> MissingEpisode:
        """
        RETURNED -> CLOSED (terminal).

        Raises:
            StateError: episode is not RETURNED
            ConflictError: concurrent update
        """
        episode = self.get(episode_id)
        target = self._transition(episode, EpisodeEvent.CLOSE)
        closed = coerce_timestamp(closed_at, "closed_at") if closed_at is not None else self.clock()
        updated = replace(episode, state=target, closed_at=closed)
        saved = self.store.save(updated, episode.version)

        self._log_transition(episode, saved)
        return saved

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get(self, episode_id: str) -> MissingEpisode:
        """
        Get an episode by ID.

        Raises:
            NotFoundError: unknown episode
        """
        episode = self.store.get(episode_id)
        if episode is None:
            raise NotFoundError(
                message=f"Missing episode not found: {episode_id}",
                details={"episode_id": episode_id},
            )
        return episode

    def episodes_for_placement(self, placement_id: str) -> list[MissingEpisode]:
        """All episodes for a placement, oldest first."""
        return self.store.list_for_placement(placement_id)

    def open_episode(self, placement_id: str) -> Optional[MissingEpisode]:
        """The placement's open (REPORTED or ACTIVE) episode, if any."""
        for episode in self.store.list_for_placement(placement_id):
            if episode.is_open:
                return episode
        return None

    def recent_episode_count(
        self,
        child_id: str,
        within_days: int = REPEAT_WINDOW_DAYS,
        as_of: Optional[datetime] = None,
    ) -> int:
        """Episodes for a child reported in the last `within_days` days."""
        reference = coerce_timestamp(as_of, "as_of") if as_of is not None else self.clock()
        cutoff = reference - timedelta(days=within_days)
        return sum(
            1 for e in self.store.list_for_child(child_id)
            if cutoff <= e.reported_at <= reference
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _new_episode(
        self,
        placement_id: str,
        details: MissingDetails,
        state: EpisodeState,
    ) -> MissingEpisode:
        reported_at = coerce_timestamp(details.reported_at, "reported_at")
        triggers = set(details.triggers)
        recent = self.recent_episode_count(details.child_id, as_of=reported_at)
        if recent >= REPEAT_EPISODE_THRESHOLD:
            triggers.add(MissingTrigger.REPEAT_EPISODES)

        return MissingEpisode(
            id=self.id_factory(),
            placement_id=placement_id,
            child_id=details.child_id,
            state=state,
            reported_at=reported_at,
            risk_level=assess_missing_risk(triggers),
            last_known_location=details.last_known_location,
            risk_triggers=frozenset(triggers),
            police_notified=details.police_notified,
            police_reference=details.police_reference,
        )

    @staticmethod
    def _transition(episode: MissingEpisode, event: EpisodeEvent) -> EpisodeState:
        try:
            return next_state(episode.state, event)
        except StateError as e:
            e.details["episode_id"] = episode.id
            e.child_id = episode.child_id
            raise

    def _publish_alerts(self, episode: MissingEpisode) -> None:
        for recipient in ALERT_RECIPIENTS:
            self.notifier.publish(MissingEpisodeAlert(
                recipient=recipient,
                episode_id=episode.id,
                placement_id=episode.placement_id,
                child_id=episode.child_id,
                risk_level=episode.risk_level,
                reported_at=episode.reported_at,
                police_notified=episode.police_notified,
                last_known_location=episode.last_known_location,
            ))

    @staticmethod
    def _log_transition(before: MissingEpisode, after: MissingEpisode) -> None:
        logger.info(
            "Missing episode %s: %s -> %s",
            after.id,
            before.state.value,
            after.state.value,
            extra={
                "child_id": after.child_id,
                "placement_id": after.placement_id,
                "episode_id": after.id,
            },
        )
