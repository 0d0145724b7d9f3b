"""
CarePilot Collaborator Ports

Protocols for the collaborators the engine depends on but does not own:
persistence for placements and missing episodes, and the notification
channel.

Store implementations must make the invariant-bearing writes atomic:
- MissingEpisodeStore.add_if_none_open: at most one open episode per placement
- PlacementStore.activate_if_none_active: at most one active placement per child
- save(): optimistic concurrency on the record's version

In-memory reference implementations live in carepilot.stores.
"""
from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from .models import MissingEpisode, Placement


@runtime_checkable
class NotificationSink(Protocol):
    """
    Fire-and-forget channel for advisory signals.

    Signals are dataclasses from carepilot.notifications. Delivery failures
    are the sink's concern; the engine does not retry.
    """

    def publish(self, signal: object) -> None:
        """Publish a signal."""
        ...


@runtime_checkable
class MissingEpisodeStore(Protocol):
    """Persistence for missing episodes."""

    def get(self, episode_id: str) -> Optional[MissingEpisode]:
        """Get an episode by ID, or None."""
        ...

    def add_if_none_open(self, episode: MissingEpisode) -> MissingEpisode:
        """
        Atomically add an episode unless its placement has an open one.

        Raises:
            ConflictError: an episode in REPORTED or ACTIVE state exists
        """
        ...

    def save(self, episode: MissingEpisode, expected_version: int) -> MissingEpisode:
        """
        Store an updated episode if the stored version matches.

        Returns the episode with its version incremented.

        Raises:
            ConflictError: stored version differs from expected_version
            NotFoundError: episode does not exist
        """
        ...

    def list_for_placement(self, placement_id: str) -> list[MissingEpisode]:
        """All episodes for a placement, oldest first."""
        ...

    def list_for_child(self, child_id: str) -> list[MissingEpisode]:
        """All episodes for a child, oldest first."""
        ...


@runtime_checkable
class PlacementStore(Protocol):
    """Persistence for placements."""

    def get(self, placement_id: str) -> Optional[Placement]:
        """Get a placement by ID, or None."""
        ...

    def add(self, placement: Placement) -> Placement:
        """
        Add a new placement.

        Raises:
            ConflictError: a placement with this ID exists
        """
        ...

    def activate_if_none_active(self, placement_id: str, expected_version: int) -> Placement:
        """
        Atomically mark a placement ACTIVE unless its child has one.

        Raises:
            ConflictError: child already has an active placement, or stale version
            NotFoundError: placement does not exist
        """
        ...

    def save(self, placement: Placement, expected_version: int) -> Placement:
        """
        Store an updated placement if the stored version matches.

        Raises:
            ConflictError: stored version differs from expected_version
            NotFoundError: placement does not exist
        """
        ...

    def list_for_child(self, child_id: str) -> list[Placement]:
        """All placements for a child, ordered by start date."""
        ...

    def list_all(self) -> list[Placement]:
        """All placements."""
        ...
