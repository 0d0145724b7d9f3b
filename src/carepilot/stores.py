"""
CarePilot In-Memory Stores

Reference implementations of the store ports.

Each store serialises its writes with a lock so the invariant-bearing
operations are atomic within one process. Stored records are copies;
callers never hold a reference to the stored object.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from typing import Optional

from .exceptions import ConflictError, NotFoundError
from .models import MissingEpisode, Placement, PlacementStatus


# =============================================================================
# Missing Episodes
# =============================================================================

@dataclass
class InMemoryMissingEpisodeStore:
    """Thread-safe in-memory MissingEpisodeStore."""

    _episodes: dict[str, MissingEpisode] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def get(self, episode_id: str) -> Optional[MissingEpisode]:
        with self._lock:
            episode = self._episodes.get(episode_id)
            return replace(episode) if episode else None

    def add_if_none_open(self, episode: MissingEpisode) -> MissingEpisode:
        with self._lock:
            if episode.id in self._episodes:
                raise ConflictError(
                    message=f"Episode already exists: {episode.id}",
                    details={"episode_id": episode.id},
                    child_id=episode.child_id,
                )
            for existing in self._episodes.values():
                if existing.placement_id == episode.placement_id and existing.is_open:
                    raise ConflictError(
                        message=(
                            f"Placement {episode.placement_id} already has an open "
                            f"missing episode ({existing.id}, {existing.state.value})"
                        ),
                        details={
                            "placement_id": episode.placement_id,
                            "open_episode_id": existing.id,
                            "open_episode_state": existing.state.value,
                        },
                        child_id=episode.child_id,
                    )
            self._episodes[episode.id] = replace(episode)
            return replace(episode)

    def save(self, episode: MissingEpisode, expected_version: int) -> MissingEpisode:
        with self._lock:
            current = self._episodes.get(episode.id)
            if current is None:
                raise NotFoundError(
                    message=f"Missing episode not found: {episode.id}",
                    details={"episode_id": episode.id},
                )
            if current.version != expected_version:
                raise ConflictError(
                    message=(
                        f"Stale write to episode {episode.id}: expected version "
                        f"{expected_version}, stored version {current.version}"
                    ),
                    details={
                        "episode_id": episode.id,
                        "expected_version": expected_version,
                        "stored_version": current.version,
                    },
                    child_id=episode.child_id,
                )
            stored = replace(episode, version=current.version + 1)
            self._episodes[episode.id] = stored
            return replace(stored)

    def list_for_placement(self, placement_id: str) -> list[MissingEpisode]:
        with self._lock:
            items = [e for e in self._episodes.values() if e.placement_id == placement_id]
        return [replace(e) for e in sorted(items, key=lambda e: (e.reported_at, e.id))]

    def list_for_child(self, child_id: str) -> list[MissingEpisode]:
        with self._lock:
            items = [e for e in self._episodes.values() if e.child_id == child_id]
        return [replace(e) for e in sorted(items, key=lambda e: (e.reported_at, e.id))]


# =============================================================================
# Placements
# =============================================================================

@dataclass
class InMemoryPlacementStore:
    """Thread-safe in-memory PlacementStore."""

    _placements: dict[str, Placement] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def get(self, placement_id: str) -> Optional[Placement]:
        with self._lock:
            placement = self._placements.get(placement_id)
            return replace(placement) if placement else None

    def add(self, placement: Placement) -> Placement:
        with self._lock:
            if placement.id in self._placements:
                raise ConflictError(
                    message=f"Placement already exists: {placement.id}",
                    details={"placement_id": placement.id},
                    child_id=placement.child_id,
                )
            self._placements[placement.id] = replace(placement)
            return replace(placement)

    def activate_if_none_active(self, placement_id: str, expected_version: int) -> Placement:
        with self._lock:
            current = self._require(placement_id)
            self._check_version(current, expected_version)
            for other in self._placements.values():
                if (
                    other.child_id == current.child_id
                    and other.id != current.id
                    and other.status == PlacementStatus.ACTIVE
                ):
                    raise ConflictError(
                        message=(
                            f"Child {current.child_id} already has an active "
                            f"placement ({other.id})"
                        ),
                        details={
                            "placement_id": placement_id,
                            "active_placement_id": other.id,
                        },
                        child_id=current.child_id,
                    )
            stored = replace(
                current,
                status=PlacementStatus.ACTIVE,
                version=current.version + 1,
            )
            self._placements[placement_id] = stored
            return replace(stored)

    def save(self, placement: Placement, expected_version: int) -> Placement:
        with self._lock:
            current = self._require(placement.id)
            self._check_version(current, expected_version)
            stored = replace(placement, version=current.version + 1)
            self._placements[placement.id] = stored
            return replace(stored)

    def list_for_child(self, child_id: str) -> list[Placement]:
        with self._lock:
            items = [p for p in self._placements.values() if p.child_id == child_id]
        return [replace(p) for p in sorted(items, key=lambda p: (p.start_date, p.id))]

    def list_all(self) -> list[Placement]:
        with self._lock:
            items = list(self._placements.values())
        return [replace(p) for p in sorted(items, key=lambda p: (p.start_date, p.id))]

    def _require(self, placement_id: str) -> Placement:
        placement = self._placements.get(placement_id)
        if placement is None:
            raise NotFoundError(
                message=f"Placement not found: {placement_id}",
                details={"placement_id": placement_id},
            )
        return placement

    @staticmethod
    def _check_version(current: Placement, expected_version: int) -> None:
        if current.version != expected_version:
            raise ConflictError(
                message=(
                    f"Stale write to placement {current.id}: expected version "
                    f"{expected_version}, stored version {current.version}"
                ),
                details={
                    "placement_id": current.id,
                    "expected_version": expected_version,
                    "stored_version": current.version,
                },
                child_id=current.child_id,
            )
