"""
Pytest configuration and fixtures for CarePilot tests.

Provides helper factories and common fixtures matching actual model definitions.
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from itertools import count

import pytest

from carepilot.models import (
    Child,
    ChildProfile,
    IncidentRecord,
    IncidentSeverity,
    Jurisdiction,
    LegalStatus,
    Location,
    MissingDetails,
    Placement,
    PlacementStatus,
    PlacementTransition,
    PlacementType,
    ProviderProfile,
)
from carepilot.notifications import CollectingNotifier


# Fixed reference date used across the suite
REFERENCE_DATE = date(2025, 3, 1)

# Manchester city centre and nearby points
MANCHESTER = Location(53.4808, -2.2426)
SALFORD = Location(53.4875, -2.2901)
STOCKPORT = Location(53.4106, -2.1575)
LEEDS = Location(53.8008, -1.5491)
GLASGOW = Location(55.8642, -4.2518)


# =============================================================================
# Factory Helpers
# =============================================================================

def make_child(
    id: str = "child-001",
    jurisdiction: Jurisdiction = Jurisdiction.ENGLAND,
    legal_status: LegalStatus = LegalStatus.SECTION_20,
    admission_date: date = None,
    date_of_birth: date = None,
    current_school: str = None,
    **kwargs,
) -> Child:
    """Create a Child with required fields."""
    if admission_date is None:
        admission_date = date(2025, 1, 1)
    if date_of_birth is None:
        date_of_birth = date(2012, 5, 17)

    return Child(
        id=id,
        jurisdiction=jurisdiction,
        legal_status=legal_status,
        admission_date=admission_date,
        date_of_birth=date_of_birth,
        current_school=current_school,
        **kwargs,
    )


def make_profile(
    child_id: str = "child-001",
    jurisdiction: Jurisdiction = Jurisdiction.ENGLAND,
    legal_status: LegalStatus = LegalStatus.SECTION_31,
    home_location: Location = MANCHESTER,
    sibling_ids: list = None,
    languages: set = None,
    **kwargs,
) -> ChildProfile:
    """Create a ChildProfile with required fields."""
    return ChildProfile(
        child_id=child_id,
        jurisdiction=jurisdiction,
        legal_status=legal_status,
        home_location=home_location,
        sibling_ids=sibling_ids or [],
        languages=languages or set(),
        **kwargs,
    )


def make_provider(
    provider_id: str,
    location: Location = MANCHESTER,
    jurisdiction: Jurisdiction = Jurisdiction.ENGLAND,
    placement_types: set = None,
    vacancies: int = 2,
    registration_expires: date = None,
    **kwargs,
) -> ProviderProfile:
    """Create an eligible ProviderProfile."""
    if placement_types is None:
        placement_types = {PlacementType.FOSTER, PlacementType.EMERGENCY}
    if registration_expires is None:
        registration_expires = date(2030, 12, 31)

    return ProviderProfile(
        provider_id=provider_id,
        jurisdiction=jurisdiction,
        placement_types=placement_types,
        vacancies=vacancies,
        location=location,
        registration_expires=registration_expires,
        **kwargs,
    )


def make_details(
    child_id: str = "child-001",
    reported_at: datetime = None,
    triggers: set = None,
    **kwargs,
) -> MissingDetails:
    """Create MissingDetails for a report."""
    if reported_at is None:
        reported_at = datetime(2025, 3, 1, 22, 0, tzinfo=timezone.utc)

    return MissingDetails(
        child_id=child_id,
        reported_at=reported_at,
        triggers=triggers or set(),
        **kwargs,
    )


def make_placement(
    id: str = "pl-001",
    child_id: str = "child-001",
    provider_id: str = "prov-001",
    start_date: date = None,
    placement_type: PlacementType = PlacementType.FOSTER,
    status: PlacementStatus = PlacementStatus.PROPOSED,
    **kwargs,
) -> Placement:
    """Create a Placement with required fields."""
    if start_date is None:
        start_date = date(2025, 1, 10)

    return Placement(
        id=id,
        child_id=child_id,
        placement_type=placement_type,
        provider_id=provider_id,
        start_date=start_date,
        status=status,
        **kwargs,
    )


def make_move(moved_on: date, to_placement_id: str = None) -> PlacementTransition:
    """Create a PlacementTransition."""
    return PlacementTransition(moved_on=moved_on, to_placement_id=to_placement_id)


def make_incident(
    occurred_on: date,
    severity: IncidentSeverity = IncidentSeverity.MEDIUM,
) -> IncidentRecord:
    """Create an IncidentRecord."""
    return IncidentRecord(occurred_on=occurred_on, severity=severity)


def sequential_ids(prefix: str):
    """ID factory yielding prefix-1, prefix-2, ..."""
    counter = count(1)
    return lambda: f"{prefix}-{next(counter)}"


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def notifier():
    """Notifier that keeps published signals."""
    return CollectingNotifier()


@pytest.fixture
def reference_date():
    return REFERENCE_DATE
