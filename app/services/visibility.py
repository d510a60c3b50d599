"""Role-based visibility of pages and submissions.

Station-bound users (station admins and agents) are tied to a polling
station by id, while results reference stations by name; the station
registry bridges the two.
"""

from collections.abc import Sequence
from typing import Literal

from app.services.models import (
    ElectionResult,
    PollingStation,
    Role,
    StationAgent,
    User,
    station_bound,
)

Page = Literal[
    "dashboard",
    "input_results",
    "import_results",
    "elections",
    "stations",
    "candidates",
    "reports",
    "history",
]

ALL_ROLES: frozenset[Role] = frozenset({"Super Admin", "Admin", "Bureau de Vote", "Observateur"})

PAGE_ROLES: dict[Page, frozenset[Role]] = {
    "dashboard": ALL_ROLES,
    "input_results": frozenset({"Super Admin", "Admin", "Bureau de Vote"}),
    "import_results": frozenset({"Super Admin"}),
    "elections": frozenset({"Super Admin"}),
    "stations": frozenset({"Super Admin"}),
    "candidates": frozenset({"Super Admin"}),
    "reports": frozenset({"Super Admin"}),
    "history": ALL_ROLES,
}


def can_access(user: User, page: Page) -> bool:
    return user.role in PAGE_ROLES[page]


def assigned_station(user: User, stations: Sequence[PollingStation]) -> PollingStation | None:
    """The registry entry of the station a user is bound to."""
    station_id = station_bound(user)
    if station_id is None:
        return None
    return next((s for s in stations if s.id == station_id), None)


def visible_results(
    user: User,
    results: Sequence[ElectionResult],
    stations: Sequence[PollingStation],
) -> list[ElectionResult]:
    """Submissions a user may browse, newest first.

    Station-bound users see their station's submissions only. If their
    station is missing from the registry the filter is not applied.
    """
    station = assigned_station(user, stations)
    if station is None:
        displayed = list(results)
    else:
        displayed = [r for r in results if r.polling_station == station.name]
    return sorted(displayed, key=lambda r: r.timestamp, reverse=True)


def submission_denial(
    user: User,
    election_id: str,
    polling_station: str,
    stations: Sequence[PollingStation],
) -> str | None:
    """Reason a user may not submit this result, or ``None`` when allowed."""
    if not can_access(user, "input_results"):
        return "Role not allowed to submit results"

    station = assigned_station(user, stations)
    if station is not None and station.name != polling_station:
        return "Results can only be submitted for the assigned polling station"

    if isinstance(user, StationAgent) and user.election_id and user.election_id != election_id:
        return "Results can only be submitted for the assigned election"

    return None
