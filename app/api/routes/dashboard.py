"""Dashboard API routes: KPIs, candidate ranking and detailed results table."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_snapshot, get_snapshot_feed, require_page
from app.core.config import settings
from app.core.responses import success_response
from app.services.aggregation import ALL_ELECTIONS, candidates_for, resolve_election_filter
from app.services.models import User
from app.services.ranking import chart_top, rank
from app.services.results_table import Direction, SortState, project, sort_table
from app.services.snapshot import Snapshot, SnapshotFeed

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


def _election_name(snapshot: Snapshot, election_filter: str) -> str:
    if election_filter == ALL_ELECTIONS:
        return "Toutes les élections"
    return next(
        (e.name for e in snapshot.elections if e.id == election_filter),
        "Élection inconnue",
    )


@router.get("")
async def get_dashboard(
    current_user: Annotated[User, Depends(require_page("dashboard"))],
    snapshot: Annotated[Snapshot, Depends(get_snapshot)],
    feed: Annotated[SnapshotFeed, Depends(get_snapshot_feed)],
    election_id: str = Query(ALL_ELECTIONS),
):
    """
    Get dashboard KPIs for one election or all of them.

    Only the latest submission of each polling station is counted. The
    candidate ranking and chart data are empty when every election is
    selected.
    """
    election_filter = resolve_election_filter(snapshot.elections, election_id)
    metrics = feed.metrics(snapshot, election_filter)

    ranking = []
    if election_filter != ALL_ELECTIONS:
        ranking = rank(metrics.candidate_totals, metrics.total_valid_votes)

    return success_response(
        data={
            "election_id": election_filter,
            "election_name": _election_name(snapshot, election_filter),
            "metrics": metrics.model_dump(
                mode="json", exclude={"filtered_results_for_table"}
            ),
            "total_stations": len(snapshot.stations),
            "ranking": [c.model_dump(mode="json") for c in ranking],
            "chart": [
                c.model_dump(mode="json")
                for c in chart_top(ranking, settings.CHART_TOP_CANDIDATES)
            ],
        }
    )


@router.get("/table")
async def get_results_table(
    current_user: Annotated[User, Depends(require_page("dashboard"))],
    snapshot: Annotated[Snapshot, Depends(get_snapshot)],
    feed: Annotated[SnapshotFeed, Depends(get_snapshot_feed)],
    election_id: str = Query(ALL_ELECTIONS),
    sort_key: str = Query("turnout_rate"),
    direction: Direction = Query("descending"),
    toggle: str | None = Query(None, description="Column header clicked by the user"),
):
    """
    Get the detailed per-station table.

    Pass back the returned ``sort`` state with ``toggle`` set to a column to
    flip its direction (or start ascending on a new column).
    """
    election_filter = resolve_election_filter(snapshot.elections, election_id)
    metrics = feed.metrics(snapshot, election_filter)

    state = SortState(key=sort_key, direction=direction)
    if toggle:
        state = state.request(toggle)

    table_candidates = []
    if election_filter != ALL_ELECTIONS:
        table_candidates = candidates_for(snapshot.candidates, election_filter)

    rows = sort_table(
        project(metrics.filtered_results_for_table, snapshot.stations, table_candidates),
        state,
    )

    return success_response(
        data={
            "election_id": election_filter,
            "sort": state.model_dump(),
            "candidates": [c.name for c in table_candidates],
            "rows": [row.model_dump(mode="json", exclude={"report_info"}) for row in rows],
        }
    )
