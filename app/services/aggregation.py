"""Dashboard metrics over the latest submission of each polling station."""

from collections import defaultdict
from collections.abc import Sequence

from pydantic import BaseModel

from app.services.deduplication import latest, station_key
from app.services.models import Candidate, Election, ElectionResult

ALL_ELECTIONS = "all"


class CandidateTotal(BaseModel):
    """Aggregated votes of one candidate."""

    name: str
    party: str
    photo_url: str
    votes: int


class Metrics(BaseModel):
    """Global KPIs for the selected election (or every election)."""

    total_registered: int = 0
    total_turnout: int = 0
    turnout_percentage: str = "0.00"
    total_submissions: int = 0
    candidate_totals: list[CandidateTotal] = []
    total_invalid_ballots: int = 0
    total_blank_ballots: int = 0
    total_valid_votes: int = 0
    filtered_results_for_table: list[ElectionResult] = []


def filter_by_election(
    results: Sequence[ElectionResult], election_filter: str
) -> list[ElectionResult]:
    if election_filter == ALL_ELECTIONS:
        return list(results)
    return [r for r in results if r.election_id == election_filter]


def candidates_for(candidates: Sequence[Candidate], election_filter: str) -> list[Candidate]:
    """Candidates relevant to the filter, in registry order."""
    if election_filter == ALL_ELECTIONS:
        return list(candidates)
    return [c for c in candidates if c.election_id == election_filter]


def format_percentage(numerator: int | float, denominator: int | float) -> str:
    """Percentage with two decimals, ``"0.00"`` when the denominator is zero."""
    if denominator <= 0:
        return "0.00"
    return f"{numerator / denominator * 100:.2f}"


def resolve_election_filter(elections: Sequence[Election], requested: str | None) -> str:
    """Pick the election the dashboard should show.

    With a single election, ``"all"`` narrows to it; an unknown id falls back
    to ``"all"``.
    """
    requested = requested or ALL_ELECTIONS
    if not elections:
        return ALL_ELECTIONS
    if requested == ALL_ELECTIONS:
        return elections[0].id if len(elections) == 1 else ALL_ELECTIONS
    if not any(e.id == requested for e in elections):
        return ALL_ELECTIONS
    return requested


def aggregate(
    results: Sequence[ElectionResult],
    election_filter: str,
    candidates: Sequence[Candidate],
) -> Metrics:
    """Compute dashboard metrics.

    Results are scoped to ``election_filter`` then reduced to the latest
    submission per station before summing. Candidate totals only cover the
    candidates of the selected election (all candidates for ``"all"``), are
    joined on candidate name and are sorted by votes, highest first; ties
    keep the candidate list order.
    """
    latest_results = latest(filter_by_election(results, election_filter), station_key)

    total_registered = 0
    total_turnout = 0
    total_invalid = 0
    total_blank = 0
    votes_by_name: dict[str, int] = defaultdict(int)

    for result in latest_results:
        total_registered += result.registered_voters
        total_turnout += result.turnout
        total_invalid += result.invalid_ballots
        total_blank += result.blank_ballots
        for candidate_result in result.candidate_results:
            votes_by_name[candidate_result.name] += candidate_result.votes

    candidate_totals = [
        CandidateTotal(
            name=c.name,
            party=c.party,
            photo_url=c.photo_url,
            votes=votes_by_name.get(c.name, 0),
        )
        for c in candidates_for(candidates, election_filter)
    ]
    # Stable: ties keep the candidate list order
    candidate_totals.sort(key=lambda total: total.votes, reverse=True)

    return Metrics(
        total_registered=total_registered,
        total_turnout=total_turnout,
        turnout_percentage=format_percentage(total_turnout, total_registered),
        total_submissions=len(latest_results),
        candidate_totals=candidate_totals,
        total_invalid_ballots=total_invalid,
        total_blank_ballots=total_blank,
        total_valid_votes=max(0, total_turnout - total_invalid - total_blank),
        filtered_results_for_table=latest_results,
    )
