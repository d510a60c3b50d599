"""Candidate leaderboard and chart data."""

from collections.abc import Sequence

from pydantic import BaseModel

from app.services.aggregation import CandidateTotal

DEFAULT_CHART_SIZE = 5


class RankedCandidate(BaseModel):
    name: str
    party: str
    photo_url: str
    votes: int
    percentage: float


def vote_share(votes: int, total_valid_votes: int) -> float:
    """Share of valid votes as a percentage; 0 when nothing is valid."""
    if total_valid_votes <= 0:
        return 0.0
    return votes / total_valid_votes * 100


def rank(
    candidate_totals: Sequence[CandidateTotal], total_valid_votes: int
) -> list[RankedCandidate]:
    """Attach vote shares, keeping the incoming (descending) order."""
    return [
        RankedCandidate(
            name=total.name,
            party=total.party,
            photo_url=total.photo_url,
            votes=total.votes,
            percentage=vote_share(total.votes, total_valid_votes),
        )
        for total in candidate_totals
    ]


def chart_top(
    ranked: Sequence[RankedCandidate], size: int = DEFAULT_CHART_SIZE
) -> list[RankedCandidate]:
    """Leading candidates in ascending order, for bottom-to-top bar charts."""
    return list(reversed(ranked[:size]))
